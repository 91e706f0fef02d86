"""
core/config.py - 중앙 설정 관리

엔진과 각 협력 객체(분류기, DNS 조회기, 리전 조회기)에 명시적으로 전달되는
실행 설정입니다. 프로세스 전역 상태를 두지 않으므로 테스트에서 독립적으로 생성할 수 있습니다.

환경 변수 오버라이드 (AttributionConfig.from_env):
    IPWHO_MAX_WORKERS   리전 x 분류기 작업 동시 실행 수
    IPWHO_DNS_WORKERS   DNS 조회 워커 풀 크기
    IPWHO_DNS_TIMEOUT   DNS 서버별 타임아웃 (초)
    IPWHO_VERBOSE       1/true/yes면 진단 메시지 출력

Usage:
    from core.config import AttributionConfig

    config = AttributionConfig(max_workers=10, verbose=True)
    engine = AttributionEngine(session, config)
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Any

from core.exceptions import ConfigError
from core.parallel import ParallelConfig, RetryConfig
from core.region.data import DEFAULT_REGIONS

VERSION = "0.3.0"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})


def get_version() -> str:
    """버전 문자열 반환"""
    return VERSION


@dataclass
class AttributionConfig:
    """IP 귀속 실행 설정

    Attributes:
        max_workers: 리전 x 분류기 작업 동시 실행 수
        dns_workers: 로드밸런서 DNS 이름 해석/역방향 조회 워커 풀 크기
        dns_timeout: DNS 서버별 타임아웃 (초)
        dns_lifetime: DNS 질의 전체 제한 시간 (초)
        retry_config: 작업 단위 재시도 설정
        verbose: True면 진단 메시지를 WARNING 레벨로 출력
        reverse_dns: False면 역방향 DNS 폴백 생략
        default_regions: 리전 목록 조회 실패 시 사용할 리전
        profile: AWS 프로파일 이름 (None이면 기본 자격증명 체인)
    """

    max_workers: int = 20
    dns_workers: int = 10
    dns_timeout: float = 2.0
    dns_lifetime: float = 4.0
    retry_config: RetryConfig = field(default_factory=RetryConfig)
    verbose: bool = False
    reverse_dns: bool = True
    default_regions: list[str] = field(default_factory=lambda: list(DEFAULT_REGIONS))
    profile: str | None = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ConfigError(f"max_workers must be >= 1, got {self.max_workers}", config_key="max_workers")
        if self.dns_workers < 1:
            raise ConfigError(f"dns_workers must be >= 1, got {self.dns_workers}", config_key="dns_workers")
        if self.dns_timeout <= 0 or self.dns_lifetime <= 0:
            raise ConfigError("DNS timeout/lifetime must be positive", config_key="dns_timeout")
        if len(self.default_regions) < 2:
            raise ConfigError("default_regions must contain at least 2 regions", config_key="default_regions")

    @property
    def parallel_config(self) -> ParallelConfig:
        """executor에 전달할 ParallelConfig"""
        return ParallelConfig(max_workers=self.max_workers, retry_config=self.retry_config)

    @classmethod
    def from_env(cls, environ: dict[str, str] | None = None, **overrides: Any) -> AttributionConfig:
        """환경 변수에서 설정 로드

        Args:
            environ: 환경 변수 딕셔너리 (None이면 os.environ)
            **overrides: 환경 변수보다 우선하는 값 (None은 무시)

        Raises:
            ConfigError: 숫자 값 파싱 실패 시
        """
        env = os.environ if environ is None else environ
        values: dict[str, Any] = {}

        for key, name, cast in (
            ("max_workers", "IPWHO_MAX_WORKERS", int),
            ("dns_workers", "IPWHO_DNS_WORKERS", int),
            ("dns_timeout", "IPWHO_DNS_TIMEOUT", float),
        ):
            raw = env.get(name)
            if raw is None or raw == "":
                continue
            try:
                values[key] = cast(raw)
            except ValueError as e:
                raise ConfigError(f"{name} 값이 올바르지 않습니다: {raw!r}", config_key=name, cause=e) from e

        verbose = env.get("IPWHO_VERBOSE")
        if verbose is not None:
            values["verbose"] = verbose.strip().lower() in _TRUE_VALUES

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
