"""
core/parallel/errors.py - 에러 수집 및 관리

병렬 실행 중 작업 단위 내부에서 발생하는 부수적 에러(개별 DNS 이름 조회 실패,
리전 목록 폴백 등)를 스레드 세이프하게 수집합니다. 작업 단위 자체의 실패는
TaskError로 표현되며 이 수집기와는 별개입니다.

주요 구성 요소:
- ErrorSeverity: 에러 심각도 분류
- CollectedError: 수집된 에러 상세 정보
- ErrorCollector: 스레드 세이프 에러 수집기
- try_or_default: 실패 시 기본값 반환 헬퍼

Example:
    collector = ErrorCollector("elb")

    for name in dns_names:
        try:
            addresses = resolver.resolve(name)
        except DNSLookupError as e:
            collector.collect(e, region, "resolve", resource_id=name)
            continue

    for error in collector.errors:
        print(error)
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import TypeVar

from .retry import categorize_error, get_error_code
from .types import ErrorCategory

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorSeverity(Enum):
    """에러 심각도 분류"""

    CRITICAL = "critical"  # 핵심 기능 실패 - 반드시 보고
    WARNING = "warning"  # 부분 실패 - 보고하되 계속 진행
    INFO = "info"  # 정보성 (권한 없음 등)
    DEBUG = "debug"  # 예상된 실패 (PTR 레코드 없음 등)


@dataclass
class CollectedError:
    """수집된 에러 상세 정보

    Attributes:
        timestamp: 에러 발생 시각
        region: AWS 리전 (리전과 무관하면 빈 문자열)
        service: 수집기 소속 (예: "elb", "dns", "region")
        operation: 작업 이름 (예: "resolve", "describe_regions")
        error_code: 에러 코드
        error_message: 에러 메시지
        severity: 에러 심각도
        category: 에러 카테고리
        resource_id: 관련 리소스 ID 또는 이름 (선택사항)
    """

    timestamp: datetime
    region: str
    service: str
    operation: str
    error_code: str
    error_message: str
    severity: ErrorSeverity
    category: ErrorCategory
    resource_id: str | None = None

    def __str__(self) -> str:
        target = f" ({self.resource_id})" if self.resource_id else ""
        loc = self.region or "-"
        return f"[{self.severity.value.upper()}] {loc} - {self.service}.{self.operation}{target}: {self.error_code}"


class ErrorCollector:
    """스레드 세이프 에러 수집기

    여러 워커 스레드에서 동시에 collect()를 호출해도 안전합니다.
    verbose가 꺼져 있으면 수집된 에러는 DEBUG 레벨로만 로깅됩니다.
    """

    def __init__(self, service: str, verbose: bool = False):
        """초기화

        Args:
            service: 수집기 소속 이름 (수집된 에러에 공통 적용)
            verbose: True면 심각도에 맞는 레벨로, False면 DEBUG로 로깅
        """
        self.service = service
        self.verbose = verbose
        self._errors: list[CollectedError] = []
        self._lock = threading.Lock()

    def collect(
        self,
        error: BaseException,
        region: str,
        operation: str,
        severity: ErrorSeverity = ErrorSeverity.WARNING,
        resource_id: str | None = None,
    ) -> CollectedError:
        """예외를 수집하고 로깅

        에러 카테고리는 자동 분류하며, ACCESS_DENIED는 INFO로 다운그레이드합니다.

        Args:
            error: 수집할 예외
            region: AWS 리전
            operation: 작업 이름
            severity: 에러 심각도 (기본: WARNING)
            resource_id: 관련 리소스 ID (선택사항)

        Returns:
            수집된 CollectedError
        """
        category = categorize_error(error)
        if category == ErrorCategory.ACCESS_DENIED and severity == ErrorSeverity.WARNING:
            severity = ErrorSeverity.INFO

        collected = CollectedError(
            timestamp=datetime.now(),
            region=region,
            service=self.service,
            operation=operation,
            error_code=get_error_code(error),
            error_message=str(error),
            severity=severity,
            category=category,
            resource_id=resource_id,
        )

        with self._lock:
            self._errors.append(collected)

        self._log(collected)
        return collected

    def _log(self, collected: CollectedError) -> None:
        if not self.verbose:
            logger.debug(f"{collected}")
        elif collected.severity == ErrorSeverity.CRITICAL:
            logger.error(f"{collected}")
        elif collected.severity == ErrorSeverity.WARNING:
            logger.warning(f"{collected}")
        elif collected.severity == ErrorSeverity.INFO:
            logger.info(f"{collected}")
        else:
            logger.debug(f"{collected}")

    @property
    def errors(self) -> list[CollectedError]:
        """수집된 모든 에러의 복사본 반환"""
        with self._lock:
            return list(self._errors)

    def clear(self) -> None:
        with self._lock:
            self._errors.clear()


def try_or_default(
    func: Callable[[], T],
    default: T,
    collector: ErrorCollector | None = None,
    region: str = "",
    operation: str = "",
    severity: ErrorSeverity = ErrorSeverity.DEBUG,
    resource_id: str | None = None,
) -> T:
    """함수 실행, 실패 시 기본값 반환 + 에러 수집

    부수적인 조회(개별 DNS 이름 해석 등)가 실패해도 전체 로직을 중단하지 않고
    기본값으로 대체합니다.

    Args:
        func: 실행할 함수 (인자 없음)
        default: 실패 시 반환할 기본값
        collector: ErrorCollector 인스턴스 (None이면 DEBUG 로깅만)
        region: AWS 리전
        operation: 작업 이름
        severity: 에러 심각도 (기본: DEBUG)
        resource_id: 관련 리소스 ID

    Returns:
        함수 실행 결과 또는 실패 시 default 값
    """
    try:
        return func()
    except Exception as e:
        if collector:
            collector.collect(e, region, operation, severity, resource_id)
        else:
            logger.debug(f"[{region or '-'}] {operation}: {e}")
        return default
