"""
attribution/types.py - IP 귀속 데이터 모델

주요 구성 요소:
- RecordKind: 귀속 출처 종류
- AttributionRecord: 분류기/폴백이 생성하는 불변 귀속 레코드
- AttributionTable: 주소 -> 레코드 매핑 (first-writer-wins, 스레드 세이프)
- AttributionResult: 한 번의 실행 결과 (테이블 + 미해결 주소 + 진단 정보)
"""

from __future__ import annotations

import threading
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any

from core.parallel import CollectedError, TaskError


class RecordKind(Enum):
    """귀속 레코드 종류"""

    INSTANCE = "instance"
    ELASTIC_IP = "elastic-ip"
    LOAD_BALANCER = "load-balancer"
    REVERSE_DNS = "reverse-dns"


@dataclass(frozen=True)
class AttributionRecord:
    """불변 귀속 레코드

    Attributes:
        kind: 레코드 종류
        region: 조회한 리전 (역방향 DNS는 None)
        detail: 리소스 상세 (id, name 및 종류별 추가 필드), 읽기 전용
    """

    kind: RecordKind
    region: str | None = None
    detail: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        # 생성 후 변경 불가하도록 읽기 전용 뷰로 고정
        object.__setattr__(self, "detail", MappingProxyType(dict(self.detail)))

    @property
    def resource_id(self) -> str | None:
        return self.detail.get("id") or None

    @property
    def name(self) -> str | None:
        return self.detail.get("name") or None


class AttributionTable:
    """주소 -> 귀속 레코드 매핑

    여러 작업 단위가 동시에 기록하며, 주소별로 처음 기록된 레코드만 유지합니다.
    이후 같은 주소에 대한 기록은 에러 없이 버려지고 discarded 카운트만 증가합니다.
    어떤 출처가 먼저 도착할지는 정해져 있지 않습니다.
    """

    def __init__(self, addresses: Iterable[str] = ()):
        """초기화

        Args:
            addresses: 입력 주소 목록 (중복은 첫 등장 순서로 제거)
        """
        self._addresses: tuple[str, ...] = tuple(dict.fromkeys(addresses))
        self._records: dict[str, AttributionRecord] = {}
        self._discarded = 0
        self._lock = threading.Lock()

    @property
    def addresses(self) -> tuple[str, ...]:
        """입력 주소 (입력 순서, 중복 제거)"""
        return self._addresses

    def add_if_absent(self, address: str, record: AttributionRecord) -> bool:
        """주소에 레코드가 없을 때만 기록 (원자적 compare-and-set)

        Returns:
            기록되었으면 True, 이미 다른 레코드가 있어 버려졌으면 False
        """
        with self._lock:
            if address in self._records:
                self._discarded += 1
                return False
            self._records[address] = record
            return True

    def merge(self, records: Mapping[str, AttributionRecord]) -> int:
        """여러 레코드를 first-writer-wins로 병합

        Returns:
            새로 기록된 레코드 수
        """
        return sum(1 for address, record in records.items() if self.add_if_absent(address, record))

    def pending(self) -> list[str]:
        """아직 레코드가 없는 입력 주소 (입력 순서)"""
        with self._lock:
            return [a for a in self._addresses if a not in self._records]

    def snapshot(self) -> dict[str, AttributionRecord]:
        """현재 레코드의 복사본"""
        with self._lock:
            return dict(self._records)

    @property
    def discarded(self) -> int:
        """first-writer-wins로 버려진 레코드 수"""
        with self._lock:
            return self._discarded


@dataclass
class AttributionResult:
    """한 번의 귀속 실행 결과

    Attributes:
        addresses: 입력 주소 (입력 순서, 중복 제거)
        records: 분류기가 귀속한 레코드
        unresolved: 모든 분류기 완료 시점의 미해결 주소 (역방향 DNS 입력)
        reverse_dns: 역방향 DNS 폴백 레코드 (미해결 주소마다 정확히 하나)
        regions: 스캔한 리전
        task_errors: 실패한 작업 단위 에러 (작업 단위당 하나)
        diagnostics: 작업 내부의 부수적 에러 (DNS 이름 해석 실패, 리전 폴백 등)
        discarded: first-writer-wins로 버려진 레코드 수
        region_fallback: 리전 목록 조회 실패로 기본 목록을 사용했는지 여부
    """

    addresses: tuple[str, ...] = ()
    records: dict[str, AttributionRecord] = field(default_factory=dict)
    unresolved: tuple[str, ...] = ()
    reverse_dns: dict[str, AttributionRecord] = field(default_factory=dict)
    regions: tuple[str, ...] = ()
    task_errors: tuple[TaskError, ...] = ()
    diagnostics: tuple[CollectedError, ...] = ()
    discarded: int = 0
    region_fallback: bool = False

    def record_for(self, address: str) -> AttributionRecord | None:
        """주소의 최종 레코드 (분류기 결과 우선, 없으면 역방향 DNS)"""
        return self.records.get(address) or self.reverse_dns.get(address)

    @property
    def has_errors(self) -> bool:
        return bool(self.task_errors)

    def get_error_summary(self) -> str:
        """실패한 작업 단위 요약"""
        if not self.task_errors:
            return "실패한 작업 없음"

        lines = [f"총 {len(self.task_errors)}개 작업 실패"]
        for error in self.task_errors:
            lines.append(f"  [{error.category.value}] {error}")
        return "\n".join(lines)
