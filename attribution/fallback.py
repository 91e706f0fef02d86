"""
attribution/fallback.py - 역방향 DNS 폴백

모든 분류기가 끝난 뒤에도 귀속되지 않은 주소마다 PTR 조회를 정확히 한 번 수행합니다.
조회 실패는 이름이 빈 레코드로 대체되며, 한 주소의 실패가 배치를 중단하지 않습니다.
따라서 입력된 미해결 주소는 모두 결과에 포함됩니다.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor

from core.parallel import ErrorCollector, ErrorSeverity, try_or_default

from .dns_client import DNSResolver
from .types import AttributionRecord, RecordKind

logger = logging.getLogger(__name__)

DEFAULT_WORKERS = 10


def reverse_dns_record(names: Iterable[str]) -> AttributionRecord:
    """역방향 DNS 레코드 생성 (첫 번째 이름을 대표 이름으로 사용)"""
    names = tuple(names)
    return AttributionRecord(
        kind=RecordKind.REVERSE_DNS,
        region=None,
        detail={"name": names[0] if names else "", "names": names},
    )


class ReverseDNSFallback:
    """미해결 주소 역방향 DNS 조회기"""

    def __init__(
        self,
        resolver: DNSResolver | None = None,
        workers: int = DEFAULT_WORKERS,
        collector: ErrorCollector | None = None,
    ):
        """초기화

        Args:
            resolver: DNS 조회기 (None이면 기본 설정으로 생성)
            workers: 동시 PTR 조회 수
            collector: 조회 실패를 기록할 ErrorCollector (선택사항)
        """
        if workers < 1:
            raise ValueError(f"workers must be >= 1, got {workers}")
        self.resolver = resolver or DNSResolver()
        self.workers = workers
        self.collector = collector

    def lookup(self, addresses: Iterable[str]) -> dict[str, AttributionRecord]:
        """주소별 PTR 조회

        Args:
            addresses: 미해결 주소 목록

        Returns:
            {주소: 역방향 DNS 레코드} - 입력 주소 전부 포함 (실패 시 빈 이름)
        """
        pending = list(dict.fromkeys(addresses))
        if not pending:
            return {}

        logger.debug(f"역방향 DNS 조회: {len(pending)}개 주소")
        workers = min(self.workers, len(pending))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ptr") as pool:
            names = pool.map(self._lookup_one, pending)
            return {address: reverse_dns_record(found) for address, found in zip(pending, names)}

    def _lookup_one(self, address: str) -> list[str]:
        return try_or_default(
            lambda: self.resolver.reverse_lookup(address),
            default=[],
            collector=self.collector,
            operation="reverse_lookup",
            severity=ErrorSeverity.DEBUG,
            resource_id=address,
        )
