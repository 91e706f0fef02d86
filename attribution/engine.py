"""
attribution/engine.py - IP 귀속 엔진

입력 주소 배치에 대해 모든 (리전 x 분류기) 조합을 병렬로 실행하고,
결과를 first-writer-wins로 하나의 테이블에 병합한 뒤,
남은 미해결 주소를 역방향 DNS 폴백에 넘깁니다.

실행 단계 (한 번의 실행은 한 방향으로만 진행, 재시도/재개 없음):
    START -> ENUMERATE_REGIONS -> DISPATCH -> AWAIT_ALL -> FALLBACK -> REPORT -> DONE

- 작업 단위 하나가 실패해도 다른 작업은 취소되지 않고, 이미 모은 결과도 버리지 않습니다.
- resolve()는 제출한 모든 작업 단위가 성공 또는 실패로 끝나기 전에는 반환하지 않습니다.
- 작업 단위 에러는 AttributionResult.task_errors로 모아 반환하며, 예외로 던지지 않습니다.
- 한 엔진의 run/resolve 호출은 하나씩 순서대로 실행되고, 진단 정보는 실행마다 새로 모읍니다.

Example:
    from attribution import AttributionEngine
    from core.config import AttributionConfig

    engine = AttributionEngine(config=AttributionConfig(verbose=True))
    result = engine.run(["10.0.0.5", "54.1.2.3"])

    for address in result.addresses:
        print(address, result.record_for(address))
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterable, Sequence
from functools import partial
from typing import TYPE_CHECKING, Any

from core.config import AttributionConfig
from core.exceptions import format_error_for_user
from core.parallel import ErrorCollector, ParallelExecutor, TaskError, TaskSpec
from core.region.availability import RegionEnumerator

from .classifiers import Classifier, default_classifiers
from .dns_client import DNSResolver
from .fallback import ReverseDNSFallback
from .types import AttributionRecord, AttributionResult, AttributionTable

if TYPE_CHECKING:
    import boto3

    from core.parallel.executor import ProgressTracker

logger = logging.getLogger(__name__)


class AttributionEngine:
    """IP 귀속 엔진

    여러 스레드에서 같은 엔진을 호출하면 실행은 잠금으로 직렬화됩니다.
    collector는 실행 시작 시 비워지므로 결과의 diagnostics에는 해당 실행의 에러만 담깁니다.

    Attributes:
        config: 실행 설정
        classifiers: 기본 분류기 목록
        collector: 현재 실행의 부수적 에러 수집기
    """

    def __init__(
        self,
        session: boto3.Session | Any | None = None,
        config: AttributionConfig | None = None,
        classifiers: Sequence[Classifier] | None = None,
        resolver: DNSResolver | None = None,
        region_enumerator: RegionEnumerator | None = None,
        fallback: ReverseDNSFallback | None = None,
    ):
        """초기화

        Args:
            session: boto3 Session (None이면 config.profile로 생성)
            config: 실행 설정 (None이면 기본값)
            classifiers: 분류기 목록 (None이면 기본 4종)
            resolver: DNS 조회기 (None이면 config의 타임아웃으로 생성)
            region_enumerator: 리전 목록 조회기 (None이면 기본 생성)
            fallback: 역방향 DNS 폴백 (None이면 기본 생성)
        """
        self.config = config or AttributionConfig()
        if session is None:
            import boto3

            session = boto3.Session(profile_name=self.config.profile)
        self.session = session

        self.collector = ErrorCollector("attribution", verbose=self.config.verbose)
        self._run_lock = threading.Lock()
        resolver = resolver or DNSResolver(timeout=self.config.dns_timeout, lifetime=self.config.dns_lifetime)

        self.classifiers: list[Classifier] = (
            list(classifiers)
            if classifiers is not None
            else default_classifiers(session, self.config, resolver, self.collector)
        )
        self.region_enumerator = region_enumerator or RegionEnumerator(
            session,
            self.config.default_regions,
            collector=self.collector,
            verbose=self.config.verbose,
        )
        self.fallback = fallback or ReverseDNSFallback(resolver, self.config.dns_workers, self.collector)
        self.executor = ParallelExecutor(self.config.parallel_config)

    def run(
        self,
        addresses: Iterable[str],
        regions: Sequence[str] | None = None,
        progress_tracker: ProgressTracker | None = None,
    ) -> AttributionResult:
        """전체 실행 (리전 조회 -> 분류 -> 폴백)

        Args:
            addresses: 입력 주소
            regions: 스캔할 리전 (None이면 리전 목록 조회)
            progress_tracker: 작업 단위 진행 추적기 (선택사항)
        """
        with self._run_lock:
            self.collector.clear()
            region_fallback = False
            if regions is None:
                regions = self.region_enumerator.list_regions()
                region_fallback = self.region_enumerator.used_fallback

            result = self._resolve(addresses, regions, None, progress_tracker)
            result.region_fallback = region_fallback
            result.diagnostics = tuple(self.collector.errors)
            return result

    def resolve(
        self,
        addresses: Iterable[str],
        regions: Sequence[str],
        classifiers: Sequence[Classifier] | None = None,
        progress_tracker: ProgressTracker | None = None,
    ) -> AttributionResult:
        """모든 (리전 x 분류기) 작업을 실행하고 미해결 주소에 역방향 DNS 폴백 적용

        Args:
            addresses: 입력 주소 (빈 배치는 빈 결과)
            regions: 스캔할 리전
            classifiers: 이번 실행에 사용할 분류기 (None이면 self.classifiers)
            progress_tracker: 작업 단위 진행 추적기 (선택사항)

        Returns:
            AttributionResult
        """
        with self._run_lock:
            self.collector.clear()
            return self._resolve(addresses, regions, classifiers, progress_tracker)

    def _resolve(
        self,
        addresses: Iterable[str],
        regions: Sequence[str],
        classifiers: Sequence[Classifier] | None,
        progress_tracker: ProgressTracker | None,
    ) -> AttributionResult:
        table = AttributionTable(addresses)
        regions = tuple(dict.fromkeys(regions))
        if not table.addresses:
            return AttributionResult(regions=regions)

        classifiers = list(classifiers) if classifiers is not None else self.classifiers
        batch = frozenset(table.addresses)

        # DISPATCH: 주소가 아니라 (리전 x 분류기) 단위로 작업 생성
        tasks = [
            TaskSpec(
                identifier=classifier.name,
                region=region,
                func=partial(self._run_unit, classifier, region, batch, table),
            )
            for region in regions
            for classifier in classifiers
        ]
        logger.info(
            f"{len(table.addresses)}개 주소, {len(regions)}개 리전, {len(classifiers)}개 분류기 ({len(tasks)}개 작업)"
        )

        # AWAIT_ALL: executor는 모든 작업이 끝난 뒤 반환
        exec_result = self.executor.execute(tasks, progress_tracker=progress_tracker)
        task_errors = tuple(exec_result.get_errors())
        for error in task_errors:
            self._log_task_error(error)

        unresolved = tuple(table.pending())
        records = table.snapshot()

        # FALLBACK: 미해결 주소마다 정확히 한 번 PTR 조회
        reverse: dict[str, AttributionRecord] = {}
        if unresolved and self.config.reverse_dns:
            reverse = self.fallback.lookup(unresolved)

        logger.info(
            f"귀속 {len(records)}개, 역방향 DNS {len(reverse)}개, 실패 작업 {len(task_errors)}개, "
            f"중복 폐기 {table.discarded}개"
        )

        return AttributionResult(
            addresses=table.addresses,
            records=records,
            unresolved=unresolved,
            reverse_dns=reverse,
            regions=regions,
            task_errors=task_errors,
            diagnostics=tuple(self.collector.errors),
            discarded=table.discarded,
        )

    @staticmethod
    def _run_unit(
        classifier: Classifier,
        region: str,
        batch: frozenset[str],
        table: AttributionTable,
    ) -> dict[str, AttributionRecord]:
        """작업 단위: 분류 후 즉시 테이블에 병합 (워커 스레드에서 실행)"""
        found = classifier.classify(region, batch)
        records = {address: record for address, record in found.items() if address in batch}
        table.merge(records)
        return records

    def _log_task_error(self, error: TaskError) -> None:
        cause = error.original_exception
        message = format_error_for_user(cause) if isinstance(cause, Exception) else error.message
        msg = f"[{error.identifier}/{error.region}] {error.category.value}: {message}"
        if self.config.verbose:
            logger.warning(msg)
        else:
            logger.debug(msg)


def attribute(
    addresses: Iterable[str],
    regions: Sequence[str] | None = None,
    config: AttributionConfig | None = None,
    session: boto3.Session | Any | None = None,
) -> AttributionResult:
    """IP 귀속 편의 함수

    Example:
        result = attribute(["10.0.0.5"], regions=["us-east-1"])
    """
    return AttributionEngine(session=session, config=config).run(addresses, regions)
