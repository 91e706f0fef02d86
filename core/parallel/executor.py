"""
core/parallel/executor.py - 병렬 작업 실행기

Map-Reduce 패턴으로 리전 x 분류기 작업 단위를 병렬 처리합니다.
ThreadPoolExecutor 기반이며, 지수 백오프 재시도를 지원합니다.

주요 구성 요소:
- ParallelConfig: 병렬 실행 설정 (워커 수, 재시도)
- TaskSpec: 작업 단위 명세 (식별자, 리전, 실행 함수)
- ParallelExecutor: 작업 목록 병렬 실행기

실패한 작업은 예외를 던지지 않고 TaskResult(success=False)로 수집되며,
다른 작업의 실행을 취소하지 않습니다. execute()는 제출된 모든 작업이
끝날 때까지 반환하지 않습니다.

Example:
    from core.parallel import ParallelExecutor, TaskSpec

    tasks = [
        TaskSpec(identifier="eip", region=r, func=lambda r=r: classify(r))
        for r in regions
    ]
    result = ParallelExecutor().execute(tasks)
    print(f"성공: {result.success_count}, 실패: {result.error_count}")
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass
from typing import Generic, Protocol, TypeVar

from .retry import RetryConfig, categorize_error, get_error_code, is_retryable
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

logger = logging.getLogger(__name__)

T = TypeVar("T")

MAX_WORKERS_LIMIT = 100


def _clear_exception_chain(e: BaseException) -> None:
    """traceback + chained exception 메모리 누수 방지"""
    e.__traceback__ = None
    if e.__context__ is not None:
        e.__context__.__traceback__ = None
    if e.__cause__ is not None:
        e.__cause__.__traceback__ = None


class ProgressTracker(Protocol):
    """진행 상황 추적기 인터페이스"""

    def set_total(self, total: int) -> None: ...

    def on_complete(self, success: bool) -> None: ...


@dataclass
class ParallelConfig:
    """병렬 실행 설정

    Attributes:
        max_workers: 최대 동시 스레드 수 (1~100)
        retry_config: 재시도 설정 (None이면 기본값)
    """

    max_workers: int = 20
    retry_config: RetryConfig | None = None

    def __post_init__(self) -> None:
        if self.max_workers < 1:
            raise ValueError(f"max_workers must be >= 1, got {self.max_workers}")
        if self.max_workers > MAX_WORKERS_LIMIT:
            self.max_workers = MAX_WORKERS_LIMIT


@dataclass(frozen=True)
class TaskSpec(Generic[T]):
    """작업 단위 명세

    Attributes:
        identifier: 작업 식별자 (로깅/에러 보고용, 예: 분류기 이름)
        region: 대상 AWS 리전
        func: 인자 없이 호출되는 실행 함수
    """

    identifier: str
    region: str
    func: Callable[[], T]


class ParallelExecutor:
    """병렬 작업 실행기

    특징:
    - ThreadPoolExecutor 기반 고정 크기 워커 풀
    - 재시도 가능한 에러(throttling, network)만 지수 백오프로 재시도
    - 작업별 실패 격리 (한 작업의 실패가 다른 작업을 취소하지 않음)
    """

    def __init__(self, config: ParallelConfig | None = None):
        """초기화

        Args:
            config: 병렬 실행 설정 (None이면 기본값)
        """
        self.config = config or ParallelConfig()
        self._retry_config = self.config.retry_config or RetryConfig()

    def execute(
        self,
        tasks: Sequence[TaskSpec[T]],
        progress_tracker: ProgressTracker | None = None,
    ) -> ParallelExecutionResult[T]:
        """작업 목록을 병렬 실행하고 모든 작업이 끝나면 결과 반환

        Args:
            tasks: 실행할 작업 목록
            progress_tracker: 진행 상황 추적기 (선택사항)

        Returns:
            ParallelExecutionResult[T]: 완료 순서대로 정렬된 전체 실행 결과
        """
        if not tasks:
            logger.debug("실행할 작업이 없습니다")
            return ParallelExecutionResult()

        workers = min(self.config.max_workers, len(tasks))
        logger.debug(f"병렬 실행 시작: {len(tasks)}개 작업, max_workers={workers}")

        if progress_tracker:
            progress_tracker.set_total(len(tasks))

        results: list[TaskResult[T]] = []
        start_time = time.monotonic()

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="ipwho") as executor:
            futures = {executor.submit(self._execute_single, task): task for task in tasks}

            for future in as_completed(futures):
                task = futures[future]
                try:
                    result = future.result()
                except Exception as e:
                    # _execute_single은 예외를 삼키므로 executor 자체 오류만 해당
                    logger.error(f"작업 실행 중 예외 [{task.identifier}/{task.region}]: {e}")
                    _clear_exception_chain(e)
                    result = TaskResult(
                        identifier=task.identifier,
                        region=task.region,
                        success=False,
                        error=TaskError(
                            identifier=task.identifier,
                            region=task.region,
                            category=ErrorCategory.UNKNOWN,
                            error_code="ExecutorError",
                            message=str(e),
                            original_exception=e,
                        ),
                    )

                results.append(result)
                if progress_tracker:
                    progress_tracker.on_complete(result.success)

        total_time = (time.monotonic() - start_time) * 1000
        exec_result = ParallelExecutionResult(results=tuple(results))

        logger.debug(
            f"병렬 실행 완료: 성공 {exec_result.success_count}, 실패 {exec_result.error_count}, 총 {total_time:.0f}ms"
        )

        return exec_result

    def _execute_single(self, task: TaskSpec[T]) -> TaskResult[T]:
        """단일 작업 실행 (워커 스레드 내에서 호출)

        재시도 가능한 에러는 RetryConfig에 따라 재시도하고,
        그 외의 에러는 즉시 실패 결과로 반환합니다.
        """
        start_time = time.monotonic()
        max_retries = self._retry_config.max_retries

        for attempt in range(max_retries + 1):
            try:
                data = task.func()
                return TaskResult(
                    identifier=task.identifier,
                    region=task.region,
                    success=True,
                    data=data,
                    duration_ms=(time.monotonic() - start_time) * 1000,
                )
            except Exception as e:
                if not is_retryable(e) or attempt >= max_retries:
                    _clear_exception_chain(e)
                    return TaskResult(
                        identifier=task.identifier,
                        region=task.region,
                        success=False,
                        error=TaskError(
                            identifier=task.identifier,
                            region=task.region,
                            category=categorize_error(e),
                            error_code=get_error_code(e),
                            message=str(e),
                            retries=attempt,
                            original_exception=e,
                        ),
                        duration_ms=(time.monotonic() - start_time) * 1000,
                    )

                delay = self._retry_config.get_delay(attempt)
                logger.debug(f"[{task.identifier}/{task.region}] 시도 {attempt + 1} 실패, {delay:.2f}초 후 재시도...")
                time.sleep(delay)

        # 루프는 항상 return으로 끝남
        raise AssertionError("unreachable")
