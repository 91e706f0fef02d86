"""
core/parallel - 병렬 처리 모듈

리전 x 분류기 작업 단위를 병렬로 안전하게 처리합니다.

주요 구성 요소:
- ParallelExecutor: 고정 크기 워커 풀 기반 병렬 실행기
- ErrorCollector: 작업 내부의 부수적 에러 수집기
- RetryConfig: 재시도 가능한 에러에 대한 지수 백오프 설정

Example:
    from core.parallel import ParallelConfig, ParallelExecutor, TaskSpec

    executor = ParallelExecutor(ParallelConfig(max_workers=10))
    result = executor.execute(
        [TaskSpec(identifier="eip", region=r, func=lambda r=r: classify(r)) for r in regions]
    )

    for error in result.get_errors():
        print(error)
"""

from .client import get_client
from .errors import (
    CollectedError,
    ErrorCollector,
    ErrorSeverity,
    try_or_default,
)
from .executor import ParallelConfig, ParallelExecutor, TaskSpec
from .retry import RetryConfig, categorize_error, get_error_code, is_retryable
from .types import ErrorCategory, ParallelExecutionResult, TaskError, TaskResult

__all__: list[str] = [
    # Executor
    "ParallelExecutor",
    "ParallelConfig",
    "TaskSpec",
    # Client
    "get_client",
    # Retry
    "RetryConfig",
    "categorize_error",
    "get_error_code",
    "is_retryable",
    # Error handling
    "ErrorCollector",
    "ErrorSeverity",
    "CollectedError",
    "try_or_default",
    # Types
    "ErrorCategory",
    "TaskError",
    "TaskResult",
    "ParallelExecutionResult",
]
