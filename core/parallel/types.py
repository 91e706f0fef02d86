"""
core/parallel/types.py - 병렬 실행 결과 타입

병렬 작업 단위(리전 x 분류기)의 실행 결과와 에러 정보를 표현하는 데이터 클래스입니다.

주요 구성 요소:
- ErrorCategory: 에러 분류
- TaskError: 개별 작업 실패 정보
- TaskResult: 개별 작업 실행 결과
- ParallelExecutionResult: 전체 실행 결과 (Map-Reduce의 Reduce 단계)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCategory(Enum):
    """에러 카테고리"""

    THROTTLING = "throttling"
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    NETWORK = "network"
    TIMEOUT = "timeout"
    EXPIRED_TOKEN = "expired_token"
    INVALID_REQUEST = "invalid_request"
    SERVICE_ERROR = "service_error"
    UNKNOWN = "unknown"


@dataclass
class TaskError:
    """개별 작업 실패 정보

    Attributes:
        identifier: 작업 식별자 (분류기 이름 등)
        region: 대상 AWS 리전
        category: 에러 카테고리
        error_code: 에러 코드 (AWS 에러 코드 또는 예외 클래스명)
        message: 에러 메시지
        retries: 실패 전까지 수행한 재시도 횟수
        original_exception: 원본 예외
        timestamp: 에러 발생 시각
    """

    identifier: str
    region: str
    category: ErrorCategory
    error_code: str
    message: str
    retries: int = 0
    original_exception: BaseException | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    def __str__(self) -> str:
        return f"[{self.identifier}/{self.region}] {self.error_code}: {self.message}"


@dataclass
class TaskResult(Generic[T]):
    """개별 작업 실행 결과

    Attributes:
        identifier: 작업 식별자
        region: 대상 AWS 리전
        success: 성공 여부
        data: 성공 시 반환 데이터
        error: 실패 시 에러 정보
        duration_ms: 실행 시간 (밀리초)
    """

    identifier: str
    region: str
    success: bool
    data: T | None = None
    error: TaskError | None = None
    duration_ms: float = 0.0

    def __str__(self) -> str:
        status = "OK" if self.success else "FAIL"
        return f"[{self.identifier}/{self.region}] {status} ({self.duration_ms:.0f}ms)"


@dataclass
class ParallelExecutionResult(Generic[T]):
    """전체 병렬 실행 결과

    Attributes:
        results: 개별 작업 결과 목록 (완료 순서)
    """

    results: tuple[TaskResult[T], ...] | list[TaskResult[T]] = field(default_factory=tuple)

    @property
    def success_count(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def error_count(self) -> int:
        return sum(1 for r in self.results if not r.success)

    def get_errors(self) -> list[TaskError]:
        """실패한 작업의 에러 목록"""
        return [r.error for r in self.results if not r.success and r.error is not None]
