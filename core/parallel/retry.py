"""
core/parallel/retry.py - 에러 분류 및 재시도 유틸리티

작업 단위에서 발생한 예외의 분류, 재시도 가능 여부 판단,
지수 백오프 재시도 설정을 제공합니다.

주요 구성 요소:
- RetryConfig: 재시도 설정 (지수 백오프 + 지터)
- categorize_error: 예외를 ErrorCategory로 분류
- get_error_code: 예외에서 에러 코드 추출
- is_retryable: 재시도 가능 여부 판단
"""

from __future__ import annotations

import random
from dataclasses import dataclass

from botocore.exceptions import (
    ConnectTimeoutError,
    EndpointConnectionError,
    NoCredentialsError,
    ReadTimeoutError,
)

from core.exceptions import (
    APICallError,
    get_aws_error_code,
    is_access_denied,
    is_not_found,
    is_throttling,
)

from .types import ErrorCategory


@dataclass
class RetryConfig:
    """재시도 설정

    botocore 자체 재시도(adaptive)와 별개로, 작업 단위 전체를 다시 실행할 때 사용합니다.

    Attributes:
        max_retries: 최대 재시도 횟수 (0이면 재시도 안함)
        base_delay: 기본 대기 시간 (초)
        max_delay: 최대 대기 시간 (초)
        exponential_base: 지수 백오프 밑수
        jitter: 지터 사용 여부
    """

    max_retries: int = 2
    base_delay: float = 0.5
    max_delay: float = 10.0
    exponential_base: float = 2.0
    jitter: bool = True

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"max_retries must be >= 0, got {self.max_retries}")

    def get_delay(self, attempt: int) -> float:
        """재시도 대기 시간 계산

        Args:
            attempt: 현재 시도 횟수 (0부터 시작)

        Returns:
            대기 시간 (초)
        """
        delay = min(self.base_delay * (self.exponential_base**attempt), self.max_delay)

        if self.jitter:
            # Full jitter: [0, delay]
            delay = random.uniform(0, delay)

        return delay


# 재시도 가능한 AWS 에러 코드
RETRYABLE_ERROR_CODES: set[str] = {
    "Throttling",
    "ThrottlingException",
    "RequestLimitExceeded",
    "TooManyRequestsException",
    "RateExceeded",
    "ServiceUnavailable",
    "ServiceUnavailableException",
    "InternalError",
    "InternalServiceError",
    "RequestTimeout",
    "RequestTimeoutException",
}

_NETWORK_ERRORS = (EndpointConnectionError, ConnectionError)
_TIMEOUT_ERRORS = (ConnectTimeoutError, ReadTimeoutError, TimeoutError)


def categorize_error(error: BaseException) -> ErrorCategory:
    """예외 객체를 분석하여 ErrorCategory로 분류

    Args:
        error: 분류할 예외

    Returns:
        에러 카테고리
    """
    if isinstance(error, Exception):
        if is_throttling(error):
            return ErrorCategory.THROTTLING
        if is_access_denied(error):
            return ErrorCategory.ACCESS_DENIED
        if is_not_found(error):
            return ErrorCategory.NOT_FOUND

    code = get_aws_error_code(error) if isinstance(error, Exception) else ""
    if code:
        if "Timeout" in code:
            return ErrorCategory.TIMEOUT
        if code in ("ExpiredToken", "ExpiredTokenException", "RequestExpired"):
            return ErrorCategory.EXPIRED_TOKEN
        if code.startswith("Invalid") or "Validation" in code:
            return ErrorCategory.INVALID_REQUEST
        if code in RETRYABLE_ERROR_CODES:
            return ErrorCategory.SERVICE_ERROR
        return ErrorCategory.UNKNOWN

    # 타임아웃이 네트워크 에러의 하위 타입인 경우가 있어 먼저 확인
    if isinstance(error, _TIMEOUT_ERRORS):
        return ErrorCategory.TIMEOUT
    if isinstance(error, _NETWORK_ERRORS):
        return ErrorCategory.NETWORK
    if isinstance(error, NoCredentialsError):
        return ErrorCategory.ACCESS_DENIED

    return ErrorCategory.UNKNOWN


def get_error_code(error: BaseException) -> str:
    """예외 객체에서 에러 코드 문자열 추출

    ClientError/APICallError는 AWS 에러 코드를, 그 외에는 예외 클래스명을 반환합니다.
    """
    if isinstance(error, Exception):
        code = get_aws_error_code(error)
        if code:
            return code
        if isinstance(error, APICallError):
            return "Unknown"
    return error.__class__.__name__


def is_retryable(error: BaseException) -> bool:
    """재시도 가능한 에러인지 확인

    RETRYABLE_ERROR_CODES에 포함된 AWS 에러 코드이거나
    네트워크/타임아웃 에러인 경우 True를 반환합니다.
    """
    code = get_aws_error_code(error) if isinstance(error, Exception) else ""
    if code:
        return code in RETRYABLE_ERROR_CODES

    return isinstance(error, _NETWORK_ERRORS + _TIMEOUT_ERRORS)
