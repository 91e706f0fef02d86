"""
core/exceptions.py - 통합 예외 계층 구조

ipwho 전체에서 사용되는 예외 클래스와 botocore 에러 판별 유틸리티를 정의합니다.

예외 계층 구조:
    IPWhoError (베이스)
    ├── APICallError (AWS API 호출)
    ├── DNSLookupError (DNS 정/역방향 조회)
    ├── ConfigError (설정 관련)
    └── ValidationError (입력 검증)

Usage:
    from core.exceptions import APICallError, is_access_denied

    try:
        ec2.describe_instances()
    except ClientError as e:
        if is_access_denied(e):
            ...
        raise APICallError.from_client_error(e, "ec2", "describe_instances", region) from e
"""

from typing import Any, Dict, List, Optional

ACCESS_DENIED_CODES = frozenset(
    {
        "AccessDenied",
        "AccessDeniedException",
        "UnauthorizedAccess",
        "UnauthorizedOperation",
        "AuthFailure",
    }
)

THROTTLING_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "TooManyRequestsException",
        "RateExceeded",
    }
)

NOT_FOUND_CODES = frozenset(
    {
        "ResourceNotFoundException",
        "NotFoundException",
        "LoadBalancerNotFound",
        "InvalidAddress.NotFound",
        "InvalidInstanceID.NotFound",
    }
)


# =============================================================================
# 베이스 예외
# =============================================================================


class IPWhoError(Exception):
    """ipwho 기본 예외 클래스

    Attributes:
        message: 에러 메시지
        cause: 원인 예외 (체이닝용)
        details: 추가 상세 정보
    """

    def __init__(
        self,
        message: str,
        cause: Optional[Exception] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.cause = cause
        self.details = details or {}

    def __str__(self) -> str:
        if self.cause:
            return f"{self.message}: {self.cause}"
        return self.message


# =============================================================================
# 원격 호출 관련 예외
# =============================================================================


class APICallError(IPWhoError):
    """AWS API 호출 관련 예외

    botocore의 ClientError를 래핑하여 리전/작업 정보를 함께 전달합니다.
    """

    def __init__(
        self,
        service: str,
        operation: str,
        region: Optional[str] = None,
        error_code: Optional[str] = None,
        error_message: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        message = f"{service}.{operation}"
        if region:
            message = f"[{region}] {message}"
        if error_code:
            message = f"{message} 실패 ({error_code})"
        if error_message:
            message = f"{message}: {error_message}"

        super().__init__(message, cause)
        self.service = service
        self.operation = operation
        self.region = region
        self.error_code = error_code
        self.error_message = error_message
        self.details.update(
            {
                "service": service,
                "operation": operation,
                "region": region,
                "error_code": error_code,
            }
        )

    @classmethod
    def from_client_error(
        cls,
        error: Exception,
        service: str,
        operation: str,
        region: Optional[str] = None,
    ) -> "APICallError":
        """botocore ClientError에서 APICallError 생성"""
        error_info = getattr(error, "response", {}).get("Error", {})
        return cls(
            service=service,
            operation=operation,
            region=region,
            error_code=error_info.get("Code"),
            error_message=error_info.get("Message"),
            cause=error,
        )


class DNSLookupError(IPWhoError):
    """DNS 조회 실패 예외

    NXDOMAIN, NoAnswer, 타임아웃 등 dnspython 예외를 래핑합니다.
    """

    def __init__(
        self,
        query: str,
        rdtype: str,
        cause: Optional[Exception] = None,
    ):
        super().__init__(f"DNS 조회 실패 [{rdtype} {query}]", cause)
        self.query = query
        self.rdtype = rdtype
        self.details.update({"query": query, "rdtype": rdtype})


# =============================================================================
# 설정/검증 예외
# =============================================================================


class ConfigError(IPWhoError):
    """설정 관련 예외"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        cause: Optional[Exception] = None,
    ):
        super().__init__(message, cause)
        self.config_key = config_key
        if config_key:
            self.details["config_key"] = config_key


class ValidationError(IPWhoError):
    """입력 검증 예외

    처리할 수 있는 주소가 하나도 없을 때처럼 작업 자체를 시작할 수 없는 경우에만 사용합니다.
    """

    def __init__(
        self,
        message: str,
        invalid_values: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.invalid_values = invalid_values or []
        if self.invalid_values:
            self.details["invalid_values"] = self.invalid_values


# =============================================================================
# 예외 유틸리티 함수
# =============================================================================


def get_aws_error_code(error: Exception) -> str:
    """예외에서 AWS 에러 코드 추출 (없으면 빈 문자열)"""
    if isinstance(error, APICallError):
        return error.error_code or ""

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        return response.get("Error", {}).get("Code", "")

    return ""


def is_access_denied(error: Exception) -> bool:
    """액세스 거부 오류인지 확인

    Args:
        error: 확인할 예외

    Returns:
        액세스 거부 오류이면 True
    """
    return get_aws_error_code(error) in ACCESS_DENIED_CODES


def is_throttling(error: Exception) -> bool:
    """스로틀링 오류인지 확인"""
    return get_aws_error_code(error) in THROTTLING_CODES


def is_not_found(error: Exception) -> bool:
    """리소스를 찾을 수 없는 오류인지 확인"""
    return get_aws_error_code(error) in NOT_FOUND_CODES


def format_error_for_user(error: Exception) -> str:
    """사용자에게 표시할 에러 메시지 포맷팅

    Args:
        error: 예외

    Returns:
        사용자 친화적인 에러 메시지
    """
    if isinstance(error, IPWhoError):
        return str(error)

    response = getattr(error, "response", None)
    if isinstance(response, dict):
        error_info = response.get("Error", {})
        code = error_info.get("Code", "UnknownError")
        message = error_info.get("Message", str(error))

        friendly_messages = {
            "AccessDenied": "권한이 없습니다. IAM 정책을 확인하세요.",
            "UnauthorizedOperation": "권한이 없습니다. IAM 정책을 확인하세요.",
            "AuthFailure": "인증에 실패했습니다. 자격 증명을 확인하세요.",
            "ExpiredToken": "인증 토큰이 만료되었습니다. 다시 로그인하세요.",
            "InvalidClientTokenId": "잘못된 자격 증명입니다.",
            "OptInRequired": "옵트인되지 않은 리전입니다.",
            "Throttling": "요청이 너무 많습니다. 잠시 후 다시 시도하세요.",
        }

        return friendly_messages.get(code, f"{code}: {message}")

    return str(error)
