"""
core/parallel/client.py - boto3 client 생성 헬퍼

Retry(adaptive 모드) + 타임아웃 + 연결 풀이 설정된 boto3 client를 생성합니다.

boto3.Session.client()는 스레드 세이프하지 않으므로 client 생성은 락으로 직렬화합니다.
생성된 client 자체는 여러 스레드에서 동시에 사용해도 안전합니다.

Example:
    from core.parallel.client import get_client

    ec2 = get_client(session, "ec2", region_name="us-east-1")
    reservations = ec2.describe_instances()["Reservations"]
"""

from __future__ import annotations

import threading
from typing import TYPE_CHECKING, Any, Literal, cast

from botocore.config import Config

if TYPE_CHECKING:
    import boto3

RetryMode = Literal["legacy", "standard", "adaptive"]

DEFAULT_MAX_ATTEMPTS = 5
DEFAULT_RETRY_MODE: RetryMode = "adaptive"
DEFAULT_CONNECT_TIMEOUT = 10  # 초
DEFAULT_READ_TIMEOUT = 30  # 초
DEFAULT_MAX_POOL_CONNECTIONS = 25  # max_workers(20) 이상 권장

_session_lock = threading.Lock()


def build_config(
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    retry_mode: RetryMode = DEFAULT_RETRY_MODE,
    connect_timeout: int = DEFAULT_CONNECT_TIMEOUT,
    read_timeout: int = DEFAULT_READ_TIMEOUT,
    max_pool_connections: int = DEFAULT_MAX_POOL_CONNECTIONS,
) -> Config:
    """botocore Config 생성"""
    return Config(
        retries={"max_attempts": max_attempts, "mode": retry_mode},  # pyright: ignore[reportArgumentType]
        connect_timeout=connect_timeout,
        read_timeout=read_timeout,
        max_pool_connections=max_pool_connections,
    )


def get_client(
    session: boto3.Session,
    service_name: str,
    region_name: str | None = None,
    config: Config | None = None,
    **kwargs: Any,
) -> Any:
    """Retry가 적용된 boto3 client 생성

    Args:
        session: boto3 Session
        service_name: AWS 서비스 이름 (ec2, elbv2, elb 등)
        region_name: 리전 (None이면 세션 기본값)
        config: 추가 botocore Config (기본 설정과 병합)
        **kwargs: session.client()에 전달할 추가 인자

    Returns:
        boto3 client
    """
    merged = build_config()
    if config is not None:
        merged = merged.merge(config)

    with _session_lock:
        # cast to Any to bypass boto3-stubs Literal type requirements
        return session.client(  # pyright: ignore[reportCallIssue]
            cast(Any, service_name),
            region_name=region_name,
            config=merged,
            **kwargs,
        )
