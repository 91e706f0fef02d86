"""
tests/conftest.py - pytest 공통 픽스처

AWS API 모킹과 테스트 헬퍼를 제공합니다.

Usage:
    def test_something(mock_session, fake_classifier):
        # mock_session: client()가 MagicMock을 반환하는 boto3.Session 대역
        # fake_classifier: 원격 호출 없이 미리 정한 결과를 반환하는 분류기 팩토리
        pass
"""

import sys
import threading
from pathlib import Path
from typing import Any, Callable, Collection, Dict, Optional
from unittest.mock import MagicMock

import pytest

# 프로젝트 루트를 sys.path에 추가
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

from attribution.classifiers.base import Classifier  # noqa: E402
from attribution.types import AttributionRecord, RecordKind  # noqa: E402

# =============================================================================
# 환경 설정
# =============================================================================


@pytest.fixture(autouse=True)
def setup_test_environment(monkeypatch):
    """테스트 환경 설정"""
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    for name in ("IPWHO_MAX_WORKERS", "IPWHO_DNS_WORKERS", "IPWHO_DNS_TIMEOUT", "IPWHO_VERBOSE"):
        monkeypatch.delenv(name, raising=False)

    yield


# =============================================================================
# AWS 모킹 픽스처
# =============================================================================


@pytest.fixture
def mock_session():
    """boto3.Session 대역"""
    session = MagicMock()
    session.client.return_value = MagicMock()
    session.region_name = "us-east-1"
    return session


def make_paginator(pages):
    """paginate()가 주어진 페이지를 반환하는 paginator 모킹"""
    paginator = MagicMock()
    paginator.paginate.return_value = pages
    return paginator


def create_mock_client_error(
    error_code: str,
    error_message: str = "Test error",
    operation_name: str = "TestOperation",
) -> Exception:
    """ClientError 생성 헬퍼"""
    from botocore.exceptions import ClientError

    return ClientError(
        {
            "Error": {
                "Code": error_code,
                "Message": error_message,
            }
        },
        operation_name,
    )


# =============================================================================
# 분류기/DNS 대역
# =============================================================================


class FakeClassifier(Classifier):
    """원격 호출 없이 리전별 결과를 반환하는 분류기

    results: {region: {address: detail}} 또는 {region: Exception}
    """

    def __init__(
        self,
        name: str,
        kind: RecordKind = RecordKind.INSTANCE,
        results: Optional[Dict[str, Any]] = None,
        delay: Optional[Callable[[str], None]] = None,
    ):
        super().__init__(session=None)
        self.name = name
        self.kind = kind
        self.results = results or {}
        self.delay = delay
        self.calls: list = []
        self._lock = threading.Lock()

    def classify(self, region: str, addresses: Collection[str]) -> Dict[str, AttributionRecord]:
        with self._lock:
            self.calls.append((region, frozenset(addresses)))
        if self.delay:
            self.delay(region)

        outcome = self.results.get(region, {})
        if isinstance(outcome, BaseException):
            raise outcome
        return {
            address: self._record(region, **detail) for address, detail in outcome.items() if address in addresses
        }


@pytest.fixture
def fake_classifier():
    """FakeClassifier 팩토리"""
    return FakeClassifier


class FakeResolver:
    """DNSResolver 대역

    ptr: {address: [이름] 또는 Exception}
    forward: {name: [주소] 또는 Exception}
    """

    def __init__(self, ptr=None, forward=None):
        self.ptr = ptr or {}
        self.forward = forward or {}
        self.reverse_calls: list = []
        self.resolve_calls: list = []
        self._lock = threading.Lock()

    def reverse_lookup(self, address):
        with self._lock:
            self.reverse_calls.append(address)
        outcome = self.ptr.get(address, [])
        if isinstance(outcome, BaseException):
            raise outcome
        return list(outcome)

    def resolve(self, name):
        with self._lock:
            self.resolve_calls.append(name)
        outcome = self.forward.get(name, [])
        if isinstance(outcome, BaseException):
            raise outcome
        return list(outcome)


@pytest.fixture
def fake_resolver():
    """FakeResolver 팩토리"""
    return FakeResolver


# =============================================================================
# moto 통합
# =============================================================================


@pytest.fixture
def aws_credentials(monkeypatch):
    """moto 사용 시 AWS 자격 증명 설정"""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")
    monkeypatch.delenv("AWS_PROFILE", raising=False)
