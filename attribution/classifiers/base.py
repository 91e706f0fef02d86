"""
attribution/classifiers/base.py - 분류기 공통 인터페이스

모든 분류기는 classify(region, addresses)를 구현합니다.

- 한 번의 호출은 하나의 리전에 대해 입력 배치 전체로 원격 조회를 수행합니다 (주소별 호출 아님).
- 일치 항목이 없으면 빈 딕셔너리를 반환합니다. 정상적인 결과입니다.
- 원격 호출 실패는 예외로 전파되며, 엔진의 executor가 작업 단위 에러로 변환합니다.
  botocore ClientError는 서비스/작업/리전 정보를 담은 APICallError로 감싸서 던집니다.
- 생성하는 모든 레코드에 자신의 kind와 조회한 region을 기록합니다.
- 호출 간에 공유되는 가변 상태가 없어 여러 스레드에서 동시에 호출해도 안전합니다.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Collection, Generator, Iterator, Sequence
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

from botocore.exceptions import ClientError

from core.exceptions import APICallError
from core.parallel import ErrorCollector, get_client

from ..types import AttributionRecord, RecordKind

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)

# EC2 Filter 하나에 넣을 수 있는 값 개수 상한
MAX_FILTER_VALUES = 200


def chunked(values: Sequence[str], size: int = MAX_FILTER_VALUES) -> Iterator[list[str]]:
    """값 목록을 size 단위로 분할"""
    for i in range(0, len(values), size):
        yield list(values[i : i + size])


def get_name_tag(tags: list[dict[str, str]] | None) -> str:
    """AWS 태그 목록에서 Name 태그 값 추출"""
    for tag in tags or []:
        if tag.get("Key") == "Name":
            return tag.get("Value", "")
    return ""


class Classifier(ABC):
    """분류기 베이스 클래스

    Attributes:
        name: 분류기 이름 (작업 식별자, 로깅용)
        kind: 생성하는 레코드 종류
    """

    name: str = "classifier"
    kind: RecordKind

    def __init__(
        self,
        session: boto3.Session | Any,
        collector: ErrorCollector | None = None,
    ):
        """초기화

        Args:
            session: boto3 Session
            collector: 부수적 에러를 기록할 ErrorCollector (선택사항)
        """
        self.session = session
        self.collector = collector

    @abstractmethod
    def classify(self, region: str, addresses: Collection[str]) -> dict[str, AttributionRecord]:
        """리전에서 주소 배치를 조회하여 귀속 레코드 반환

        Args:
            region: 조회할 AWS 리전
            addresses: 대상 주소 배치 (읽기 전용)

        Returns:
            {주소: AttributionRecord} - 배치에 포함된 주소만 포함
        """

    def _client(self, service: str, region: str) -> Any:
        return get_client(self.session, service, region_name=region)

    @contextmanager
    def _api_call(self, service: str, operation: str, region: str) -> Generator[None, None, None]:
        """블록 안의 ClientError를 APICallError로 변환

        Example:
            with self._api_call("ec2", "describe_addresses", region):
                response = ec2.describe_addresses(Filters=filters)
        """
        try:
            yield
        except ClientError as e:
            raise APICallError.from_client_error(e, service, operation, region) from e

    def _record(self, region: str, **detail: Any) -> AttributionRecord:
        return AttributionRecord(kind=self.kind, region=region, detail=detail)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(name={self.name!r})"
