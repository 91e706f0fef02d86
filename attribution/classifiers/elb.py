"""
attribution/classifiers/elb.py - 로드밸런서 분류기

리전의 ALB/NLB/GWLB(elbv2)와 Classic ELB를 모두 나열한 뒤,
각 로드밸런서 DNS 이름을 주소로 해석하여 입력 배치와 비교합니다.

- NLB의 고정 주소(EIP/사설 IP)는 DNS 해석 없이 바로 비교합니다.
- DNS 이름 해석은 고정 크기 워커 풀에서 병렬로 수행합니다.
  로드밸런서 수는 입력 크기와 무관하게 늘어날 수 있어 순차 해석은 지연의 주원인이 됩니다.
- 한 이름의 해석 실패는 ErrorCollector에 기록하고 건너뜁니다. 나머지 해석은 계속됩니다.
"""

from __future__ import annotations

import logging
from collections.abc import Collection
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

from core.exceptions import DNSLookupError
from core.parallel import ErrorCollector, ErrorSeverity

from ..dns_client import DNSResolver
from ..types import AttributionRecord, RecordKind
from .base import Classifier

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)

DEFAULT_DNS_WORKERS = 10


@dataclass
class LoadBalancerInfo:
    """분류에 필요한 로드밸런서 정보"""

    name: str
    lb_type: str
    dns_name: str
    arn: str = ""
    scheme: str = ""
    static_addresses: list[str] = field(default_factory=list)

    @property
    def resource_id(self) -> str:
        # CLB는 ARN이 없음
        return self.arn or self.name


class LoadBalancerClassifier(Classifier):
    """로드밸런서 DNS 이름 해석 기반 분류기"""

    name = "elb"
    kind = RecordKind.LOAD_BALANCER

    def __init__(
        self,
        session: boto3.Session | Any,
        resolver: DNSResolver | None = None,
        dns_workers: int = DEFAULT_DNS_WORKERS,
        collector: ErrorCollector | None = None,
    ):
        """초기화

        Args:
            session: boto3 Session
            resolver: DNS 조회기 (None이면 기본 설정으로 생성)
            dns_workers: DNS 이름 해석 워커 풀 크기
            collector: 이름 해석/목록 조회 실패를 기록할 ErrorCollector
        """
        super().__init__(session, collector)
        if dns_workers < 1:
            raise ValueError(f"dns_workers must be >= 1, got {dns_workers}")
        self.resolver = resolver or DNSResolver()
        self.dns_workers = dns_workers

    def classify(self, region: str, addresses: Collection[str]) -> dict[str, AttributionRecord]:
        batch = frozenset(addresses)
        if not batch:
            return {}

        load_balancers = self.list_load_balancers(region)
        if not load_balancers:
            return {}

        resolved = self._resolve_all(region, load_balancers)

        # 나열 순서대로 병합하여 같은 입력에 같은 결과를 보장
        records: dict[str, AttributionRecord] = {}
        for lb, dns_addresses in zip(load_balancers, resolved):
            matched = [a for a in (*lb.static_addresses, *dns_addresses) if a in batch]
            if not matched:
                continue
            record = self._record(
                region,
                id=lb.resource_id,
                name=lb.name,
                type=lb.lb_type,
                dns_name=lb.dns_name,
                scheme=lb.scheme,
            )
            for address in matched:
                records.setdefault(address, record)

        logger.debug(f"[{self.name}/{region}] 로드밸런서 {len(load_balancers)}개, {len(records)}개 주소 일치")
        return records

    def list_load_balancers(self, region: str) -> list[LoadBalancerInfo]:
        """리전의 로드밸런서 목록 (elbv2 + classic)

        한쪽 API만 실패하면 ErrorCollector에 기록하고 나머지 결과를 사용합니다.
        둘 다 실패하면 기록 없이 첫 번째 예외를 전파하며, 작업 단위 에러가 유일한 기록이 됩니다.
        """
        load_balancers: list[LoadBalancerInfo] = []
        failures: list[tuple[str, Exception]] = []

        listers = (
            ("elbv2.describe_load_balancers", self._list_v2),
            ("elb.describe_load_balancers", self._list_classic),
        )
        for operation, collect in listers:
            try:
                load_balancers.extend(collect(region))
            except Exception as e:
                failures.append((operation, e))

        if len(failures) == len(listers):
            raise failures[0][1]

        if self.collector is not None:
            for operation, error in failures:
                self.collector.collect(error, region, operation)

        return load_balancers

    def _list_v2(self, region: str) -> list[LoadBalancerInfo]:
        elbv2 = self._client("elbv2", region)
        result: list[LoadBalancerInfo] = []

        paginator = elbv2.get_paginator("describe_load_balancers")
        with self._api_call("elbv2", "describe_load_balancers", region):
            pages = list(paginator.paginate())

        for page in pages:
            for lb in page.get("LoadBalancers", []):
                static_addresses = []
                for az in lb.get("AvailabilityZones", []):
                    for lb_address in az.get("LoadBalancerAddresses", []):
                        for key in ("IpAddress", "PrivateIPv4Address", "IPv6Address"):
                            if lb_address.get(key):
                                static_addresses.append(lb_address[key])

                result.append(
                    LoadBalancerInfo(
                        name=lb.get("LoadBalancerName", ""),
                        lb_type=lb.get("Type", ""),
                        dns_name=lb.get("DNSName", ""),
                        arn=lb.get("LoadBalancerArn", ""),
                        scheme=lb.get("Scheme", ""),
                        static_addresses=static_addresses,
                    )
                )

        return result

    def _list_classic(self, region: str) -> list[LoadBalancerInfo]:
        elb = self._client("elb", region)
        result: list[LoadBalancerInfo] = []

        paginator = elb.get_paginator("describe_load_balancers")
        with self._api_call("elb", "describe_load_balancers", region):
            pages = list(paginator.paginate())

        for page in pages:
            for lb in page.get("LoadBalancerDescriptions", []):
                result.append(
                    LoadBalancerInfo(
                        name=lb.get("LoadBalancerName", ""),
                        lb_type="classic",
                        dns_name=lb.get("DNSName", ""),
                        scheme=lb.get("Scheme", ""),
                    )
                )

        return result

    def _resolve_all(self, region: str, load_balancers: list[LoadBalancerInfo]) -> list[list[str]]:
        """모든 로드밸런서 DNS 이름을 고정 크기 풀에서 해석

        Returns:
            load_balancers와 같은 순서의 주소 목록 (실패/이름 없음은 빈 리스트)
        """
        workers = min(self.dns_workers, len(load_balancers))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"elb-dns-{region}") as pool:
            return list(pool.map(lambda lb: self._resolve_one(region, lb), load_balancers))

    def _resolve_one(self, region: str, lb: LoadBalancerInfo) -> list[str]:
        if not lb.dns_name:
            return []
        try:
            return self.resolver.resolve(lb.dns_name)
        except DNSLookupError as e:
            if self.collector is not None:
                self.collector.collect(e, region, "resolve", ErrorSeverity.INFO, resource_id=lb.dns_name)
            else:
                logger.debug(f"[{self.name}/{region}] {lb.dns_name} 해석 실패: {e}")
            return []
