"""
attribution/classifiers/instance.py - EC2 인스턴스 분류기

describe_instances 필터로 공인/사설 주소를 가진 인스턴스를 찾습니다.
배치는 IP 버전별로 나누어 버전에 맞는 필터로만 조회합니다.
"""

from __future__ import annotations

import ipaddress
import logging
from abc import abstractmethod
from collections.abc import Collection, Iterator
from typing import Any

from ..types import AttributionRecord, RecordKind
from .base import Classifier, chunked, get_name_tag

logger = logging.getLogger(__name__)


def _public_addresses(instance: dict[str, Any]) -> Iterator[str]:
    """인스턴스의 모든 공인 IPv4 주소 (기본 + ENI 연결 주소)"""
    if instance.get("PublicIpAddress"):
        yield instance["PublicIpAddress"]
    for eni in instance.get("NetworkInterfaces", []):
        association = eni.get("Association") or {}
        if association.get("PublicIp"):
            yield association["PublicIp"]
        for private in eni.get("PrivateIpAddresses", []):
            association = private.get("Association") or {}
            if association.get("PublicIp"):
                yield association["PublicIp"]


def _private_addresses(instance: dict[str, Any]) -> Iterator[str]:
    """인스턴스의 모든 사설 IPv4/IPv6 주소 (기본 + 보조)"""
    if instance.get("PrivateIpAddress"):
        yield instance["PrivateIpAddress"]
    for eni in instance.get("NetworkInterfaces", []):
        for private in eni.get("PrivateIpAddresses", []):
            if private.get("PrivateIpAddress"):
                yield private["PrivateIpAddress"]
        for ipv6 in eni.get("Ipv6Addresses", []):
            if ipv6.get("Ipv6Address"):
                yield ipv6["Ipv6Address"]


def _ip_version(address: str) -> int:
    try:
        return ipaddress.ip_address(address).version
    except ValueError:
        return 0


class _InstanceClassifier(Classifier):
    """EC2 인스턴스 분류기 공통 구현

    Attributes:
        filters: (IP 버전, describe_instances 필터 이름) 목록.
            배치는 버전별로 나뉘어 해당 필터로만 조회되며, 목록에 없는 버전의 주소는 조회하지 않습니다.
        source: 레코드 detail의 source 값
    """

    kind = RecordKind.INSTANCE
    filters: tuple[tuple[int, str], ...] = ()
    source: str = ""

    @abstractmethod
    def _instance_addresses(self, instance: dict[str, Any]) -> Iterator[str]:
        """인스턴스에서 이 분류기가 비교할 주소 목록"""

    def classify(self, region: str, addresses: Collection[str]) -> dict[str, AttributionRecord]:
        batch = frozenset(addresses)
        if not batch:
            return {}

        ec2 = self._client("ec2", region)
        paginator = ec2.get_paginator("describe_instances")
        records: dict[str, AttributionRecord] = {}

        for version, filter_name in self.filters:
            targets = sorted(a for a in batch if _ip_version(a) == version)
            for values in chunked(targets):
                with self._api_call("ec2", "describe_instances", region):
                    for page in paginator.paginate(Filters=[{"Name": filter_name, "Values": values}]):
                        for reservation in page.get("Reservations", []):
                            for instance in reservation.get("Instances", []):
                                self._match(region, instance, batch, records)

        logger.debug(f"[{self.name}/{region}] {len(records)}/{len(batch)}개 주소 일치")
        return records

    def _match(
        self,
        region: str,
        instance: dict[str, Any],
        batch: frozenset[str],
        records: dict[str, AttributionRecord],
    ) -> None:
        record = self._record(
            region,
            id=instance.get("InstanceId", ""),
            name=get_name_tag(instance.get("Tags")),
            state=(instance.get("State") or {}).get("Name", ""),
            vpc_id=instance.get("VpcId", ""),
            source=self.source,
        )
        for address in self._instance_addresses(instance):
            if address in batch:
                records.setdefault(address, record)


class PublicInstanceClassifier(_InstanceClassifier):
    """공인 IPv4로 EC2 인스턴스 조회 (ip-address 필터)"""

    name = "ec2-public"
    filters = ((4, "ip-address"),)
    source = "public-ip"

    def _instance_addresses(self, instance: dict[str, Any]) -> Iterator[str]:
        return _public_addresses(instance)


class PrivateInstanceClassifier(_InstanceClassifier):
    """사설 IPv4/IPv6로 EC2 인스턴스 조회

    IPv4는 private-ip-address 필터로, IPv6는 ENI의 IPv6 주소 필터로 조회합니다.
    """

    name = "ec2-private"
    filters = (
        (4, "private-ip-address"),
        (6, "network-interface.ipv6-addresses.ipv6-address"),
    )
    source = "private-ip"

    def _instance_addresses(self, instance: dict[str, Any]) -> Iterator[str]:
        return _private_addresses(instance)
