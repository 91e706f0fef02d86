"""
attribution/classifiers/eip.py - Elastic IP 분류기
"""

from __future__ import annotations

import logging
from collections.abc import Collection

from ..types import AttributionRecord, RecordKind
from .base import Classifier, chunked, get_name_tag

logger = logging.getLogger(__name__)


class ElasticIPClassifier(Classifier):
    """공인 IP로 Elastic IP 조회 (describe_addresses public-ip 필터)

    EC2-Classic 주소처럼 AllocationId가 없으면 공인 IP를 id로 사용합니다.
    """

    name = "eip"
    kind = RecordKind.ELASTIC_IP

    def classify(self, region: str, addresses: Collection[str]) -> dict[str, AttributionRecord]:
        batch = frozenset(addresses)
        if not batch:
            return {}

        ec2 = self._client("ec2", region)
        records: dict[str, AttributionRecord] = {}

        # describe_addresses는 페이지네이션이 없음
        for values in chunked(sorted(batch)):
            with self._api_call("ec2", "describe_addresses", region):
                response = ec2.describe_addresses(Filters=[{"Name": "public-ip", "Values": values}])
            for address in response.get("Addresses", []):
                public_ip = address.get("PublicIp", "")
                if public_ip not in batch:
                    continue
                records.setdefault(
                    public_ip,
                    self._record(
                        region,
                        id=address.get("AllocationId") or public_ip,
                        name=get_name_tag(address.get("Tags")),
                        instance_id=address.get("InstanceId", ""),
                        network_interface_id=address.get("NetworkInterfaceId", ""),
                        private_ip=address.get("PrivateIpAddress", ""),
                        association_id=address.get("AssociationId", ""),
                        domain=address.get("Domain", ""),
                    ),
                )

        logger.debug(f"[{self.name}/{region}] {len(records)}/{len(batch)}개 주소 일치")
        return records
