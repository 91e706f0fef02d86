"""
attribution/classifiers - IP 분류기

각 분류기는 한 종류의 원격 조회로 주소 귀속을 시도합니다.

- PublicInstanceClassifier: 공인 IP -> EC2 인스턴스
- PrivateInstanceClassifier: 사설 IP -> EC2 인스턴스
- ElasticIPClassifier: 공인 IP -> Elastic IP
- LoadBalancerClassifier: 로드밸런서 DNS 이름 해석 결과 -> 로드밸런서
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from .base import Classifier
from .eip import ElasticIPClassifier
from .elb import LoadBalancerClassifier
from .instance import PrivateInstanceClassifier, PublicInstanceClassifier

if TYPE_CHECKING:
    from core.config import AttributionConfig
    from core.parallel import ErrorCollector

    from ..dns_client import DNSResolver


def default_classifiers(
    session: Any,
    config: AttributionConfig,
    resolver: DNSResolver,
    collector: ErrorCollector | None = None,
) -> list[Classifier]:
    """기본 분류기 4종 생성"""
    return [
        PublicInstanceClassifier(session, collector),
        PrivateInstanceClassifier(session, collector),
        ElasticIPClassifier(session, collector),
        LoadBalancerClassifier(session, resolver, config.dns_workers, collector),
    ]


__all__: list[str] = [
    "Classifier",
    "ElasticIPClassifier",
    "LoadBalancerClassifier",
    "PrivateInstanceClassifier",
    "PublicInstanceClassifier",
    "default_classifiers",
]
