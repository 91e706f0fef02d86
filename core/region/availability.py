"""
core/region/availability.py - 리전 목록 조회

EC2.describe_regions()로 계정에서 접근 가능한 리전을 조회합니다.
조회에 실패해도 실행을 중단하지 않고 기본 리전 목록으로 대체합니다.
(일부 리전을 스캔하지 못할 위험만 남습니다.)

Usage:
    from core.region.availability import RegionEnumerator

    enumerator = RegionEnumerator(session)
    regions = enumerator.list_regions()
    if enumerator.used_fallback:
        print("기본 리전 목록 사용")
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from core.parallel import ErrorCollector, ErrorSeverity, get_client

from .data import DEFAULT_REGIONS

if TYPE_CHECKING:
    import boto3

logger = logging.getLogger(__name__)

# describe_regions 호출에 사용할 리전
BOOTSTRAP_REGION = "us-east-1"

_ENABLED_STATUSES = frozenset({"opt-in-not-required", "opted-in"})


class RegionEnumerator:
    """리전 목록 조회기

    Attributes:
        used_fallback: 마지막 list_regions() 호출이 기본 목록을 사용했는지 여부
        last_error: 폴백을 유발한 예외 (없으면 None)
    """

    def __init__(
        self,
        session: boto3.Session | Any,
        default_regions: Sequence[str] | None = None,
        collector: ErrorCollector | None = None,
        verbose: bool = False,
    ):
        """초기화

        Args:
            session: boto3 Session
            default_regions: 조회 실패 시 사용할 리전 목록 (None이면 DEFAULT_REGIONS)
            collector: 폴백 진단을 기록할 ErrorCollector (선택사항)
            verbose: True면 폴백을 WARNING으로 로깅
        """
        self.session = session
        self.default_regions = list(default_regions or DEFAULT_REGIONS)
        self.collector = collector
        self.verbose = verbose
        self.used_fallback = False
        self.last_error: Exception | None = None

    def list_regions(self) -> list[str]:
        """활성화된 리전 목록 조회 (실패 시 기본 목록)

        Returns:
            정렬된 리전 코드 리스트
        """
        self.used_fallback = False
        self.last_error = None

        try:
            ec2 = get_client(self.session, "ec2", region_name=BOOTSTRAP_REGION)
            response = ec2.describe_regions()
            regions = sorted(
                r["RegionName"]
                for r in response.get("Regions", [])
                if r.get("RegionName") and r.get("OptInStatus", "opt-in-not-required") in _ENABLED_STATUSES
            )
            if not regions:
                raise ValueError("describe_regions returned no regions")
            return regions

        except Exception as e:
            self.used_fallback = True
            self.last_error = e
            msg = f"리전 목록 조회 실패, 기본 리전 사용 {self.default_regions}: {e}"
            if self.verbose:
                logger.warning(msg)
            else:
                logger.debug(msg)
            if self.collector is not None:
                self.collector.collect(e, BOOTSTRAP_REGION, "describe_regions", ErrorSeverity.DEBUG)
            return list(self.default_regions)
