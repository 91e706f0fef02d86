"""
attribution/dns_client.py - DNS 정방향/역방향 조회

dnspython 기반 조회기입니다. 모든 실패는 DNSLookupError로 변환되어
호출자가 주소/이름 단위로 격리할 수 있습니다.
"""

from __future__ import annotations

import logging
import threading

import dns.exception
import dns.resolver
import dns.reversename

from core.exceptions import DNSLookupError

logger = logging.getLogger(__name__)

# 로드밸런서 DNS 이름 해석 시 조회할 레코드 타입
FORWARD_RDTYPES = ("A", "AAAA")


def _strip_dot(name: str) -> str:
    return name[:-1] if name.endswith(".") else name


class DNSResolver:
    """DNS 조회기

    Resolver는 첫 조회 시점에 생성됩니다 (시스템 resolv.conf 사용).
    nameservers를 지정하면 시스템 설정 대신 해당 서버를 사용합니다.
    """

    def __init__(
        self,
        timeout: float = 2.0,
        lifetime: float = 4.0,
        nameservers: list[str] | None = None,
    ):
        self.timeout = timeout
        self.lifetime = lifetime
        self.nameservers = nameservers
        self._resolver: dns.resolver.Resolver | None = None
        self._lock = threading.Lock()

    @property
    def resolver(self) -> dns.resolver.Resolver:
        with self._lock:
            if self._resolver is None:
                resolver = dns.resolver.Resolver(configure=self.nameservers is None)
                if self.nameservers:
                    resolver.nameservers = list(self.nameservers)
                resolver.timeout = self.timeout
                resolver.lifetime = self.lifetime
                self._resolver = resolver
            return self._resolver

    def reverse_lookup(self, address: str) -> list[str]:
        """PTR 조회

        Args:
            address: IPv4/IPv6 주소

        Returns:
            PTR 이름 목록 (끝의 '.' 제거, 레코드가 없으면 빈 리스트)

        Raises:
            DNSLookupError: 주소 형식 오류, NXDOMAIN, 타임아웃 등
        """
        try:
            rev_name = dns.reversename.from_address(address)
            answers = self.resolver.resolve(rev_name, "PTR", raise_on_no_answer=False)
        except (dns.exception.DNSException, ValueError) as e:
            raise DNSLookupError(address, "PTR", cause=e) from e

        return [_strip_dot(rr.to_text()) for rr in answers]

    def resolve(self, name: str) -> list[str]:
        """A/AAAA 조회

        한 레코드 타입만 성공해도 결과를 반환합니다.

        Args:
            name: 조회할 호스트 이름

        Returns:
            주소 목록 (중복 제거, 조회 순서 유지)

        Raises:
            DNSLookupError: 모든 레코드 타입 조회가 실패한 경우
        """
        addresses: list[str] = []
        last_error: Exception | None = None
        succeeded = False

        for rdtype in FORWARD_RDTYPES:
            try:
                answers = self.resolver.resolve(name, rdtype, raise_on_no_answer=False)
            except dns.exception.DNSException as e:
                last_error = e
                continue
            succeeded = True
            addresses.extend(rr.to_text() for rr in answers)

        if not succeeded:
            raise DNSLookupError(name, "/".join(FORWARD_RDTYPES), cause=last_error)

        return list(dict.fromkeys(addresses))
