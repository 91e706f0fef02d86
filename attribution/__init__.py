"""
attribution - IP 주소 귀속

IP 주소를 소유한 AWS 리소스(EC2 인스턴스, Elastic IP, 로드밸런서)를 찾고,
찾지 못하면 역방향 DNS 이름으로 대체합니다.

구성:
    attribution/
    ├── types.py        # RecordKind, AttributionRecord, AttributionTable, AttributionResult
    ├── classifiers/    # 리전 단위 원격 조회 분류기 4종
    ├── dns_client.py   # dnspython 기반 정/역방향 조회
    ├── fallback.py     # 역방향 DNS 폴백
    ├── engine.py       # 병렬 귀속 엔진
    └── reporter.py     # 결과 출력

Usage:
    from attribution import AttributionEngine

    result = AttributionEngine().run(["10.0.0.5", "54.1.2.3"])
"""

from .engine import AttributionEngine, attribute
from .reporter import Reporter, build_rows
from .types import AttributionRecord, AttributionResult, AttributionTable, RecordKind

__all__: list[str] = [
    "AttributionEngine",
    "AttributionRecord",
    "AttributionResult",
    "AttributionTable",
    "RecordKind",
    "Reporter",
    "attribute",
    "build_rows",
]
