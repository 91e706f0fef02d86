# core/region - 리전 데이터 및 리전 목록 조회
"""
리전 모듈

Note:
    이 모듈은 Lazy Import 패턴을 사용합니다.
"""

__all__ = ["DEFAULT_REGIONS", "RegionEnumerator"]


def __getattr__(name: str):
    """Lazy import - 실제 사용 시점에만 모듈 로드"""
    if name == "DEFAULT_REGIONS":
        from . import data

        return getattr(data, name)
    if name == "RegionEnumerator":
        from . import availability

        return getattr(availability, name)

    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
