# core/region/data.py - 리전 데이터

# 리전 목록 조회 실패 시 스캔할 기본 리전 (최소 2개)
DEFAULT_REGIONS = [
    "us-east-1",
    "us-west-1",
]
