# core/__init__.py
"""
core - ipwho 공통 인프라

IP 귀속 엔진이 사용하는 병렬 처리, 리전 조회, 설정, 예외 계층을 포함합니다.

아키텍처:
    core/
    ├── parallel/       # 병렬 처리 (executor, 재시도, 에러 수집, boto3 client)
    ├── region/         # 기본 리전 및 리전 목록 조회
    ├── config.py       # 실행 설정 (AttributionConfig)
    └── exceptions.py   # 통합 예외 계층

Usage:
    # 설정 사용
    from core.config import AttributionConfig
    config = AttributionConfig.from_env(verbose=True)

    # 예외 처리
    from core.exceptions import is_access_denied
    try:
        ec2.describe_addresses()
    except Exception as e:
        if is_access_denied(e):
            print("권한이 없습니다")

    # 리전 목록 조회
    from core.region import RegionEnumerator
    regions = RegionEnumerator(session).list_regions()
"""
