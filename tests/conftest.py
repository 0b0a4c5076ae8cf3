"""Pytest configuration and fixtures."""

from datetime import datetime

import pytest
import pytz

from listing_engine.services.category_index import CategoryIndex
from listing_engine.services.category_resolver import CategoryResolver
from listing_engine.services.compliance import ComplianceAdvisor
from listing_engine.services.origin_resolver import OriginCodeTable, OriginResolver
from listing_engine.services.payload_assembler import PayloadAssembler
from listing_engine.settings import Settings


# 네이버 /v1/categories 응답과 같은 형태 (wholeCategoryName 혼재)
SAMPLE_CATEGORY_TREE = [
    {
        "id": "50000000",
        "name": "패션의류",
        "last": False,
        "children": [
            {
                "id": "50000167",
                "name": "여성의류",
                "last": False,
                "children": [
                    {"id": "50000803", "name": "니트/스웨터", "wholeCategoryName": "패션의류>여성의류>니트/스웨터", "last": True},
                    {"id": "50000804", "name": "원피스", "last": True},
                ],
            },
        ],
    },
    {
        "id": "50000006",
        "name": "식품",
        "children": [
            {
                "id": "50000149",
                "name": "과자/베이커리",
                "children": [
                    {"id": "50002010", "name": "과자", "wholeCategoryName": "식품>과자/베이커리>과자", "last": True},
                    {"id": "50002011", "name": "초콜릿", "wholeCategoryName": "식품>과자/베이커리>초콜릿", "last": True},
                ],
            },
            {
                "id": "50000150",
                "name": "수산물",
                "children": [
                    {"id": "50002100", "name": "생선", "wholeCategoryName": "식품>수산물>생선", "last": True},
                ],
            },
        ],
    },
    {
        "id": "50000003",
        "name": "디지털/가전",
        "children": [
            {"id": "50000151", "name": "모니터", "wholeCategoryName": "디지털/가전>모니터", "last": True},
        ],
    },
]

FIXED_NOW = pytz.timezone("Asia/Seoul").localize(datetime(2026, 3, 2, 10, 30, 0, 123000))


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None)


@pytest.fixture
def sample_tree():
    return SAMPLE_CATEGORY_TREE


@pytest.fixture
def category_index(sample_tree) -> CategoryIndex:
    index = CategoryIndex()
    index.build(sample_tree)
    return index


@pytest.fixture
def resolver(category_index, test_settings) -> CategoryResolver:
    return CategoryResolver(category_index, settings=test_settings)


@pytest.fixture
def fake_image_host():
    """원본 URL을 네이버 호스팅 URL 형태로 바꿔 돌려주는 가짜 이미지 호스트"""
    hosted = []

    def host(url: str) -> str:
        new_url = f"https://shop-phinf.pstatic.net/{len(hosted)}.jpg"
        hosted.append((url, new_url))
        return new_url

    host.calls = hosted
    return host


@pytest.fixture
def assembler(resolver, test_settings, fake_image_host) -> PayloadAssembler:
    compliance = ComplianceAdvisor(settings=test_settings)
    return PayloadAssembler(
        resolver=resolver,
        compliance=compliance,
        origin_resolver=OriginResolver(OriginCodeTable(), compliance=compliance, settings=test_settings),
        image_host=fake_image_host,
        settings=test_settings,
        now=lambda: FIXED_NOW,
    )


# 테스트 마커 정의
def pytest_configure(config):
    """Pytest 마커 등록."""
    config.addinivalue_line("markers", "unit: 단위 테스트 (외부 API 불필요)")
    config.addinivalue_line("markers", "integration: 통합 테스트 (실제 네이버 API 필요)")
    config.addinivalue_line("markers", "slow: 느린 테스트 (> 1분)")
