"""
상품 등록 서비스와 플랫폼 레지스트리.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from listing_engine import constants
from listing_engine.exceptions import DegradedModeWarning, ListingError, UnsupportedPlatformError
from listing_engine.schemas.listing import GroupListingInput, ListingInput
from listing_engine.services.category_index import CategoryIndex
from listing_engine.services.category_resolver import CategoryResolver
from listing_engine.services.compliance import ComplianceAdvisor
from listing_engine.services.origin_resolver import OriginCodeTable, OriginResolver
from listing_engine.services.payload_assembler import PayloadAssembler
from listing_engine.services.row_converter import Row, group_rows, row_to_listing, rows_to_group
from listing_engine.settings import Settings, settings as default_settings
from listing_engine.smartstore_client import SmartStoreClient

logger = logging.getLogger(__name__)


@dataclass
class RowResult:
    row_number: Optional[int]
    payload: Optional[Dict[str, Any]] = None
    warnings: List[DegradedModeWarning] = field(default_factory=list)
    error: Optional[Dict[str, Any]] = None
    group_key: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchAssemblyResult:
    results: List[RowResult] = field(default_factory=list)

    @property
    def successes(self) -> List[RowResult]:
        return [r for r in self.results if r.ok]

    @property
    def failures(self) -> List[RowResult]:
        return [r for r in self.results if not r.ok]

    @property
    def total(self) -> int:
        return len(self.results)


class ListingService:
    """
    조립(PayloadAssembler) 후 마켓 클라이언트로 전송한다.
    전송 실패는 재시도하지 않고 TransportError 그대로 올린다.
    """

    def __init__(self, assembler: PayloadAssembler, client: SmartStoreClient):
        self.assembler = assembler
        self.client = client

    def register(self, listing: ListingInput) -> Dict[str, Any]:
        payload = self.assembler.assemble(listing)
        response = self.client.submit(payload)
        logger.info(f"상품 등록 완료: {listing.name} -> {response.get('originProductNo')}")
        return response

    def register_group(self, group: GroupListingInput) -> Dict[str, Any]:
        payload = self.assembler.assemble_group(group)
        response = self.client.submit_group(payload)
        logger.info(f"그룹상품 등록 요청 완료: {group.name}")
        return response

    def assemble_rows(self, rows: List[Row]) -> BatchAssemblyResult:
        """행 단위로 조립한다. 실패한 행은 결과에 에러로 남기고 다음 행을 계속 처리한다."""
        batch = BatchAssemblyResult()
        for position, row in enumerate(rows, start=1):
            row_number = row.get("_rowNumber") or position
            try:
                report = self.assembler.assemble_with_report(row_to_listing(row))
                batch.results.append(RowResult(row_number=row_number, payload=report.payload, warnings=report.warnings))
            except ListingError as e:
                logger.error(f"행 {row_number} 변환 실패: {e.message}")
                batch.results.append(RowResult(row_number=row_number, error=e.to_dict()))
        logger.info(f"일괄 조립 완료: 성공 {len(batch.successes)}건, 실패 {len(batch.failures)}건")
        return batch

    def assemble_group_rows(self, rows: List[Row], group_key: str) -> BatchAssemblyResult:
        batch = BatchAssemblyResult()
        for key, grouped in group_rows(rows, group_key).items():
            row_number = grouped[0].get("_rowNumber")
            try:
                report = self.assembler.assemble_group_with_report(rows_to_group(grouped))
                batch.results.append(
                    RowResult(row_number=row_number, payload=report.payload, warnings=report.warnings, group_key=key)
                )
            except ListingError as e:
                logger.error(f"그룹 {key}: 변환 실패: {e.message}")
                batch.results.append(RowResult(row_number=row_number, error=e.to_dict(), group_key=key))
        logger.info(f"그룹상품 일괄 조립 완료: 성공 {len(batch.successes)}건, 실패 {len(batch.failures)}건")
        return batch


_PLATFORM_ALIASES = {
    "naver": constants.PLATFORM_NAVER,
    "smartstore": constants.PLATFORM_NAVER,
    "coupang": constants.PLATFORM_COUPANG,
    "11st": constants.PLATFORM_11ST,
    "elevenst": constants.PLATFORM_11ST,
    "11street": constants.PLATFORM_11ST,
}


def normalize_platform_code(platform: Optional[str]) -> Optional[str]:
    code = str(platform or "").strip().lower()
    return _PLATFORM_ALIASES.get(code)


class PlatformRegistry:
    """플랫폼 코드 -> 등록 서비스. 시작 시 명시적으로 채운다."""

    def __init__(self):
        self._handlers: Dict[str, ListingService] = {}

    def register(self, platform: str, handler: ListingService) -> None:
        code = normalize_platform_code(platform)
        if code is None:
            raise UnsupportedPlatformError(platform, list(constants.SUPPORTED_PLATFORMS))
        self._handlers[code] = handler

    def get(self, platform: Optional[str]) -> ListingService:
        code = normalize_platform_code(platform)
        if code is None or code not in self._handlers:
            raise UnsupportedPlatformError(platform, self.supported_platforms())
        return self._handlers[code]

    def supported_platforms(self) -> List[str]:
        return list(self._handlers.keys())


def build_naver_service(settings: Optional[Settings] = None, client: Optional[SmartStoreClient] = None) -> ListingService:
    settings = settings or default_settings
    client = client or SmartStoreClient(settings=settings)
    index = CategoryIndex(fetch_tree=client.fetch_category_tree)
    compliance = ComplianceAdvisor(settings=settings)
    assembler = PayloadAssembler(
        resolver=CategoryResolver(index, settings=settings),
        compliance=compliance,
        origin_resolver=OriginResolver(
            table=OriginCodeTable(fetch_table=client.fetch_origin_code_table),
            compliance=compliance,
            settings=settings,
        ),
        image_host=client.host_image,
        settings=settings,
    )
    return ListingService(assembler, client)


def build_default_registry(settings: Optional[Settings] = None, client: Optional[SmartStoreClient] = None) -> PlatformRegistry:
    registry = PlatformRegistry()
    registry.register(constants.PLATFORM_NAVER, build_naver_service(settings, client))
    logger.info(f"플랫폼 등록 완료: {registry.supported_platforms()}")
    return registry
