"""
상품 등록 입력/파생 값 스키마.

입력 모델은 느슨하게 받아들이고 필수 항목 검증은 PayloadAssembler가 필드 단위로 수행한다.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class DeliveryInput(BaseModel):
    """배송 정보 (모두 선택 항목)"""
    delivery_type: str | None = None   # "택배", "직접배송", "퀵" 등 자유 텍스트
    delivery_company: str | None = None  # "CJ대한통운", "한진택배" 등
    delivery_fee: int | None = None
    free_condition_amount: int | None = None
    return_fee: int | None = None
    exchange_fee: int | None = None


class ListingInput(BaseModel):
    """
    단일 상품 등록 입력.
    """
    name: str | None = None
    category: str | None = None  # 카테고리 경로 또는 숫자 ID
    sale_price: int | None = None
    stock_quantity: int | None = None
    images: List[str] = Field(default_factory=list)
    detail_content: str | None = None

    sale_status: str | None = None
    display_status: str | None = None
    delivery: DeliveryInput | None = None

    origin_area: str | None = None
    origin_extra: Dict[str, Any] | None = None  # oceanName 등 원산지 부가 필드
    importer_name: str | None = None

    brand_name: str | None = None
    model_name: str | None = None
    manufacturer: str | None = None
    tax_type: str | None = None
    after_service_phone: str | None = None
    after_service_guide: str | None = None
    naver_shopping_registration: bool = False
    row_number: int | None = None


class VariantInput(BaseModel):
    """
    그룹상품의 개별 판매 옵션(specific product).
    """
    options: Dict[str, str] = Field(default_factory=dict)  # 옵션명 -> 옵션값
    option_ids: Dict[str, int] = Field(default_factory=dict)  # 옵션명 -> 가이드 옵션 ID
    sale_price: int | None = None
    normal_price: int | None = None
    stock_quantity: int | None = None
    images: List[str] = Field(default_factory=list)
    detail_content: str | None = None

    display_status: str | None = None
    delivery: DeliveryInput | None = None
    origin_area: str | None = None
    origin_extra: Dict[str, Any] | None = None
    importer_name: str | None = None
    row_number: int | None = None


class WindowChannelInput(BaseModel):
    """윈도 채널 노출 설정"""
    channel_no: int
    best: bool = False
    bbs_seq: int | None = None


class GroupListingInput(BaseModel):
    """
    그룹상품(옵션 조합) 등록 입력.
    """
    name: str | None = None
    category: str | None = None
    guide_id: int | None = None
    common_detail_content: str | None = None
    brand_name: str | None = None
    manufacturer: str | None = None
    model_name: str | None = None
    tax_type: str | None = None
    after_service_phone: str | None = None
    after_service_guide: str | None = None
    bbs_seq: int | None = None
    window_channel: WindowChannelInput | None = None
    # 옵션별 값이 없을 때 쓰는 공통 값
    delivery: DeliveryInput | None = None
    origin_area: str | None = None
    importer_name: str | None = None
    variants: List[VariantInput] = Field(default_factory=list)
    row_number: int | None = None


@dataclass(frozen=True)
class CategoryEntry:
    path: str
    id: str
    is_leaf: bool = True


@dataclass(frozen=True)
class CategoryMatch:
    """
    카테고리 해석 결과.

    stage: numeric, exact, delimiter, case_insensitive, a ~ f
    confidence: exact, high, weak, low
    """
    category_id: str
    matched_key: str | None
    stage: str
    confidence: str

    @property
    def is_fuzzy(self) -> bool:
        return self.stage in ("a", "b", "c", "d", "e", "f")


@dataclass(frozen=True)
class ComplianceFlags:
    kc_exempt: bool = False
    child_exempt: bool = False
    is_marine_goods: bool = False


@dataclass(frozen=True)
class OriginInfo:
    """원산지 해석 결과. importer_name은 수입산일 때만 채워진다."""
    code: str
    display_content: str
    is_foreign: bool
    importer_name: Optional[str] = None
    marine_fields: Dict[str, Any] = field(default_factory=dict)

    def to_payload(self) -> Dict[str, Any]:
        info: Dict[str, Any] = {
            "originAreaCode": self.code,
            "content": self.display_content,
        }
        if self.is_foreign:
            info["importer"] = self.importer_name
        info.update(self.marine_fields)
        return info
