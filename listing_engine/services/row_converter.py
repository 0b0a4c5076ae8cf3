"""
엑셀/CSV 행(한글 헤더 -> 값) -> 상품 등록 입력 변환.

필수 항목 누락은 PayloadAssembler가 필드 단위로 검증하고,
여기서는 숫자 형식 오류처럼 행 자체를 해석할 수 없는 경우만 에러로 처리한다.
"""

import logging
import re
from typing import Any, Dict, List, Optional

from listing_engine.exceptions import FieldError, ListingValidationError
from listing_engine.schemas.listing import DeliveryInput, GroupListingInput, ListingInput, VariantInput

logger = logging.getLogger(__name__)

Row = Dict[str, Any]

_EXTRA_IMAGE_RE = re.compile(r"^추가이미지URL(\d+)$")
_OPTION_PAIRS = (("옵션명1", "옵션값1"), ("옵션명2", "옵션값2"))

UNGROUPED_PREFIX = "UNGROUPED_"


def _row_number(row: Row) -> Optional[int]:
    value = row.get("_rowNumber")
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _text(row: Row, key: str) -> Optional[str]:
    value = row.get(key)
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _number(row: Row, key: str, field_name: str) -> Optional[int]:
    """'12,000', '3.0', 3.0 같은 값을 정수로 변환"""
    value = row.get(key)
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if isinstance(value, bool):
        raise ListingValidationError.from_errors(
            [FieldError(field_name, f"{key} 값이 숫자가 아닙니다: {value}")], row_number=_row_number(row)
        )
    if isinstance(value, (int, float)):
        return int(value)
    try:
        return int(float(str(value).replace(",", "").strip()))
    except ValueError:
        logger.warning(f"행 {_row_number(row)}: {key} 값을 숫자로 변환 실패: {value}")
        raise ListingValidationError.from_errors(
            [FieldError(field_name, f"{key} 값이 숫자가 아닙니다: {value}")], row_number=_row_number(row)
        )


def _images(row: Row) -> List[str]:
    images = []
    main = _text(row, "대표이미지URL")
    if main:
        images.append(main)
    extras = []
    for key in row:
        m = _EXTRA_IMAGE_RE.match(str(key))
        if m:
            url = _text(row, key)
            if url:
                extras.append((int(m.group(1)), url))
    images.extend(url for _, url in sorted(extras))
    return images


def _delivery(row: Row) -> Optional[DeliveryInput]:
    delivery_type = _text(row, "배송방법")
    company = _text(row, "택배사")
    fee = _number(row, "배송비", "deliveryFee")
    free_condition = _number(row, "무료배송조건금액", "freeConditionalAmount")
    if delivery_type is None and company is None and fee is None:
        return None
    return DeliveryInput(
        delivery_type=delivery_type,
        delivery_company=company or delivery_type,
        delivery_fee=fee,
        free_condition_amount=free_condition,
    )


def row_to_listing(row: Row) -> ListingInput:
    if not row:
        raise ListingValidationError("행 데이터가 비어있습니다.", field="row")
    row_number = _row_number(row)
    logger.debug(f"엑셀 행 {row_number} 변환 시작")

    return ListingInput(
        name=_text(row, "상품명"),
        category=_text(row, "카테고리"),
        sale_price=_number(row, "판매가", "salePrice"),
        stock_quantity=_number(row, "재고수량", "stockQuantity"),
        detail_content=_text(row, "상세설명"),
        images=_images(row),
        sale_status=_text(row, "판매상태"),
        display_status=_text(row, "전시상태"),
        delivery=_delivery(row),
        brand_name=_text(row, "브랜드"),
        model_name=_text(row, "모델명"),
        manufacturer=_text(row, "제조사"),
        origin_area=_text(row, "원산지"),
        importer_name=_text(row, "수입사"),
        tax_type=(_text(row, "과세구분") or "").upper() or None,
        row_number=row_number,
    )


def row_to_variant(row: Row) -> VariantInput:
    row_number = _row_number(row)
    options: Dict[str, str] = {}
    for name_key, value_key in _OPTION_PAIRS:
        option_name = _text(row, name_key)
        option_value = _text(row, value_key)
        if option_name and option_value:
            options[option_name] = option_value
    if not options:
        raise ListingValidationError.from_errors(
            [FieldError("standardPurchaseOptions", "그룹상품은 최소 1개 이상의 옵션이 필요합니다. (옵션명1, 옵션값1)")],
            row_number=row_number,
        )

    return VariantInput(
        options=options,
        sale_price=_number(row, "판매가", "salePrice"),
        normal_price=_number(row, "정상가", "normalPrice"),
        stock_quantity=_number(row, "재고수량", "stockQuantity"),
        detail_content=_text(row, "상세설명"),
        images=_images(row),
        display_status=_text(row, "전시상태"),
        delivery=_delivery(row),
        origin_area=_text(row, "원산지"),
        importer_name=_text(row, "수입사"),
        row_number=row_number,
    )


def group_rows(rows: List[Row], group_key: str) -> Dict[str, List[Row]]:
    """그룹 키 기준으로 행을 묶는다. 키가 없는 행은 단독 그룹이 된다. 입력 순서를 유지한다."""
    grouped: Dict[str, List[Row]] = {}
    for position, row in enumerate(rows, start=1):
        key = _text(row, group_key)
        if key is None:
            # 행 번호가 없으면 입력 순서로 구분
            key = f"{UNGROUPED_PREFIX}{row.get('_rowNumber') or position}"
        grouped.setdefault(key, []).append(row)
    return grouped


def rows_to_group(rows: List[Row]) -> GroupListingInput:
    """같은 그룹의 행들을 하나의 그룹상품 입력으로 변환 (공통 값은 첫 행 기준)"""
    first = rows[0]
    return GroupListingInput(
        name=_text(first, "상품명"),
        category=_text(first, "카테고리"),
        guide_id=_number(first, "guideId", "guideId"),
        common_detail_content=_text(first, "상세설명"),
        brand_name=_text(first, "브랜드"),
        manufacturer=_text(first, "제조사"),
        model_name=_text(first, "모델명"),
        tax_type=(_text(first, "과세구분") or "").upper() or None,
        origin_area=_text(first, "원산지"),
        importer_name=_text(first, "수입사"),
        variants=[row_to_variant(row) for row in rows],
        row_number=_row_number(first),
    )


def rows_to_groups(rows: List[Row], group_key: str) -> List[GroupListingInput]:
    grouped = group_rows(rows, group_key)
    logger.info(f"그룹상품 변환 시작: 총 {len(rows)}개 행, {len(grouped)}개 그룹 (그룹 키={group_key})")
    return [rows_to_group(group) for group in grouped.values()]
