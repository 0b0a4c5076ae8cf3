"""
판매자 입력 라벨(한글/영문) -> 스마트스토어 API 고정 값 변환.

모든 함수는 예외를 던지지 않고, 알 수 없는 값은 문서화된 기본값으로 대체한다.
warnings 리스트를 넘기면 보정 내역(DegradedModeWarning)을 추가한다.
"""

import logging
from typing import List, Optional

from listing_engine import constants
from listing_engine.exceptions import DegradedModeWarning

logger = logging.getLogger(__name__)

# 등록 시점에 판매자가 지정할 수 없는 판매상태 (시스템이 결정)
_UNSETTABLE_SALE_LABELS = ("품절", "중지")
_UNSETTABLE_SALE_CODES = ("OUTOFSTOCK", "SOLD_OUT", "SUSPENSION", "UNSALE")
_INVALID_DISPLAY_CODES = ("OFF", "HIDE", "DISPLAY")

_DELIVERY_KEYWORDS = ("택배", "배송", "한진", "CJ", "로젠", "롯데", "우체국", "대한통운")

# (키워드 목록, 택배사 코드). 위에서부터 검사한다.
COURIER_RULES = (
    (("한진", "HANJIN"), constants.COURIER_HANJIN),
    (("CJ", "대한통운", "CJGLS"), constants.COURIER_CJ),
    (("로젠", "KGB"), constants.COURIER_LOGEN),
    (("롯데", "HYUNDAI"), constants.COURIER_LOTTE),
    (("우체국", "EPOST"), constants.COURIER_EPOST),
)


def _coerced(warnings: Optional[List[DegradedModeWarning]], detail: str) -> None:
    logger.warning(detail)
    if warnings is not None:
        warnings.append(DegradedModeWarning(kind="enum_coerced", detail=detail))


def _clean(raw) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


def normalize_sale_status(raw, warnings: Optional[List[DegradedModeWarning]] = None) -> str:
    text = _clean(raw)
    if not text:
        return constants.SALE_STATUS_SALE
    upper = text.upper()

    # "판매중지"가 "판매중"에 걸리지 않도록 먼저 검사
    if any(label in text for label in _UNSETTABLE_SALE_LABELS) or upper in _UNSETTABLE_SALE_CODES:
        _coerced(warnings, f"상품 등록 시에는 판매상태 '{text}'를 사용할 수 없습니다. SALE로 변환합니다.")
        return constants.SALE_STATUS_SALE
    if "판매중" in text or text == "판매" or upper == constants.SALE_STATUS_SALE:
        return constants.SALE_STATUS_SALE

    _coerced(warnings, f"알 수 없는 판매상태 값: '{text}', 기본값 SALE 사용")
    return constants.SALE_STATUS_SALE


def normalize_display_status(raw, warnings: Optional[List[DegradedModeWarning]] = None) -> str:
    text = _clean(raw)
    if not text:
        return constants.DISPLAY_STATUS_ON
    upper = text.upper()

    if "전시" in text and "안함" not in text and "중지" not in text:
        return constants.DISPLAY_STATUS_ON
    if "중지" in text or "안함" in text or constants.DISPLAY_STATUS_SUSPENSION in upper:
        return constants.DISPLAY_STATUS_SUSPENSION
    if upper == constants.DISPLAY_STATUS_ON:
        return constants.DISPLAY_STATUS_ON
    if upper == constants.DISPLAY_STATUS_WAIT:
        return constants.DISPLAY_STATUS_WAIT
    if upper in _INVALID_DISPLAY_CODES:
        _coerced(warnings, f"전시상태 '{upper}'는 유효하지 않습니다. ON으로 변환합니다. (유효한 값: ON, SUSPENSION)")
        return constants.DISPLAY_STATUS_ON

    _coerced(warnings, f"알 수 없는 전시상태 값: '{text}', 기본값 ON 사용")
    return constants.DISPLAY_STATUS_ON


def normalize_delivery_type(raw, warnings: Optional[List[DegradedModeWarning]] = None) -> str:
    text = _clean(raw)
    if not text:
        return constants.DELIVERY_TYPE_DELIVERY
    upper = text.upper()

    # "직접배송", "퀵배송"이 "배송" 키워드에 걸리지 않도록 먼저 검사
    if "직접" in text or upper == constants.DELIVERY_TYPE_DIRECT:
        return constants.DELIVERY_TYPE_DIRECT
    if "퀵" in text or upper == constants.DELIVERY_TYPE_QUICK:
        return constants.DELIVERY_TYPE_QUICK
    if any(k in text for k in _DELIVERY_KEYWORDS) or upper == constants.DELIVERY_TYPE_DELIVERY:
        return constants.DELIVERY_TYPE_DELIVERY

    _coerced(warnings, f"알 수 없는 배송방법 값: '{text}', 기본값 DELIVERY 사용")
    return constants.DELIVERY_TYPE_DELIVERY


def normalize_courier_code(raw, default: str = constants.COURIER_CJ) -> str:
    text = _clean(raw).upper()
    if not text:
        return default
    for keywords, code in COURIER_RULES:
        if any(k.upper() in text for k in keywords):
            return code
    logger.debug(f"택배사 매칭 실패: '{raw}', 기본 택배사 {default} 사용")
    return default


def normalize_tax_type(raw, warnings: Optional[List[DegradedModeWarning]] = None) -> str:
    text = _clean(raw)
    if not text:
        return constants.TAX_TYPE_TAX
    upper = text.upper()

    if upper in constants.TAX_TYPES:
        return upper
    if "면세" in text or "비과세" in text:
        return constants.TAX_TYPE_TAX_FREE
    if "영세" in text:
        return constants.TAX_TYPE_SMALL
    if "과세" in text:
        return constants.TAX_TYPE_TAX

    _coerced(warnings, f"알 수 없는 과세구분 값: '{text}', 기본값 TAX 사용")
    return constants.TAX_TYPE_TAX
