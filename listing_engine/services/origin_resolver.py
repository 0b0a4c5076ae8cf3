"""
원산지 문자열 -> 스마트스토어 원산지 코드 해석.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional

from listing_engine import constants
from listing_engine.exceptions import DegradedModeWarning
from listing_engine.schemas.listing import OriginInfo
from listing_engine.services.compliance import ComplianceAdvisor
from listing_engine.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

OriginTableFetcher = Callable[[], List[Dict[str, Any]]]


class OriginCodeTable:
    """
    원산지 이름(소문자) -> 코드 캐시.

    조회 실패 시 빈 테이블로 두고 degraded 표시 후 휴리스틱만 사용한다.
    """

    def __init__(self, fetch_table: Optional[OriginTableFetcher] = None):
        self._fetch_table = fetch_table
        self._codes: Dict[str, str] = {}
        self._built = False
        self._lock = threading.Lock()
        self.degraded = False

    def load(self, rows: Optional[List[Dict[str, Any]]]) -> int:
        codes: Dict[str, str] = {}
        for row in rows or []:
            name = str(row.get("name") or "").strip().lower()
            code = str(row.get("code") or "").strip()
            if name and code:
                codes.setdefault(name, code)
        self._codes = codes
        self._built = True
        self.degraded = not codes
        logger.info(f"원산지 코드 테이블 구성: {len(codes)}개")
        return len(codes)

    def ensure_built(self) -> None:
        if self._built:
            return
        with self._lock:
            if self._built:
                return
            if self._fetch_table is None:
                self._codes = {}
                self.degraded = True
                self._built = True
                return
            try:
                rows = self._fetch_table()
            except Exception as e:
                logger.warning(f"원산지 코드 조회 실패, 기본 판단 로직만 사용: {e}")
                self._codes = {}
                self.degraded = True
                self._built = True
                return
            self.load(rows)

    def invalidate(self) -> None:
        with self._lock:
            self._codes = {}
            self._built = False
            self.degraded = False

    def is_empty(self) -> bool:
        return not self._codes

    def find(self, origin: str) -> Optional[str]:
        """정확 일치 후 부분 일치(양방향) 순서로 찾는다."""
        self.ensure_built()
        lowered = origin.strip().lower()
        if not lowered or not self._codes:
            return None
        if lowered in self._codes:
            return self._codes[lowered]
        for name, code in self._codes.items():
            if name in lowered or lowered in name:
                logger.info(f"원산지 코드 부분 일치: {origin} -> {code} (매핑 키: {name})")
                return code
        return None


def determine_origin_code(origin: Optional[str]) -> str:
    """국내 키워드가 있으면 국산(00), 그 외는 모두 수입산(02)."""
    text = (origin or "").strip()
    if not text:
        return constants.ORIGIN_CODE_DOMESTIC
    if any(k in text for k in constants.DOMESTIC_ORIGIN_KEYWORDS):
        return constants.ORIGIN_CODE_DOMESTIC
    return constants.ORIGIN_CODE_IMPORT


class OriginResolver:
    def __init__(
        self,
        table: Optional[OriginCodeTable] = None,
        compliance: Optional[ComplianceAdvisor] = None,
        settings: Optional[Settings] = None,
    ):
        self.table = table or OriginCodeTable()
        self.settings = settings or default_settings
        self.compliance = compliance or ComplianceAdvisor(settings=self.settings)

    def resolve(
        self,
        raw_origin: Optional[str],
        category_path: Optional[str],
        extra: Optional[Dict[str, Any]] = None,
        importer_name: Optional[str] = None,
        warnings: Optional[List[DegradedModeWarning]] = None,
    ) -> OriginInfo:
        text = (raw_origin or "").strip()
        if not text:
            return OriginInfo(
                code=constants.ORIGIN_CODE_DOMESTIC,
                display_content=self.settings.listing_default_origin_content,
                is_foreign=False,
            )

        code = self.table.find(text)
        if code is None:
            code = determine_origin_code(text)
            logger.debug(f"원산지 코드 매핑 없음: {text}. 기본 판단 결과 {code}")
            if self.table.degraded and warnings is not None:
                warnings.append(DegradedModeWarning(kind="origin_heuristic", detail=f"'{text}' -> {code}"))

        is_foreign = code.startswith(constants.ORIGIN_CODE_IMPORT)
        importer = None
        if is_foreign:
            importer = (importer_name or "").strip() or self.settings.listing_default_importer
            if importer == self.settings.listing_default_importer:
                detail = f"수입산 원산지 '{text}'에 기본 수입사명 '{importer}' 사용, 실제 수입사 확인 필요"
                logger.warning(detail)
                if warnings is not None:
                    warnings.append(DegradedModeWarning(kind="origin_placeholder_importer", detail=detail))

        marine_fields: Dict[str, Any] = {}
        if extra:
            flags = self.compliance.evaluate(category_path)
            if flags.is_marine_goods:
                marine_fields = {k: v for k, v in extra.items() if k in constants.MARINE_ORIGIN_FIELDS and v}
            else:
                logger.debug(f"수산물 카테고리가 아니므로 해역 정보 제거: {list(extra.keys())}")

        return OriginInfo(
            code=code,
            display_content=text,
            is_foreign=is_foreign,
            importer_name=importer,
            marine_fields=marine_fields,
        )
