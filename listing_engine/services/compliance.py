"""
카테고리 기반 인증(KC/어린이제품) 제외 표시 및 수산물 여부 판단.

규칙은 COMPLIANCE_RULES 테이블로 선언하고, 판단 결과는 권고용이다.
실제 인증번호는 다루지 않으므로 대상 카테고리는 "인증 대상 제외" 표시로 처리한다.
"""

import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from listing_engine.schemas.listing import ComplianceFlags
from listing_engine.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

_NUMERIC_RE = re.compile(r"^\d+$")


@dataclass(frozen=True)
class ComplianceRule:
    """
    경로 키워드/ID 범위 규칙.

    all_of_groups: 각 그룹에서 하나 이상의 키워드가 경로에 포함되어야 한다.
    id_ranges: 포함 범위 (min, max)
    path_only: True면 숫자 ID로만 주어진 카테고리는 판단하지 않는다.
    """
    flag: str
    all_of_groups: Tuple[Tuple[str, ...], ...] = ()
    id_ranges: Tuple[Tuple[int, int], ...] = ()
    path_only: bool = False
    label: str = ""

    def matches_path(self, path: str) -> bool:
        if not path or not self.all_of_groups:
            return False
        lowered = path.lower()
        return all(any(k in lowered for k in group) for group in self.all_of_groups)

    def matches_id(self, leaf_id: Optional[str]) -> bool:
        if not leaf_id or not _NUMERIC_RE.match(str(leaf_id).strip()):
            return False
        value = int(str(leaf_id).strip())
        return any(low <= value <= high for low, high in self.id_ranges)


COMPLIANCE_RULES: Tuple[ComplianceRule, ...] = (
    ComplianceRule(
        flag="kc_exempt",
        label="KC 인증",
        all_of_groups=(
            ("디지털", "가전"),
            ("모니터", "노트북", "pc", "컴퓨터", "tv", "스마트폰", "태블릿", "카메라", "전기", "전자"),
        ),
        id_ranges=((50000003, 50002000), (50001000, 50003000)),
    ),
    ComplianceRule(
        flag="child_exempt",
        label="어린이제품 인증",
        all_of_groups=(
            ("출산", "육아", "완구", "인형", "유아", "아동", "어린이", "키즈", "장난감", "아기"),
        ),
        id_ranges=((50004000, 50005000), (50016000, 50017000), (50016500, 50016700)),
    ),
    ComplianceRule(
        flag="is_marine_goods",
        label="수산물",
        all_of_groups=(("해산물", "수산물", "어류", "조개류"),),
        path_only=True,
    ),
)


class ComplianceAdvisor:
    def __init__(self, rules: Tuple[ComplianceRule, ...] = COMPLIANCE_RULES, settings: Optional[Settings] = None):
        self.rules = rules
        self.settings = settings or default_settings

    def evaluate(self, category_path: Optional[str], leaf_id: Optional[str] = None) -> ComplianceFlags:
        path = (category_path or "").strip()
        # 숫자만 주어진 경우 경로 키워드 판단 대상이 아니다
        textual_path = "" if _NUMERIC_RE.match(path) else path

        flags: Dict[str, bool] = {}
        for rule in self.rules:
            hit = rule.matches_path(textual_path)
            if not hit and not rule.path_only:
                hit = rule.matches_id(leaf_id)
            if hit:
                logger.info(f"{rule.label} 대상 카테고리 감지: {category_path or leaf_id}")
            flags[rule.flag] = flags.get(rule.flag, False) or hit
        return ComplianceFlags(**flags)

    def build_certification_block(self, flags: ComplianceFlags) -> Dict[str, Any]:
        """
        detailAttribute에 들어갈 인증 관련 필드를 만든다.
        인증 정보는 보유하지 않으므로 productCertificationInfos는 항상 비어 있다.
        """
        exclude: Dict[str, Any] = {}
        always = self.settings.compliance_always_emit_exclusion
        if flags.kc_exempt:
            logger.warning("KC 인증 대상 카테고리: 인증 정보가 없어 인증 대상 제외로 등록합니다.")
        if flags.kc_exempt or always:
            exclude["kcCertifiedProductExclusionYn"] = "TRUE"
        if flags.child_exempt or always:
            exclude["childCertifiedProductExclusionYn"] = True

        block: Dict[str, Any] = {"productCertificationInfos": []}
        if exclude:
            block["certificationTargetExcludeContent"] = exclude
        return block
