"""
자유 텍스트 카테고리 경로 -> 리프 카테고리 ID 해석.

정확 일치, 구분자 보정, 대소문자 무시 일치 후 퍼지 매칭 단계(a~f)를 순서대로 적용한다.
앞 단계에서 매칭되면 뒤 단계는 보지 않는다.
"""

import logging
import re
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

from listing_engine.exceptions import CategoryNotFoundError, DegradedModeWarning
from listing_engine.schemas.listing import CategoryMatch
from listing_engine.services.category_index import CategoryIndex
from listing_engine.settings import Settings, settings as default_settings

logger = logging.getLogger(__name__)

_NUMERIC_RE = re.compile(r"^\d+$")
_DELIMITER_RE = re.compile(r"\s*>\s*")

CONFIDENCE_EXACT = "exact"
CONFIDENCE_HIGH = "high"
CONFIDENCE_WEAK = "weak"
CONFIDENCE_LOW = "low"


@dataclass(frozen=True)
class SplitPath:
    """'>' 기준으로 분리된 경로"""
    text: str
    parts: Tuple[str, ...]

    @classmethod
    def of(cls, text: str) -> "SplitPath":
        parts = tuple(p.strip() for p in text.split(">") if p.strip())
        return cls(text=text, parts=parts)

    @property
    def root(self) -> str:
        return self.parts[0] if self.parts else ""

    @property
    def leaf(self) -> str:
        return self.parts[-1] if self.parts else ""

    @property
    def keywords(self) -> List[str]:
        return [p.lower() for p in self.parts[1:]]


def _similar_depth(query: SplitPath, candidate: SplitPath) -> bool:
    return abs(len(query.parts) - len(candidate.parts)) <= 1


def _leaf_contained(query: SplitPath, candidate: SplitPath) -> bool:
    q, c = query.leaf, candidate.leaf
    if not q or not c:
        return False
    return q in c or c in q or q.lower() == c.lower()


def _keyword_hits(query: SplitPath, candidate: SplitPath) -> int:
    haystack = candidate.text.lower()
    return sum(1 for keyword in query.keywords if keyword in haystack)


def match_root_and_leaf(query: SplitPath, candidate: SplitPath) -> Optional[str]:
    if query.root == candidate.root and query.leaf == candidate.leaf and _similar_depth(query, candidate):
        return CONFIDENCE_HIGH
    return None


def match_root_and_leaf_substring(query: SplitPath, candidate: SplitPath) -> Optional[str]:
    if query.root == candidate.root and _leaf_contained(query, candidate) and _similar_depth(query, candidate):
        return CONFIDENCE_HIGH
    return None


def match_leaf(query: SplitPath, candidate: SplitPath) -> Optional[str]:
    if query.leaf and query.leaf == candidate.leaf:
        return CONFIDENCE_WEAK
    return None


def match_leaf_substring(query: SplitPath, candidate: SplitPath) -> Optional[str]:
    if _leaf_contained(query, candidate):
        return CONFIDENCE_WEAK
    return None


def match_all_keywords(query: SplitPath, candidate: SplitPath) -> Optional[str]:
    if len(query.parts) < 2 or query.root != candidate.root or not _similar_depth(query, candidate):
        return None
    if _keyword_hits(query, candidate) == len(query.keywords):
        return CONFIDENCE_LOW
    return None


def match_half_keywords(query: SplitPath, candidate: SplitPath) -> Optional[str]:
    if len(query.parts) < 2 or query.root != candidate.root or not _similar_depth(query, candidate):
        return None
    required = (len(query.keywords) + 1) // 2
    if _keyword_hits(query, candidate) >= required:
        return CONFIDENCE_LOW
    return None


Matcher = Callable[[SplitPath, SplitPath], Optional[str]]

# 우선순위 순서. 단계 이름은 로그와 CategoryMatch.stage에 그대로 남는다.
MATCHERS: List[Tuple[str, Matcher]] = [
    ("a", match_root_and_leaf),
    ("b", match_root_and_leaf_substring),
    ("c", match_leaf),
    ("d", match_leaf_substring),
    ("e", match_all_keywords),
    ("f", match_half_keywords),
]


def delimiter_variants(text: str) -> List[str]:
    variants = [
        _DELIMITER_RE.sub(">", text),
        _DELIMITER_RE.sub(" > ", text),
        text.replace(">", " > "),
        text.replace(" > ", ">"),
    ]
    seen = []
    for v in variants:
        if v != text and v not in seen:
            seen.append(v)
    return seen


class CategoryResolver:
    """
    카테고리 해석기.

    resolve()는 해석 실패 시 None을 반환하고, resolve_or_raise()는 CategoryNotFoundError를 던진다.
    """

    def __init__(
        self,
        index: CategoryIndex,
        matchers: Optional[List[Tuple[str, Matcher]]] = None,
        settings: Optional[Settings] = None,
    ):
        self.index = index
        self.matchers = matchers if matchers is not None else MATCHERS
        self.settings = settings or default_settings

    def resolve(self, path_or_id: Optional[str]) -> Optional[CategoryMatch]:
        if path_or_id is None:
            return None
        text = str(path_or_id).strip()
        if not text:
            return None

        if _NUMERIC_RE.match(text):
            return CategoryMatch(category_id=text, matched_key=None, stage="numeric", confidence=CONFIDENCE_EXACT)

        self.index.ensure_built()

        found = self.index.lookup(text)
        if found:
            return CategoryMatch(category_id=found, matched_key=text, stage="exact", confidence=CONFIDENCE_EXACT)

        for variant in delimiter_variants(text):
            found = self.index.lookup(variant)
            if found:
                logger.debug(f"구분자 보정 매칭: '{text}' -> '{variant}'")
                return CategoryMatch(category_id=found, matched_key=variant, stage="delimiter", confidence=CONFIDENCE_EXACT)

        lowered = text.lower()
        for key, category_id in self.index.items():
            if key.lower() == lowered:
                return CategoryMatch(
                    category_id=category_id, matched_key=key, stage="case_insensitive", confidence=CONFIDENCE_EXACT
                )

        match = self._fuzzy(text)
        if match is None:
            sample = [key for key, _ in self.index.items()[:5]]
            logger.warning(f"카테고리 매핑 실패: '{text}' (캐시 {len(self.index)}개, 예시: {sample})")
        return match

    def resolve_or_raise(self, path_or_id: Optional[str]) -> CategoryMatch:
        match = self.resolve(path_or_id)
        if match is None:
            raise CategoryNotFoundError(str(path_or_id or ""), index_size=len(self.index))
        return match

    def _fuzzy(self, text: str) -> Optional[CategoryMatch]:
        query = SplitPath.of(text)
        if not query.parts:
            return None
        candidates = [(key, category_id, SplitPath.of(key)) for key, category_id in self.index.items()]

        for stage, matcher in self.matchers:
            for key, category_id, candidate in candidates:
                confidence = matcher(query, candidate)
                if confidence is None:
                    continue
                if confidence == CONFIDENCE_LOW and not self.settings.category_accept_low_confidence:
                    logger.warning(f"낮은 신뢰도 카테고리 매칭 거부 ({stage}단계): '{text}' -> '{key}'")
                    return None
                if confidence in (CONFIDENCE_WEAK, CONFIDENCE_LOW):
                    logger.warning(f"카테고리 부분 매칭 ({stage}단계, 신뢰도 {confidence}): '{text}' -> '{key}' ({category_id})")
                else:
                    logger.info(f"카테고리 부분 매칭 ({stage}단계): '{text}' -> '{key}' ({category_id})")
                return CategoryMatch(category_id=category_id, matched_key=key, stage=stage, confidence=confidence)
        return None


def match_warning(match: CategoryMatch, query: str) -> Optional[DegradedModeWarning]:
    """약한/낮은 신뢰도 매칭이면 경고 기록을 만든다."""
    if match.confidence == CONFIDENCE_WEAK:
        kind = "category_weak_match"
    elif match.confidence == CONFIDENCE_LOW:
        kind = "category_low_confidence"
    else:
        return None
    return DegradedModeWarning(
        kind=kind,
        detail=f"'{query}' -> '{match.matched_key}' ({match.category_id}, {match.stage}단계)",
    )
