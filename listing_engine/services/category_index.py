"""
스마트스토어 리프 카테고리 경로 -> 카테고리 ID 캐시.

카테고리 트리는 프로세스 수명 동안 한 번만 조회하고, invalidate() 호출 시에만 다시 만든다.
"""

import logging
import threading
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from listing_engine.exceptions import DegradedModeWarning
from listing_engine.schemas.listing import CategoryEntry

logger = logging.getLogger(__name__)

CANONICAL_DELIMITER = " > "
COMPACT_DELIMITER = ">"

# 카테고리 조회 실패 시 최소한의 매칭을 위한 기본 테이블
SEED_CATEGORIES: Dict[str, str] = {
    "패션의류 > 상의 > 티셔츠": "50000805",
    "패션의류 > 하의 > 청바지": "50000806",
    "패션의류 > 하의 > 슬랙스": "50000807",
    "패션잡화 > 가방 > 백팩": "50000808",
    "패션잡화 > 가방 > 토트백": "50000809",
    "식품 > 과자/간식 > 과자": "50000810",
    "식품 > 과자/간식 > 초콜릿": "50000811",
    "디지털/가전 > 모니터": "50000812",
    "디지털/가전 > 노트북": "50000813",
    "생활/주방 > 주방용품 > 프라이팬": "50000814",
    "반려동물 > 강아지용품 > 사료": "50000815",
}

TreeFetcher = Callable[[], Any]


def _node_id(node: Dict[str, Any]) -> Optional[str]:
    for key in ("id", "categoryId", "leafCategoryId"):
        value = node.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def _is_leaf(node: Dict[str, Any]) -> bool:
    last = node.get("last")
    if last is not None:
        return last is True or str(last).lower() == "true"
    return not node.get("children")


class CategoryIndex:
    """
    리프 카테고리 경로 캐시.

    - " > " 형태와 ">" 형태를 각각 별도 키로 등록한다.
    - ensure_built()는 동시에 여러 스레드가 호출해도 조회를 한 번만 수행한다.
    """

    def __init__(self, fetch_tree: Optional[TreeFetcher] = None):
        self._fetch_tree = fetch_tree
        self._entries: Dict[str, CategoryEntry] = {}
        self._built = False
        self._lock = threading.Lock()
        self.degraded = False

    def build(self, tree: Any) -> int:
        """
        카테고리 트리(노드 리스트 또는 루트 노드)로부터 리프 경로 맵을 만든다.
        비어있으면 기본 테이블로 대체한다. 등록된 키 개수를 반환한다.
        """
        entries: Dict[str, CategoryEntry] = {}
        nodes = self._as_nodes(tree)
        self._walk(nodes, "", entries)

        if entries:
            self._entries = entries
            self.degraded = False
            logger.info(f"카테고리 캐시 구성 완료: {len(entries)}개 키")
        else:
            logger.warning("카테고리 트리가 비어 있어 기본 카테고리 테이블을 사용합니다.")
            self._load_seed()
        self._built = True
        return len(self._entries)

    def ensure_built(self) -> None:
        if self._built:
            return
        with self._lock:
            if self._built:
                return
            if self._fetch_tree is None:
                logger.warning("카테고리 조회 함수가 없어 기본 카테고리 테이블을 사용합니다.")
                self._load_seed()
                self._built = True
                return
            try:
                tree = self._fetch_tree()
            except Exception as e:
                logger.warning(f"카테고리 트리 조회 실패, 기본 카테고리 테이블 사용: {e}")
                self._load_seed()
                self._built = True
                return
            self.build(tree)

    def is_empty(self) -> bool:
        return not self._entries

    def invalidate(self) -> None:
        with self._lock:
            self._entries = {}
            self._built = False
            self.degraded = False
        logger.info("카테고리 캐시 초기화")

    def lookup(self, key: str) -> Optional[str]:
        entry = self._entries.get(key)
        return entry.id if entry else None

    def items(self) -> List[Tuple[str, str]]:
        """(경로 키, 카테고리 ID) 목록. 등록 순서를 유지한다."""
        return [(key, entry.id) for key, entry in self._entries.items()]

    def __len__(self) -> int:
        return len(self._entries)

    def degraded_warning(self) -> Optional[DegradedModeWarning]:
        if not self.degraded:
            return None
        return DegradedModeWarning(
            kind="category_seed",
            detail=f"카테고리 기본 테이블 사용 중 ({len(self._entries)}개 키)",
        )

    def _load_seed(self) -> None:
        entries: Dict[str, CategoryEntry] = {}
        for path, category_id in SEED_CATEGORIES.items():
            self._register(entries, path, category_id)
        self._entries = entries
        self.degraded = True

    @staticmethod
    def _as_nodes(tree: Any) -> Iterable[Dict[str, Any]]:
        if not tree:
            return []
        if isinstance(tree, dict):
            # 루트 노드 하나 또는 {"children": [...]} 래퍼
            if _node_id(tree) is None and "children" in tree:
                return tree.get("children") or []
            return [tree]
        return [node for node in tree if isinstance(node, dict)]

    def _walk(self, nodes: Iterable[Dict[str, Any]], parent_path: str, entries: Dict[str, CategoryEntry]) -> None:
        for node in nodes:
            name = str(node.get("name") or "").strip()
            whole_name = node.get("wholeCategoryName") or node.get("wholeName")
            if whole_name:
                path = CANONICAL_DELIMITER.join(
                    p.strip() for p in str(whole_name).split(COMPACT_DELIMITER) if p.strip()
                )
            elif parent_path:
                path = f"{parent_path}{CANONICAL_DELIMITER}{name}"
            else:
                path = name

            if _is_leaf(node):
                category_id = _node_id(node)
                if category_id and path:
                    if not whole_name:
                        logger.debug(f"wholeCategoryName 없음, name으로 경로 구성: {path} -> {category_id}")
                    self._register(entries, path, category_id)
                continue

            children = node.get("children") or []
            if children:
                self._walk(children, path, entries)

    @staticmethod
    def _register(entries: Dict[str, CategoryEntry], path: str, category_id: str) -> None:
        entry = CategoryEntry(path=path, id=category_id, is_leaf=True)
        entries.setdefault(path, entry)
        compact = path.replace(CANONICAL_DELIMITER, COMPACT_DELIMITER)
        if compact != path:
            entries.setdefault(compact, entry)
