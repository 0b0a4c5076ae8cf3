from unittest.mock import Mock

import pytest

from listing_engine.exceptions import CollaboratorError
from listing_engine.services.origin_resolver import OriginCodeTable, OriginResolver, determine_origin_code
from listing_engine.settings import Settings

ORIGIN_ROWS = [
    {"code": "0200037", "name": "베트남"},
    {"code": "0200036", "name": "중국"},
    {"code": "00", "name": "국산"},
]


@pytest.fixture
def settings():
    return Settings(_env_file=None)


@pytest.mark.unit
class TestHeuristic:
    @pytest.mark.parametrize("origin", ["국내산", "한국", "국산(경기도)"])
    def test_domestic_keywords(self, origin):
        assert determine_origin_code(origin) == "00"

    @pytest.mark.parametrize("origin", ["베트남", "중국", "미국산"])
    def test_everything_else_is_imported(self, origin):
        assert determine_origin_code(origin) == "02"

    def test_foreign_origin_without_table(self, settings):
        resolver = OriginResolver(OriginCodeTable(), settings=settings)
        warnings = []

        info = resolver.resolve("베트남", "생활 > 수건", warnings=warnings)

        assert info.code == "02"
        assert info.is_foreign is True
        assert info.importer_name == "수입사명"
        assert info.display_content == "베트남"
        assert {w.kind for w in warnings} == {"origin_heuristic", "origin_placeholder_importer"}

    def test_empty_origin_defaults_to_domestic(self, settings):
        info = OriginResolver(OriginCodeTable(), settings=settings).resolve("  ", None)
        assert info.code == "00"
        assert info.display_content == "국내산"
        assert info.is_foreign is False
        assert info.importer_name is None

    def test_domestic_origin_has_no_importer(self, settings):
        info = OriginResolver(OriginCodeTable(), settings=settings).resolve("국내산", None)
        assert info.importer_name is None
        assert "importer" not in info.to_payload()


@pytest.mark.unit
class TestCodeTable:
    def test_exact_and_substring_lookup(self, settings):
        table = OriginCodeTable(fetch_table=Mock(return_value=ORIGIN_ROWS))
        resolver = OriginResolver(table, settings=settings)

        assert resolver.resolve("베트남", None).code == "0200037"
        china = resolver.resolve("중국산", None)
        assert china.code == "0200036"
        assert china.is_foreign is True
        table._fetch_table.assert_called_once()

    def test_table_miss_falls_back_without_warning(self, settings):
        resolver = OriginResolver(OriginCodeTable(fetch_table=Mock(return_value=ORIGIN_ROWS)), settings=settings)
        warnings = []
        info = resolver.resolve("이탈리아", None, importer_name="(주)수입상사", warnings=warnings)
        assert info.code == "02"
        assert info.importer_name == "(주)수입상사"
        assert warnings == []

    def test_fetch_failure_uses_heuristic(self, settings):
        table = OriginCodeTable(fetch_table=Mock(side_effect=CollaboratorError("조회 실패")))
        info = OriginResolver(table, settings=settings).resolve("베트남", None)
        assert info.code == "02"
        assert table.degraded is True

    def test_invalidate(self):
        fetch = Mock(return_value=ORIGIN_ROWS)
        table = OriginCodeTable(fetch_table=fetch)
        table.ensure_built()
        table.invalidate()
        assert table.is_empty()
        assert table.find("베트남") == "0200037"
        assert fetch.call_count == 2


@pytest.mark.unit
class TestMarineFields:
    EXTRA = {"oceanName": "태평양", "oceanType": "NORTH_PACIFIC", "oceanArea": "77"}

    def test_stripped_for_non_marine_category(self, settings):
        info = OriginResolver(OriginCodeTable(), settings=settings).resolve("국내산", "생활 > 수건", extra=self.EXTRA)
        assert info.marine_fields == {}
        assert "oceanName" not in info.to_payload()

    def test_kept_for_marine_category(self, settings):
        info = OriginResolver(OriginCodeTable(), settings=settings).resolve(
            "국내산", "식품 > 수산물 > 생선", extra=self.EXTRA
        )
        assert info.to_payload()["oceanName"] == "태평양"

    def test_stripped_for_numeric_category(self, settings):
        info = OriginResolver(OriginCodeTable(), settings=settings).resolve("국내산", "50002100", extra=self.EXTRA)
        assert info.marine_fields == {}
