import pytest

from listing_engine.schemas.listing import ComplianceFlags
from listing_engine.services.compliance import COMPLIANCE_RULES, ComplianceAdvisor, ComplianceRule
from listing_engine.settings import Settings


@pytest.fixture
def advisor():
    return ComplianceAdvisor(settings=Settings(_env_file=None))


@pytest.mark.unit
class TestComplianceEvaluate:
    def test_monitor_requires_kc_exclusion(self, advisor):
        flags = advisor.evaluate("디지털/가전 > 모니터")
        assert flags.kc_exempt is True
        assert flags.child_exempt is False
        assert flags.is_marine_goods is False

    def test_appliance_root_alone_is_not_kc(self, advisor):
        assert advisor.evaluate("디지털/가전 > 음향기기 > 이어폰").kc_exempt is False

    def test_kc_keyword_is_case_insensitive(self, advisor):
        assert advisor.evaluate("가전 > TV").kc_exempt is True

    @pytest.mark.parametrize("leaf_id", ["50000003", "50002000", "50002999"])
    def test_kc_id_ranges(self, advisor, leaf_id):
        assert advisor.evaluate(None, leaf_id).kc_exempt is True

    def test_kc_id_outside_range(self, advisor):
        assert advisor.evaluate(None, "50003001").kc_exempt is False

    @pytest.mark.parametrize("path", ["출산/육아 > 유아동의류", "완구/취미 > 인형", "키즈 > 장난감"])
    def test_child_keywords(self, advisor, path):
        assert advisor.evaluate(path).child_exempt is True

    @pytest.mark.parametrize("leaf_id", ["50004000", "50016600", "50017000"])
    def test_child_id_ranges(self, advisor, leaf_id):
        assert advisor.evaluate("", leaf_id).child_exempt is True

    def test_marine_path(self, advisor):
        assert advisor.evaluate("식품 > 수산물 > 생선").is_marine_goods is True

    @pytest.mark.parametrize("category", ["50002100", "1", "99999999", " 50000151 "])
    def test_numeric_category_is_never_marine(self, advisor, category):
        assert advisor.evaluate(category, category.strip()).is_marine_goods is False

    def test_non_numeric_leaf_id_is_ignored(self, advisor):
        assert advisor.evaluate("생활 > 수건", "abc") == ComplianceFlags()

    def test_custom_rule_table(self):
        rules = (ComplianceRule(flag="kc_exempt", all_of_groups=(("조명",),)),)
        advisor = ComplianceAdvisor(rules=rules, settings=Settings(_env_file=None))
        assert advisor.evaluate("생활 > 조명").kc_exempt is True
        assert advisor.evaluate("디지털/가전 > 모니터").kc_exempt is False

    def test_default_rule_flags(self):
        assert {rule.flag for rule in COMPLIANCE_RULES} == {"kc_exempt", "child_exempt", "is_marine_goods"}


@pytest.mark.unit
class TestCertificationBlock:
    def test_always_emits_exclusion_markers_by_default(self, advisor):
        block = advisor.build_certification_block(ComplianceFlags())
        assert block["productCertificationInfos"] == []
        assert block["certificationTargetExcludeContent"] == {
            "kcCertifiedProductExclusionYn": "TRUE",
            "childCertifiedProductExclusionYn": True,
        }

    def test_emits_only_flagged_markers_when_configured(self):
        advisor = ComplianceAdvisor(settings=Settings(_env_file=None, compliance_always_emit_exclusion=False))

        kc_only = advisor.build_certification_block(ComplianceFlags(kc_exempt=True))
        assert kc_only["certificationTargetExcludeContent"] == {"kcCertifiedProductExclusionYn": "TRUE"}

        none = advisor.build_certification_block(ComplianceFlags())
        assert "certificationTargetExcludeContent" not in none
        assert none["productCertificationInfos"] == []
