import pytest

from listing_engine.exceptions import ListingValidationError
from listing_engine.services.row_converter import group_rows, row_to_listing, row_to_variant, rows_to_groups


def _row(**overrides):
    row = {
        "_rowNumber": 2,
        "상품명": "무지 반팔 티셔츠",
        "카테고리": "패션의류 > 상의 > 티셔츠",
        "판매가": "12,900",
        "재고수량": "3.0",
        "상세설명": "<p>면 100%</p>",
        "대표이미지URL": "https://example.com/main.jpg",
        "추가이미지URL2": "https://example.com/extra2.jpg",
        "추가이미지URL1": "https://example.com/extra1.jpg",
        "배송방법": "CJ대한통운",
        "배송비": "3,000",
        "원산지": "베트남",
        "과세구분": "tax",
        "전시상태": "전시중",
    }
    row.update(overrides)
    return row


@pytest.mark.unit
class TestRowToListing:
    def test_parses_row(self):
        listing = row_to_listing(_row())

        assert listing.name == "무지 반팔 티셔츠"
        assert listing.sale_price == 12900
        assert listing.stock_quantity == 3
        assert listing.images == [
            "https://example.com/main.jpg",
            "https://example.com/extra1.jpg",
            "https://example.com/extra2.jpg",
        ]
        assert listing.delivery.delivery_type == "CJ대한통운"
        assert listing.delivery.delivery_company == "CJ대한통운"
        assert listing.delivery.delivery_fee == 3000
        assert listing.tax_type == "TAX"
        assert listing.row_number == 2

    def test_numeric_cell_values(self):
        listing = row_to_listing(_row(판매가=15000.0, 재고수량=0))
        assert listing.sale_price == 15000
        assert listing.stock_quantity == 0

    def test_blank_cells_are_none(self):
        listing = row_to_listing(_row(상품명="  ", 배송방법=None, 배송비=""))
        assert listing.name is None
        assert listing.delivery is None

    def test_invalid_number(self):
        with pytest.raises(ListingValidationError) as excinfo:
            row_to_listing(_row(판매가="만원"))
        assert excinfo.value.field == "salePrice"
        assert excinfo.value.message.startswith("행 2:")

    def test_empty_row(self):
        with pytest.raises(ListingValidationError):
            row_to_listing({})


@pytest.mark.unit
class TestGrouping:
    def test_variant_requires_option(self):
        with pytest.raises(ListingValidationError) as excinfo:
            row_to_variant(_row())
        assert excinfo.value.field == "standardPurchaseOptions"

    def test_variant_options(self):
        variant = row_to_variant(_row(옵션명1="색상", 옵션값1="블랙", 옵션명2="사이즈", 옵션값2="L"))
        assert variant.options == {"색상": "블랙", "사이즈": "L"}

    def test_group_rows_keep_order_and_isolate_missing_keys(self):
        rows = [
            _row(_rowNumber=2, 그룹ID="B"),
            _row(_rowNumber=3, 그룹ID="A"),
            _row(_rowNumber=4, 그룹ID="B"),
            _row(_rowNumber=5),
        ]
        grouped = group_rows(rows, "그룹ID")
        assert list(grouped.keys()) == ["B", "A", "UNGROUPED_5"]
        assert [r["_rowNumber"] for r in grouped["B"]] == [2, 4]

    def test_rows_without_key_or_row_number_stay_separate(self):
        grouped = group_rows([{"상품명": "a"}, {"상품명": "b"}, {"상품명": "c", "그룹ID": "G"}], "그룹ID")
        assert list(grouped.keys()) == ["UNGROUPED_1", "UNGROUPED_2", "G"]
        assert all(len(rows) == 1 for rows in grouped.values())

    def test_rows_to_groups(self):
        rows = [
            _row(_rowNumber=2, 그룹ID="G1", guideId="123", 옵션명1="색상", 옵션값1="블랙"),
            _row(_rowNumber=3, 그룹ID="G1", guideId="123", 옵션명1="색상", 옵션값1="화이트", 판매가="13,900"),
        ]
        groups = rows_to_groups(rows, "그룹ID")

        assert len(groups) == 1
        group = groups[0]
        assert group.guide_id == 123
        assert group.name == "무지 반팔 티셔츠"
        assert [v.options["색상"] for v in group.variants] == ["블랙", "화이트"]
        assert group.variants[1].sale_price == 13900
