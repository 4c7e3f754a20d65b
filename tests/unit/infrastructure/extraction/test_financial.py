"""Unit tests for NBB filing extraction."""

import pytest

from registry_hub.domain.enrichment.models import FetchedPage
from registry_hub.infrastructure.extraction.financial import (
    FinancialFilingExtractor,
    find_filing_year,
    parse_amount,
    parse_rubric_csv,
    resolve_metric,
)


@pytest.mark.unit
class TestParseAmount:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("1.500.000,50", 1500000.5),
            ("125000", 125000.0),
            ("-2.500,00", -2500.0),
            ("1 234,5", 1234.5),
            ("1\u00a0234,5", 1234.5),
            ("12.5", 12.5),
            ("1.234.567", 1234567.0),
            ("18.600", 18600.0),
            ("1.500.000", 1500000.0),
            ("-2.500", -2500.0),
            ("18.60", 18.6),
        ],
    )
    def test_formats(self, raw, expected):
        assert parse_amount(raw) == expected

    @pytest.mark.parametrize("raw", [None, "", "  ", "n/a"])
    def test_unparseable(self, raw):
        assert parse_amount(raw) is None


@pytest.mark.unit
class TestRubrics:
    def test_comma_and_semicolon_exports(self):
        assert parse_rubric_csv('"70","1.200,00"\n"9904","-10"') == {"70": 1200.0, "9904": -10.0}
        assert parse_rubric_csv("70;1200\n9904;5") == {"70": 1200.0, "9904": 5.0}

    def test_semicolon_export_with_decimal_commas(self):
        content = '"70";"1500000,50"\n"9904";"125000,00"\n'
        assert parse_rubric_csv(content) == {"70": 1500000.5, "9904": 125000.0}

    def test_semicolon_inside_quoted_label_keeps_comma_delimiter(self):
        assert parse_rubric_csv('"70","1.200,00","Omzet; netto"') == {"70": 1200.0}

    def test_first_occurrence_wins(self):
        assert parse_rubric_csv("70;1\n70;2") == {"70": 1.0}

    def test_metric_falls_back_to_alternative_codes(self):
        data = {"70/74": 500.0, "9905": 20.0}
        assert resolve_metric(data, ("70", "70/74", "9903")) == 500.0
        assert resolve_metric(data, ("10/15", "10/49")) is None

    @pytest.mark.parametrize(
        "text,year",
        [
            ("Year-end date: 31/12/2023", 2023),
            ("Datum einde boekjaar 30/06/2022", 2022),
            ("Date de clôture : 31/03/2021", 2021),
            ("no year here", None),
        ],
    )
    def test_filing_year(self, text, year):
        assert find_filing_year(text) == year


@pytest.mark.unit
class TestFinancialFilingExtractor:
    extractor = FinancialFilingExtractor({"nl": ["geen jaarrekeningen"]})

    def _page(self, text="Year-end date: 31/12/2023", csv=None):
        exports = {"csv": csv} if csv is not None else {}
        return FetchedPage(url="https://nbb.test", text=text, exports=exports)

    def test_extracts_headline_metrics(self):
        summary = self.extractor.extract(
            "0417497106", self._page(csv="70;1200\n9904;100\n10/49;900\n9097;12,6")
        )
        assert summary.year == 2023
        assert summary.turnover == 1200.0
        assert summary.profit_loss == 100.0
        assert summary.equity == 900.0
        assert summary.employees == 13
        assert summary.net_margin == 8.33

    def test_no_year_is_nothing_usable(self):
        assert self.extractor.extract("0417497106", self._page(text="", csv="70;1")) is None

    def test_no_export_is_nothing_usable(self):
        assert self.extractor.extract("0417497106", self._page()) is None

    def test_no_known_rubric_is_nothing_usable(self):
        assert self.extractor.extract("0417497106", self._page(csv="21;5\n22;6")) is None

    def test_negative_employee_count_is_rejected(self):
        assert self.extractor.extract("0417497106", self._page(csv="9087;-3")) is None

    def test_detect_no_data(self):
        assert self.extractor.detect_no_data("Er zijn GEEN jaarrekeningen") == "geen jaarrekeningen"
        assert self.extractor.detect_no_data("Jaarrekening 2023") is None


@pytest.mark.unit
def test_filing_export_end_to_end():
    page = FetchedPage(
        url="https://nbb.test/0417497106",
        text="Jaarrekening\nDatum einde boekjaar: 31/12/2023",
        exports={"csv": '"70";"1.500.000,00"\n"9904";"125.000,00"\n"10/15";"400.000"\n'},
    )
    summary = FinancialFilingExtractor().extract("0417497106", page)

    assert summary.year == 2023
    assert summary.turnover == 1500000.0
    assert summary.profit_loss == 125000.0
    assert summary.equity == 400000.0
    assert summary.employees is None
    assert summary.net_margin == 8.33
