"""Unit tests for the chunked CSV reader."""

from pathlib import Path

import pytest

from registry_hub.io.readers import DelimitedReaderError, iter_rows


@pytest.fixture
def enterprise_csv(tmp_path: Path) -> Path:
    path = tmp_path / "enterprise.csv"
    path.write_text(
        "﻿EnterpriseNumber,Status,JuridicalForm,StartDate\n"
        "0417.497.106,AC,014,09-04-1974\n"
        "0203.201.340, AC ,,01-01-1926\n"
        "0000.000.196,ST,NA,\n",
        encoding="utf-8",
    )
    return path


@pytest.mark.unit
class TestIterRows:
    def test_values_are_stripped_strings(self, enterprise_csv):
        rows = list(iter_rows(enterprise_csv, chunksize=2))
        assert len(rows) == 3
        assert rows[0]["EnterpriseNumber"] == "0417.497.106"
        assert rows[1]["Status"] == "AC"
        assert rows[1]["JuridicalForm"] == ""

    def test_no_na_inference(self, enterprise_csv):
        rows = list(iter_rows(enterprise_csv))
        assert rows[2]["JuridicalForm"] == "NA"
        assert rows[2]["StartDate"] == ""

    def test_column_selection(self, enterprise_csv):
        rows = list(iter_rows(enterprise_csv, columns=["EnterpriseNumber", "Status"]))
        assert set(rows[0]) == {"EnterpriseNumber", "Status"}

    def test_missing_column(self, enterprise_csv):
        with pytest.raises(DelimitedReaderError, match="Denomination"):
            list(iter_rows(enterprise_csv, columns=["Denomination"]))

    def test_missing_file(self, tmp_path):
        with pytest.raises(DelimitedReaderError):
            list(iter_rows(tmp_path / "absent.csv"))
