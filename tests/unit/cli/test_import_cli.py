"""Unit tests for the import subcommand."""

from pathlib import Path
from unittest.mock import patch

import pytest

from registry_hub.cli.import_registry import build_parser, main
from registry_hub.config.settings import Settings

ENTERPRISE = """EnterpriseNumber,Status,JuridicalSituation,TypeOfEnterprise,JuridicalForm,StartDate
0417.497.106,AC,000,2,014,09-04-1974
"""
DENOMINATION = """EntityNumber,Language,TypeOfDenomination,Denomination
0417.497.106,2,001,Acme NV
"""
ADDRESS = """EntityNumber,TypeOfAddress,Zipcode,MunicipalityNL,MunicipalityFR,StreetNL,StreetFR,HouseNumber,Box
0417.497.106,REGO,9000,Gent,Gand,Kerkstraat,,1,
"""
ACTIVITY = """EntityNumber,ActivityGroup,NaceVersion,NaceCode,Classification
0417.497.106,001,2008,62010,MAIN
"""


@pytest.fixture
def source_args(tmp_path: Path):
    args = []
    for name, content in [
        ("enterprise", ENTERPRISE),
        ("denomination", DENOMINATION),
        ("address", ADDRESS),
        ("activity", ACTIVITY),
    ]:
        path = tmp_path / f"{name}.csv"
        path.write_text(content, encoding="utf-8")
        args += [f"--{name}", str(path)]
    return args


@pytest.fixture
def offline_settings():
    settings = Settings(_env_file=None, database_uri=None)
    with patch("registry_hub.cli.import_registry.get_settings", return_value=settings):
        yield settings


@pytest.mark.unit
class TestImportParser:
    def test_defaults(self, source_args):
        args = build_parser().parse_args(source_args)
        assert args.active_only is True
        assert args.dry_run is False
        assert args.batch_size is None
        assert args.contact is None

    def test_no_active_only(self, source_args):
        args = build_parser().parse_args(source_args + ["--no-active-only", "--batch-size", "50"])
        assert args.active_only is False
        assert args.batch_size == 50

    def test_required_sources(self):
        with pytest.raises(SystemExit):
            build_parser().parse_args(["--enterprise", "enterprise.csv"])


@pytest.mark.unit
class TestImportMain:
    def test_dry_run_needs_no_store(self, source_args, offline_settings, capsys):
        assert main(source_args + ["--dry-run"]) == 0
        out = capsys.readouterr().out
        assert "[DRY RUN]" in out
        assert "Imported: 1" in out

    def test_missing_database_uri(self, source_args, offline_settings, capsys):
        assert main(source_args) == 1
        assert "REG_DATABASE_URI" in capsys.readouterr().err

    def test_missing_source_file(self, source_args, offline_settings, tmp_path, capsys):
        source_args[1] = str(tmp_path / "absent.csv")
        assert main(source_args + ["--dry-run"]) == 1
        assert "absent.csv" in capsys.readouterr().err

    def test_rejects_zero_batch_size(self, source_args, offline_settings):
        assert main(source_args + ["--batch-size", "0"]) == 1
