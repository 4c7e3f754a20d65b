"""Unit tests for the seven-pass bulk import orchestration."""

from pathlib import Path

import pytest

from registry_hub.domain.bulk_import import BulkImportService, ImportSources
from registry_hub.io.loader.batch_writer import BatchUpsertWriter
from registry_hub.io.readers import iter_rows
from tests.fixtures.in_memory_store import InMemoryCompanyStore

ENTERPRISE = """EnterpriseNumber,Status,JuridicalSituation,TypeOfEnterprise,JuridicalForm,StartDate
0417.497.106,AC,000,2,014,09-04-1974
0203.201.340,AC,000,2,612,01-01-1926
0000.000.196,AC,000,2,014,01-01-2000
0000.000.295,AC,000,1,,01-01-2000
0417.497.107,AC,000,2,014,01-01-2000
"""

DENOMINATION = """EntityNumber,Language,TypeOfDenomination,Denomination
0417.497.106,2,001,Acme NV
0417.497.106,1,001,Acme SA
0203.201.340,1,003,Rail Commercial
"""

ADDRESS = """EntityNumber,TypeOfAddress,Zipcode,MunicipalityNL,MunicipalityFR,StreetNL,StreetFR,HouseNumber,Box
0417.497.106,REGO,9000,Gent,Gand,Kerkstraat,,1,
"""

ACTIVITY = """EntityNumber,ActivityGroup,NaceVersion,NaceCode,Classification
0417.497.106,001,2008,62010,MAIN
0417.497.106,001,2008,70220,SECO
0203.201.340,001,2003,49100,MAIN
0203.201.340,001,2025,49100,MAIN
0000.000.196,001,2008,01110,SECO
"""

CONTACT = """EntityNumber,EntityContact,ContactType,Value
0417.497.106,ENT,EMAIL,Info@Acme.be
"""


@pytest.fixture
def sources(tmp_path: Path) -> ImportSources:
    files = {}
    for name, content in [
        ("enterprise", ENTERPRISE),
        ("denomination", DENOMINATION),
        ("address", ADDRESS),
        ("activity", ACTIVITY),
        ("contact", CONTACT),
    ]:
        path = tmp_path / f"{name}.csv"
        path.write_text(content, encoding="utf-8")
        files[name] = path
    return ImportSources(**files)


def read_rows(path, columns):
    return iter_rows(path, columns, chunksize=2)


@pytest.mark.unit
class TestBulkImportService:
    def test_full_import_into_store(self, sources):
        store = InMemoryCompanyStore()
        with BatchUpsertWriter(store, concurrency=2) as writer:
            result = BulkImportService(read_rows, writer=writer).run(
                sources, batch_size=1, activity_batch_size=10
            )

        assert result.success
        assert result.imported == 2
        assert result.skipped == 1
        assert result.contacts == 1
        assert result.nace_codes == 2
        assert set(store.rows) == {"0417497106", "0203201340"}

        acme = store.rows["0417497106"]
        assert acme["name"] == "Acme SA"
        assert acme["legal_form"] == "SA"
        assert acme["start_date"] == "1974-04-09"
        assert acme["contact"] == {"email": "info@acme.be"}
        assert acme["nace_codes"] == ["62010", "70220"]
        assert acme["nace_main"] == "62010"

        rail = store.rows["0203201340"]
        assert rail["name"] == "Rail Commercial"
        assert rail["address"] is None
        assert rail["nace_codes"] == ["49100"]

        stats = result.stats
        assert stats.invalid_keys == 0
        assert stats.checksum_mismatches == 1
        assert stats.for_pass("identity").rows_filtered == 1

    def test_dry_run_writes_nothing(self, sources):
        result = BulkImportService(read_rows).run(sources, dry_run=True)

        assert result.dry_run
        assert result.imported == 2
        assert result.stats.activity_codes == 4

    def test_failed_chunk_is_reported_and_import_continues(self, sources):
        store = InMemoryCompanyStore(fail_on={"0417497106"})
        with BatchUpsertWriter(store, concurrency=2) as writer:
            result = BulkImportService(read_rows, writer=writer).run(sources, batch_size=1)

        assert not result.success
        assert result.imported == 1
        assert "0203201340" in store.rows
        stages = [f["stage"] for f in result.stats.failed_batches]
        assert "upsert" in stages

    def test_missing_source_file(self, sources, tmp_path):
        sources.activity = tmp_path / "missing.csv"
        with pytest.raises(FileNotFoundError):
            BulkImportService(read_rows).run(sources, dry_run=True)

    def test_writer_required_unless_dry_run(self, sources):
        with pytest.raises(ValueError):
            BulkImportService(read_rows).run(sources)

    def test_rerun_is_idempotent(self, sources):
        store = InMemoryCompanyStore()
        with BatchUpsertWriter(store, concurrency=2) as writer:
            service = BulkImportService(read_rows, writer=writer)
            service.run(sources, batch_size=1)
            service.run(sources, batch_size=1)

        assert store.rows["0417497106"]["nace_codes"] == ["62010", "70220"]
