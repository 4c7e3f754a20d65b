"""
Streaming multi-pass joiner for the KBO open-data extracts.

Passes run strictly in sequence over row iterators:

1. identity (enterprise.csv) creates one ``BuilderRecord`` per legal entity
2. names (denomination.csv)
3. registered-office addresses (address.csv)
4. enterprise-level contacts (contact.csv, optional)
5. establishment counts (establishment.csv, optional)

Memory is bounded by the number of entities discovered in pass 1. Rows for
keys not seen in pass 1 are skipped. Each setter keeps the first value it sees.
"""

from collections import Counter
from typing import Dict, Iterable, Iterator, Mapping, Optional

from registry_hub.domain.bulk_import.builder import (
    BuilderRecord,
    MissingRequiredFieldError,
)
from registry_hub.domain.bulk_import.observability import (
    ImportObserver,
    ImportStats,
    PassStats,
)
from registry_hub.domain.registry import mappings
from registry_hub.domain.registry.enterprise_number import (
    ChecksumMismatchError,
    InvalidKeyFormatError,
    normalize_enterprise_number,
    validate_enterprise_number,
)
from registry_hub.domain.registry.models import Address, CompanyRecord
from registry_hub.utils.date_parser import parse_day_month_year

Row = Mapping[str, str]

PASS_IDENTITY = "identity"
PASS_NAMES = "names"
PASS_ADDRESSES = "addresses"
PASS_CONTACTS = "contacts"
PASS_BRANCHES = "branches"

IDENTITY_COLUMNS = [
    "EnterpriseNumber",
    "Status",
    "JuridicalSituation",
    "TypeOfEnterprise",
    "JuridicalForm",
    "StartDate",
]
NAME_COLUMNS = ["EntityNumber", "Language", "TypeOfDenomination", "Denomination"]
ADDRESS_COLUMNS = [
    "EntityNumber",
    "TypeOfAddress",
    "Zipcode",
    "MunicipalityNL",
    "MunicipalityFR",
    "StreetNL",
    "StreetFR",
    "HouseNumber",
    "Box",
]
CONTACT_COLUMNS = ["EntityNumber", "EntityContact", "ContactType", "Value"]
BRANCH_COLUMNS = ["EstablishmentNumber", "StartDate", "EnterpriseNumber"]


def _field(row: Row, column: str) -> str:
    value = row.get(column)
    return value.strip() if value else ""


def normalize_website(value: str) -> str:
    return value if value.lower().startswith("http") else f"https://{value}"


class MultiPassJoiner:
    """Builds consolidated records from the identity, name, address, contact
    and establishment extracts."""

    def __init__(
        self,
        active_only: bool = True,
        observer: Optional[ImportObserver] = None,
        stats: Optional[ImportStats] = None,
    ):
        self.active_only = active_only
        self.observer = observer or ImportObserver()
        self.stats = stats or ImportStats()
        self.records: Dict[str, BuilderRecord] = {}
        self.contacts: Dict[str, Dict[str, str]] = {}
        self.branch_counts: Counter = Counter()

    def _start(self, pass_name: str) -> PassStats:
        self.observer.on_pass_started(pass_name)
        return self.stats.for_pass(pass_name)

    def _finish(self, pass_name: str, pass_stats: PassStats) -> None:
        self.observer.on_pass_completed(pass_name, pass_stats)

    def _known_key(self, raw: str, pass_stats: PassStats) -> Optional[str]:
        try:
            key = normalize_enterprise_number(raw)
        except InvalidKeyFormatError:
            pass_stats.unknown_keys += 1
            return None
        if key not in self.records:
            pass_stats.unknown_keys += 1
            return None
        return key

    # Pass 1
    def load_identities(self, rows: Iterable[Row]) -> int:
        pass_stats = self._start(PASS_IDENTITY)
        for row in rows:
            pass_stats.rows_read += 1

            if _field(row, "TypeOfEnterprise") != mappings.LEGAL_ENTITY_TYPE:
                pass_stats.rows_filtered += 1
                continue
            status_code = _field(row, "Status")
            if self.active_only and status_code != mappings.ACTIVE_STATUS_CODE:
                pass_stats.rows_filtered += 1
                continue

            try:
                key = validate_enterprise_number(_field(row, "EnterpriseNumber"))
            except ChecksumMismatchError:
                self.stats.checksum_mismatches += 1
                continue
            except InvalidKeyFormatError:
                self.stats.invalid_keys += 1
                continue

            if key in self.records:
                continue

            legal_form_code = _field(row, "JuridicalForm") or None
            self.records[key] = BuilderRecord(
                enterprise_number=key,
                status=mappings.map_status(status_code),
                juridical_situation=mappings.map_juridical_situation(
                    _field(row, "JuridicalSituation")
                ),
                legal_form=mappings.map_legal_form(legal_form_code),
                legal_form_code=legal_form_code,
                start_date=parse_day_month_year(_field(row, "StartDate")),
            )
            pass_stats.rows_accepted += 1

        self.stats.records_built = len(self.records)
        self._finish(PASS_IDENTITY, pass_stats)
        return len(self.records)

    # Pass 2
    def merge_names(self, rows: Iterable[Row]) -> None:
        pass_stats = self._start(PASS_NAMES)
        for row in rows:
            pass_stats.rows_read += 1
            key = self._known_key(_field(row, "EntityNumber"), pass_stats)
            if key is None:
                continue
            denomination = _field(row, "Denomination")
            if not denomination:
                pass_stats.rows_filtered += 1
                continue

            denomination_type = _field(row, "TypeOfDenomination")
            if denomination_type == mappings.OFFICIAL_NAME:
                slot = mappings.NAME_LANGUAGES.get(_field(row, "Language"))
            elif denomination_type == mappings.ABBREVIATION:
                slot = "abbreviation"
            elif denomination_type == mappings.COMMERCIAL_NAME:
                slot = "commercial"
            else:
                slot = None

            if slot is None:
                pass_stats.rows_filtered += 1
                continue
            if self.records[key].set_name(slot, denomination):
                pass_stats.rows_accepted += 1
        self._finish(PASS_NAMES, pass_stats)

    # Pass 3
    def merge_addresses(self, rows: Iterable[Row]) -> None:
        pass_stats = self._start(PASS_ADDRESSES)
        for row in rows:
            pass_stats.rows_read += 1
            if _field(row, "TypeOfAddress") != mappings.REGISTERED_OFFICE_ADDRESS:
                pass_stats.rows_filtered += 1
                continue
            key = self._known_key(_field(row, "EntityNumber"), pass_stats)
            if key is None:
                continue

            address = Address(
                street_fr=_field(row, "StreetFR") or None,
                street_nl=_field(row, "StreetNL") or None,
                number=_field(row, "HouseNumber") or None,
                box=_field(row, "Box") or None,
                postal_code=_field(row, "Zipcode") or None,
                city_fr=_field(row, "MunicipalityFR") or None,
                city_nl=_field(row, "MunicipalityNL") or None,
                country=mappings.DEFAULT_COUNTRY,
            )
            if self.records[key].set_address(address):
                pass_stats.rows_accepted += 1
        self._finish(PASS_ADDRESSES, pass_stats)

    # Pass 4
    def merge_contacts(self, rows: Iterable[Row]) -> None:
        pass_stats = self._start(PASS_CONTACTS)
        for row in rows:
            pass_stats.rows_read += 1
            if _field(row, "EntityContact") != mappings.ENTERPRISE_CONTACT:
                pass_stats.rows_filtered += 1
                continue
            slot = mappings.CONTACT_TYPES.get(_field(row, "ContactType"))
            value = _field(row, "Value")
            if slot is None or not value:
                pass_stats.rows_filtered += 1
                continue
            key = self._known_key(_field(row, "EntityNumber"), pass_stats)
            if key is None:
                continue

            contact = self.contacts.setdefault(key, {})
            if slot in contact:
                continue
            if slot == "email":
                value = value.lower()
            elif slot == "website":
                value = normalize_website(value)
            contact[slot] = value
            pass_stats.rows_accepted += 1

        self.stats.contacts = len(self.contacts)
        self._finish(PASS_CONTACTS, pass_stats)

    # Pass 5
    def count_branches(self, rows: Iterable[Row]) -> None:
        pass_stats = self._start(PASS_BRANCHES)
        for row in rows:
            pass_stats.rows_read += 1
            key = self._known_key(_field(row, "EnterpriseNumber"), pass_stats)
            if key is None:
                continue
            self.branch_counts[key] += 1
            pass_stats.rows_accepted += 1

        self.stats.branches = sum(self.branch_counts.values())
        self._finish(PASS_BRANCHES, pass_stats)

    def iter_records(self) -> Iterator[CompanyRecord]:
        """
        Finalize every builder, merging contacts and establishment counts.

        Records without any name are dropped and counted as skipped.
        """
        for key, builder in self.records.items():
            try:
                yield builder.finalize(
                    contact=self.contacts.get(key),
                    establishment_count=self.branch_counts.get(key, 0),
                )
            except MissingRequiredFieldError:
                self.stats.skipped_no_name += 1

    def release(self) -> None:
        """Drop every in-memory index once the records have been flushed."""
        self.records.clear()
        self.contacts.clear()
        self.branch_counts.clear()
