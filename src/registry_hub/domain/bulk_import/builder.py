"""
Transient per-entity accumulator used while joining the registry extracts.

A ``BuilderRecord`` is created by the identity pass and then only filled in:
every setter keeps the first value it sees for a field and ignores later ones.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional

from registry_hub.domain.registry.models import (
    Address,
    CompanyNames,
    CompanyRecord,
    CompanyStatus,
    Contact,
    JuridicalSituation,
)
from registry_hub.utils.slugify import slugify


class MissingRequiredFieldError(ValueError):
    """A record cannot be persisted because a required field is empty."""

    def __init__(self, enterprise_number: str, field_name: str):
        super().__init__(f"{enterprise_number}: missing required field '{field_name}'")
        self.enterprise_number = enterprise_number
        self.field_name = field_name


@dataclass
class BuilderRecord:
    enterprise_number: str
    status: CompanyStatus
    juridical_situation: JuridicalSituation
    legal_form: Optional[str] = None
    legal_form_code: Optional[str] = None
    start_date: Optional[str] = None
    names: Dict[str, str] = field(default_factory=dict)
    address: Optional[Address] = None

    def set_name(self, slot: str, value: str) -> bool:
        """Fill a name slot (fr/nl/de/en/abbreviation/commercial) if still empty."""
        if not value or slot in self.names:
            return False
        self.names[slot] = value
        return True

    def set_address(self, address: Address) -> bool:
        if self.address is not None or not address.is_complete():
            return False
        self.address = address
        return True

    def finalize(
        self, contact: Optional[Dict[str, str]] = None, establishment_count: int = 0
    ) -> CompanyRecord:
        """
        Convert into a persistable record.

        Raises:
            MissingRequiredFieldError: If no name exists in any slot
        """
        names = CompanyNames(**self.names)
        display_name = names.display_name()
        if not display_name:
            raise MissingRequiredFieldError(self.enterprise_number, "name")

        return CompanyRecord(
            enterprise_number=self.enterprise_number,
            name=display_name,
            slug=slugify(display_name) or self.enterprise_number,
            names=names,
            legal_form=self.legal_form,
            legal_form_code=self.legal_form_code,
            status=self.status,
            juridical_situation=self.juridical_situation,
            start_date=self.start_date,
            address=self.address,
            contact=Contact(**contact) if contact else None,
            establishment_count=establishment_count,
        )
