"""
Fixed lookup tables translating KBO open-data source codes.

Lookups never raise on an unknown code: juridical situations fall back to
``JuridicalSituation.OTHER`` and legal forms to ``None``.
"""

from types import MappingProxyType
from typing import Mapping, Optional

from registry_hub.domain.registry.models import CompanyStatus, JuridicalSituation

LEGAL_ENTITY_TYPE = "2"
ACTIVE_STATUS_CODE = "AC"
REGISTERED_OFFICE_ADDRESS = "REGO"
ENTERPRISE_CONTACT = "ENT"
MAIN_CLASSIFICATION = "MAIN"
ACCEPTED_NACE_VERSIONS = frozenset({"2008", "2025"})
DEFAULT_COUNTRY = "BE"

JURIDICAL_SITUATIONS: Mapping[str, JuridicalSituation] = MappingProxyType(
    {
        "000": JuridicalSituation.NORMAL,
        "001": JuridicalSituation.LEGAL_CREATION,
        "002": JuridicalSituation.EXTENSION,
        "003": JuridicalSituation.NUMBER_REPLACEMENT,
        "006": JuridicalSituation.STOPPED_NUMBER_REPLACEMENT,
        "010": JuridicalSituation.DISSOLUTION,
        "011": JuridicalSituation.FOREIGN_CEASED,
        "012": JuridicalSituation.OPENING_BANKRUPTCY,
        "013": JuridicalSituation.CLOSING_BANKRUPTCY,
        "020": JuridicalSituation.VOLUNTARY_DISSOLUTION,
        "030": JuridicalSituation.JUDICIAL_DISSOLUTION,
        "031": JuridicalSituation.JUDICIAL_DISSOLUTION_CLOSED,
        "040": JuridicalSituation.ANNULMENT,
        "041": JuridicalSituation.MERGER_ACQUISITION,
        "043": JuridicalSituation.DIVISION,
        "048": JuridicalSituation.TRANSFER_REGISTERED_OFFICE,
        "050": JuridicalSituation.BANKRUPTCY,
        "051": JuridicalSituation.BANKRUPTCY_CLOSED,
        "091": JuridicalSituation.LIQUIDATION,
    }
)

LEGAL_FORMS: Mapping[str, str] = MappingProxyType(
    {
        "001": "SCE", "002": "OFP", "003": "Unité TVA", "006": "SCRI",
        "007": "SCRIS", "008": "SCRL", "009": "SCRLS", "010": "SPRLU",
        "011": "SNC", "012": "SCS", "013": "SCA", "014": "SA", "015": "SPRL",
        "016": "SC", "017": "SE", "018": "GIE", "019": "GEIE",
        "020": "Fondation privée", "021": "Fondation utilité publique",
        "024": "Mutualité", "025": "Union nationale mutualités",
        "026": "Soc. mutualiste", "027": "ASBL", "028": "AISBL",
        "029": "Fondation", "030": "Établ. utilité publique",
        "101": "État fédéral", "102": "Communauté", "103": "Région",
        "104": "Commission comm.", "105": "Province", "106": "Commune",
        "107": "CPAS", "108": "Intercommunale", "109": "Zone police",
        "110": "Zone secours", "111": "Polder/Wateringue",
        "112": "Fabrique église", "113": "Établ. temporel",
        "114": "Autorité étrangère", "115": "Organisation internationale",
        "116": "Organisme public", "117": "Entreprise publique",
        "401": "Pers. physique commerçant",
        "402": "Pers. physique profession libérale",
        "403": "Pers. physique artisan", "404": "Pers. physique agriculteur",
        "405": "Pers. physique administrateur",
        "406": "Pers. physique salarié étranger",
        "407": "Pers. physique autre", "408": "Pers. physique indépendant",
        "409": "Pers. physique professionnel indépendant",
        "410": "Société momentanée", "411": "Société interne",
        "412": "Société de fait", "413": "Association de fait",
        "414": "Syndicat", "415": "Maison collective", "416": "Intercommunale",
        "417": "Régie communale", "418": "Copropriété",
        "419": "Entreprise sociale", "420": "Entreprise étrangère",
        "421": "Association", "430": "Org. interprofessionnel",
        "431": "Consort. validation compétences",
        "432": "Entreprise portefeuille",
        "610": "SA", "611": "SCA", "612": "SRL", "613": "SPRL", "614": "SC",
        "615": "SCRL", "616": "SNC", "617": "SCS", "618": "GIE",
        "620": "Fondation privée", "621": "Fondation utilité publique",
        "627": "AISBL", "628": "Fondation", "629": "ASBL", "630": "ASBL",
        "631": "Syndicat", "632": "Fonds pension", "633": "Parti politique",
        "639": "SE", "640": "SCE",
    }
)

# Denomination language codes (official names only)
NAME_LANGUAGES: Mapping[str, str] = MappingProxyType(
    {"1": "fr", "2": "nl", "3": "de", "4": "en"}
)

OFFICIAL_NAME = "001"
ABBREVIATION = "002"
COMMERCIAL_NAME = "003"

CONTACT_TYPES: Mapping[str, str] = MappingProxyType(
    {"TEL": "phone", "EMAIL": "email", "WEB": "website", "FAX": "fax"}
)


def map_status(code: Optional[str]) -> CompanyStatus:
    return CompanyStatus.ACTIVE if code == ACTIVE_STATUS_CODE else CompanyStatus.STOPPED


def map_juridical_situation(code: Optional[str]) -> JuridicalSituation:
    if code is None:
        return JuridicalSituation.OTHER
    return JURIDICAL_SITUATIONS.get(code.strip(), JuridicalSituation.OTHER)


def map_legal_form(code: Optional[str]) -> Optional[str]:
    if not code:
        return None
    return LEGAL_FORMS.get(code.strip())
