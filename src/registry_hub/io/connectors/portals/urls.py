"""Outbound URL construction for the external portals."""

from registry_hub.config.portal_schema import PortalConfig
from registry_hub.domain.registry.enterprise_number import (
    group_digits,
    normalize_enterprise_number,
)


def build_portal_url(portal: PortalConfig, enterprise_number: str) -> str:
    """
    Example:
        >>> build_portal_url(registry_portal, "0417497106")
        'https://kbopub.economie.fgov.be/kbopub/zoeknummerform.html?nummer=0417.497.106&actionLu=Recherche'
    """
    if portal.key_format == "grouped":
        key = group_digits(enterprise_number)
    else:
        key = normalize_enterprise_number(enterprise_number)
    return portal.url_template.format(key=key)
