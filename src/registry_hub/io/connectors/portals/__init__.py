from registry_hub.io.connectors.portals.browser import PlaywrightPortalFetcher
from registry_hub.io.connectors.portals.urls import build_portal_url

__all__ = ["PlaywrightPortalFetcher", "build_portal_url"]
