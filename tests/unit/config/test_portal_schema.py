"""Unit tests for portal definition loading and URL construction."""

from pathlib import Path

import pytest

from registry_hub.config.portal_schema import PortalConfig, load_portals_config
from registry_hub.config.settings import ConfigurationError
from registry_hub.io.connectors.portals import build_portal_url

SHIPPED_CONFIG = Path(__file__).resolve().parents[3] / "config" / "portals.yml"


@pytest.mark.unit
class TestLoadPortalsConfig:
    def test_shipped_config_is_valid(self):
        portals = load_portals_config(SHIPPED_CONFIG)
        financial = portals.for_source("financial")
        registry = portals.for_source("registry")
        assert financial.export_selector
        assert registry.key_format == "grouped"
        assert "aucun résultat" in registry.no_data_phrases["fr"]

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigurationError, match="not found"):
            load_portals_config(tmp_path / "portals.yml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "portals.yml"
        path.write_text("portals: [unclosed", encoding="utf-8")
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            load_portals_config(path)

    def test_template_without_placeholder(self, tmp_path):
        path = tmp_path / "portals.yml"
        path.write_text(
            "portals:\n  financial:\n    url_template: https://nbb.test/company\n",
            encoding="utf-8",
        )
        with pytest.raises(ConfigurationError, match="validation failed"):
            load_portals_config(path)

    def test_unknown_source(self):
        portals = load_portals_config(SHIPPED_CONFIG)
        with pytest.raises(ConfigurationError):
            portals.for_source("gazette")

    def test_phrases_are_normalized(self):
        portal = PortalConfig(
            url_template="https://x.test/{key}", no_data_phrases={"nl": ["  Geen Resultaten ", ""]}
        )
        assert portal.no_data_phrases == {"nl": ["geen resultaten"]}


@pytest.mark.unit
class TestBuildPortalUrl:
    def test_digits(self):
        portal = PortalConfig(url_template="https://nbb.test/{key}")
        assert build_portal_url(portal, "BE 0417.497.106") == "https://nbb.test/0417497106"

    def test_grouped(self):
        portal = PortalConfig(url_template="https://kbo.test?nummer={key}", key_format="grouped")
        assert build_portal_url(portal, "0417497106") == "https://kbo.test?nummer=0417.497.106"
