"""
Schema validation for the external portal definitions (config/portals.yml).

Each portal is addressed by the enrichment source it serves. The crawler only
reads validated ``PortalConfig`` objects; malformed YAML or an unknown
placeholder in a URL template is a fatal configuration problem.
"""

from pathlib import Path
from typing import Dict, List, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from registry_hub.config.settings import ConfigurationError


class PortalConfig(BaseModel):
    """Schema for a single portal definition."""

    description: Optional[str] = Field(None, description="Human-readable description")
    url_template: str = Field(..., description="URL with a {key} placeholder")
    key_format: Literal["digits", "grouped"] = Field(
        "digits", description="How the enterprise number is rendered in the URL"
    )
    wait_until: Literal["load", "domcontentloaded", "networkidle"] = "load"
    ready_selector: Optional[str] = Field(
        None, description="Selector awaited before the page is considered loaded"
    )
    export_selector: Optional[str] = Field(
        None, description="Selector of a control that downloads a tabular export"
    )
    no_data_phrases: Dict[str, List[str]] = Field(
        default_factory=dict, description="Locale code -> phrases meaning 'no data'"
    )

    @field_validator("url_template")
    @classmethod
    def validate_url_template(cls, v: str) -> str:
        if "{key}" not in v:
            raise ValueError("url_template must contain a {key} placeholder")
        return v

    @field_validator("no_data_phrases")
    @classmethod
    def normalize_phrases(cls, v: Dict[str, List[str]]) -> Dict[str, List[str]]:
        return {
            locale: [phrase.strip().lower() for phrase in phrases if phrase.strip()]
            for locale, phrases in v.items()
        }


class PortalsConfig(BaseModel):
    """Top-level portals.yml document."""

    portals: Dict[str, PortalConfig] = Field(..., min_length=1)

    def for_source(self, source: str) -> PortalConfig:
        try:
            return self.portals[source]
        except KeyError as e:
            raise ConfigurationError(
                f"No portal configured for enrichment source '{source}'"
            ) from e


def load_portals_config(path: Union[str, Path]) -> PortalsConfig:
    """
    Load and validate the portal definitions file.

    Raises:
        ConfigurationError: If the file is missing, not valid YAML, or fails
            schema validation
    """
    config_path = Path(path)
    if not config_path.exists():
        raise ConfigurationError(f"Portal configuration not found: {config_path}")

    try:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML in {config_path}: {e}") from e

    try:
        return PortalsConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(
            f"Portal configuration validation failed: {e}"
        ) from e
