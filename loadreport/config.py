"""Scenario configuration file loading.

A config file holds either a single scenario object, or a
``{"defaultSettings": {...}, "scenarios": [...]}`` document where every
scenario overlays the defaults (headers are merged key by key).
"""

import json
import logging
import time
from pathlib import Path
from typing import Any

import httpx
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_SCENARIO_NAME = "Default Test"


class LoadTestConfig(BaseModel):
    """One scenario: what to hit and how hard."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    name: str = DEFAULT_SCENARIO_NAME
    url: str
    method: str = "GET"
    headers: dict[str, str] = Field(default_factory=dict)
    payload: Any = None
    connections: int = Field(default=30, ge=1, description="Concurrent connections")
    duration: int = Field(default=30, ge=1, description="Test duration in seconds")
    timeout: float = Field(default=10.0, gt=0, description="Per-request timeout in seconds")

    @field_validator("url")
    @classmethod
    def check_url(cls, value: str) -> str:
        try:
            url = httpx.URL(value)
        except httpx.InvalidURL as e:
            raise ValueError(f"invalid URL: {e}") from e
        if url.scheme not in ("http", "https"):
            raise ValueError(f"URL scheme must be http or https, got '{url.scheme}'")
        if not url.host:
            raise ValueError("URL has no host")
        return value

    @field_validator("method", mode="before")
    @classmethod
    def normalize_method(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value

    @field_validator("headers", mode="before")
    @classmethod
    def stringify_headers(cls, value: Any) -> Any:
        if value is None:
            return {}
        if isinstance(value, dict):
            return {str(k): str(v) for k, v in value.items()}
        return value

    @property
    def body(self) -> str | None:
        """Request body: the payload serialized as JSON, if any."""
        if self.payload is None:
            return None
        return json.dumps(self.payload)


class ScenarioFile(BaseModel):
    """Parsed config file: ordered scenarios plus how the file was shaped."""

    scenarios: list[LoadTestConfig]
    multi_scenario: bool


def merge_scenario(defaults: dict[str, Any], scenario: dict[str, Any]) -> dict[str, Any]:
    """Overlay a scenario on the default settings.

    Every field of the scenario replaces the default, except headers, which
    are merged key by key with the scenario winning.
    """
    merged = {**defaults, **scenario}
    merged["headers"] = {**(defaults.get("headers") or {}), **(scenario.get("headers") or {})}
    return merged


def parse_scenarios(document: Any) -> ScenarioFile:
    """Turn a decoded config document into validated scenarios.

    Raises:
        ConfigError: When the document shape or any scenario is invalid.
    """
    if not isinstance(document, dict):
        raise ConfigError("Configuration must be a JSON object")

    try:
        scenarios = document.get("scenarios")
        if isinstance(scenarios, list):
            defaults = document.get("defaultSettings") or {}
            if not isinstance(defaults, dict):
                raise ConfigError("defaultSettings must be an object")

            configs: list[LoadTestConfig] = []
            for index, scenario in enumerate(scenarios):
                if not isinstance(scenario, dict):
                    raise ConfigError(f"Scenario #{index + 1} must be an object")
                merged = merge_scenario(defaults, scenario)
                if not scenario.get("name"):
                    merged["name"] = f"Test-{int(time.time() * 1000)}-{index + 1}"
                configs.append(LoadTestConfig.model_validate(merged))
            return ScenarioFile(scenarios=configs, multi_scenario=True)

        single = {**document, "name": document.get("name") or DEFAULT_SCENARIO_NAME}
        return ScenarioFile(
            scenarios=[LoadTestConfig.model_validate(single)], multi_scenario=False
        )
    except ValidationError as e:
        raise ConfigError(f"Invalid scenario configuration: {e}") from e


def load_scenarios(path: Path | str) -> ScenarioFile:
    """Read and validate a scenario config file.

    Raises:
        ConfigError: When the file cannot be read, is not valid JSON, or
            fails validation.
    """
    config_path = Path(path)
    logger.info("Loading configuration from: %s", config_path)
    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Error loading config {config_path}: {e}") from e

    try:
        document = json.loads(text)
    except json.JSONDecodeError as e:
        raise ConfigError(f"Error parsing config {config_path}: {e}") from e

    return parse_scenarios(document)
