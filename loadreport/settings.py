"""Process settings for the load test reporter."""

from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OutputSettings(BaseSettings):
    """Where reports and raw results are written."""

    reports_dir: Path = Path("reports")
    json_dir: Path | None = Field(
        default=None,
        description="Raw JSON results; defaults to <reports_dir>/json",
    )

    model_config = SettingsConfigDict(env_prefix="LOADREPORT_OUTPUT_")

    @model_validator(mode="after")
    def default_json_dir(self) -> "OutputSettings":
        if self.json_dir is None:
            self.json_dir = self.reports_dir / "json"
        return self

    @property
    def results_dir(self) -> Path:
        assert self.json_dir is not None
        return self.json_dir


class ChartSettings(BaseSettings):
    """Rasterized chart size in pixels."""

    width: int = Field(default=600, ge=100)
    height: int = Field(default=300, ge=100)
    scale: float = Field(default=2.0, gt=0, description="PNG export scale factor")

    model_config = SettingsConfigDict(env_prefix="LOADREPORT_CHART_")


class APISettings(BaseSettings):
    """HTTP control surface configuration."""

    host: str = "0.0.0.0"
    port: int = 3000

    model_config = SettingsConfigDict(env_prefix="LOADREPORT_API_")


class Settings(BaseSettings):
    """Root settings container."""

    output: OutputSettings = Field(default_factory=OutputSettings)
    chart: ChartSettings = Field(default_factory=ChartSettings)
    api: APISettings = Field(default_factory=APISettings)

    config_path: Path = Field(default=Path("config.json"), description="Scenario config file")
    log_level: str = Field(default="INFO", description="Logging level")
    log_json: bool = Field(default=False, description="Emit JSON log lines")

    model_config = SettingsConfigDict(
        env_prefix="LOADREPORT_",
        env_nested_delimiter="__",
        extra="ignore",
    )


def get_settings() -> Settings:
    """Get settings instance."""
    return Settings()
