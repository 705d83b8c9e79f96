"""Root settings model for herbtrace configuration."""

from typing import Any

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from herbtrace.config.models.compliance import ComplianceConfig
from herbtrace.config.models.observability import ObservabilityConfig
from herbtrace.config.models.tracking import (
    AuditConfig,
    ListingConfig,
    LockingConfig,
    QRConfig,
)

# TOML values handed to the settings source by get_settings()
_toml_config: dict[str, Any] = {}


def set_toml_config(config: dict[str, Any]) -> None:
    """Set the TOML configuration consumed by Settings."""
    global _toml_config
    _toml_config = config


class TomlConfigSettingsSource(PydanticBaseSettingsSource):
    """Settings source backed by the merged TOML files."""

    def get_field_value(
        self, field: Any, field_name: str  # noqa: ARG002
    ) -> tuple[Any, str, bool]:
        """Get field value from TOML config."""
        value = _toml_config.get(field_name)
        return value, field_name, value is not None

    def __call__(self) -> dict[str, Any]:
        """Return the TOML config values."""
        return dict(_toml_config)


class Settings(BaseSettings):
    """Root configuration object.

    Configuration is loaded in this order:
    1. Pydantic model defaults (in code)
    2. config/default.toml
    3. config/{HERBTRACE_ENV}.toml
    4. HERBTRACE_* environment variables (``__`` separates nested keys)
    """

    model_config = SettingsConfigDict(
        env_prefix="HERBTRACE_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    app_name: str = Field(default="herbtrace", description="Application name for logging")
    debug: bool = Field(default=False, description="Enable debug mode")

    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Logging and metrics configuration",
    )
    locking: LockingConfig = Field(
        default_factory=LockingConfig,
        description="Per-entity write lock configuration",
    )
    audit: AuditConfig = Field(
        default_factory=AuditConfig,
        description="Audit trail configuration",
    )
    qr: QRConfig = Field(default_factory=QRConfig, description="QR issuance configuration")
    compliance: ComplianceConfig = Field(
        default_factory=ComplianceConfig,
        description="Compliance scoring configuration",
    )
    listing: ListingConfig = Field(
        default_factory=ListingConfig,
        description="Pagination defaults",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,  # noqa: ARG003
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Constructor arguments, then environment, then TOML files."""
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )
