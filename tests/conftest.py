"""Shared test fixtures for the herbtrace test suite."""

import os
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest

from herbtrace.audit.stores import InMemoryAuditStore
from herbtrace.audit.trail import AuditTrail
from herbtrace.compliance.engine import ComplianceEngine
from herbtrace.config.models.tracking import QRConfig
from herbtrace.entities.enums import LotType
from herbtrace.entities.models import Location, LotSpec, PlantSpec
from herbtrace.entities.stores import InMemoryEntityStore
from herbtrace.events.stores import InMemoryEventStore
from herbtrace.locking import EntityLockManager
from herbtrace.qr.registry import QRRegistry
from herbtrace.qr.stores import InMemoryQRCodeStore
from herbtrace.service import TraceabilityService


@pytest.fixture
def test_config_dir(tmp_path: Path) -> Path:
    """Create a temporary config directory for testing."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    return config_dir


@pytest.fixture
def mock_toml_files(test_config_dir: Path) -> Callable[[dict[str, str]], None]:
    """Factory fixture to create TOML files in the test config directory.

    Usage:
        def test_something(mock_toml_files):
            mock_toml_files({
                "default.toml": "app_name = 'test'",
                "development.toml": "debug = true",
            })
    """

    def _create_toml_files(files: dict[str, str]) -> None:
        for filename, content in files.items():
            (test_config_dir / filename).write_text(content)

    return _create_toml_files


class EnvOverrideContext:
    """Context manager for temporarily setting environment variables."""

    def __init__(self, overrides: dict[str, str]) -> None:
        self.overrides = overrides
        self.original_env: dict[str, str | None] = {}

    def __enter__(self) -> None:
        for key, value in self.overrides.items():
            self.original_env[key] = os.environ.get(key)
            os.environ[key] = value

    def __exit__(self, *args: Any) -> None:
        for key in self.overrides:
            if self.original_env[key] is None:
                os.environ.pop(key, None)
            else:
                os.environ[key] = self.original_env[key]


@pytest.fixture
def env_override() -> Callable[[dict[str, str]], EnvOverrideContext]:
    """Temporarily set environment variables.

    Usage:
        def test_something(env_override):
            with env_override({"HERBTRACE_DEBUG": "true"}):
                ...
    """
    return EnvOverrideContext


@pytest.fixture(autouse=True)
def clear_settings_cache() -> Generator[None, None, None]:
    """Clear the settings cache around each test for isolation."""
    from herbtrace.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


class ServiceParts:
    """A service together with the stores behind it, for assertions."""

    def __init__(
        self,
        chain_hashes: bool = False,
        lock_timeout: float = 5.0,
        qr_store: InMemoryQRCodeStore | None = None,
        qr_config: QRConfig | None = None,
    ) -> None:
        self.entities = InMemoryEntityStore()
        self.events = InMemoryEventStore()
        self.audit_store = InMemoryAuditStore()
        self.qr_store = qr_store or InMemoryQRCodeStore()
        self.audit = AuditTrail(self.audit_store, chain_hashes=chain_hashes)
        self.locks = EntityLockManager(timeout=lock_timeout)
        self.registry = QRRegistry(
            store=self.qr_store,
            entity_store=self.entities,
            event_store=self.events,
            audit_trail=self.audit,
            locks=self.locks,
            config=qr_config,
        )
        self.service = TraceabilityService(
            entity_store=self.entities,
            event_store=self.events,
            audit_trail=self.audit,
            qr_registry=self.registry,
            compliance_engine=ComplianceEngine(),
            locks=self.locks,
        )


@pytest.fixture
def parts() -> ServiceParts:
    """Fresh in-memory service and stores for each test."""
    return ServiceParts()


@pytest.fixture
def make_parts() -> Callable[..., ServiceParts]:
    """Factory for services with non-default wiring."""
    return ServiceParts


@pytest.fixture
def service(parts: ServiceParts) -> TraceabilityService:
    """The service of the default wiring."""
    return parts.service


@pytest.fixture
def seed_lot_spec() -> LotSpec:
    """Seed lot payload used throughout the suite."""
    return LotSpec(
        lot_type=LotType.SEED,
        species="Cannabis sativa",
        quantity=1000,
        unit="seeds",
        location="Chiang Mai Farm",
        operator="farmer-01",
    )


@pytest.fixture
def plant_spec_for() -> Callable[..., PlantSpec]:
    """Build a plant payload under a given lot."""

    def _build(lot_id: Any, **overrides: Any) -> PlantSpec:
        data: dict[str, Any] = {
            "lot_id": lot_id,
            "species": "Cannabis sativa",
            "location": Location(site="Chiang Mai Farm", section="Greenhouse A"),
            "operator": "farmer-01",
        }
        data.update(overrides)
        return PlantSpec(**data)

    return _build
