"""
Shared pytest fixtures for listify backend tests.

This module provides common fixtures used across all test modules.
Import fixtures from here instead of defining them in individual test files.
"""
from __future__ import annotations

import os
from typing import Callable, Iterable, Optional

import pytest

# Set test environment before importing application modules
os.environ.setdefault("NODE_ENV", "test")
os.environ.pop("LOCATION_REGISTRY_URL", None)
os.environ.pop("LOCATION_REGISTRY_PATH", None)

from listify.config import Settings, get_settings
from listify.models_location import LocationEntity, LocationType
from listify.routing.location_registry import LocationRegistry, RegistrySnapshot
from listify.routing.location_router import LocationRouter
from listify.services.registry_loader import build_registry


# ============================================================================
# Environment Fixtures
# ============================================================================

@pytest.fixture(autouse=True)
def test_environment():
    """Ensure test environment is set for all tests."""
    old_env = os.environ.copy()
    os.environ["NODE_ENV"] = "test"
    yield
    os.environ.clear()
    os.environ.update(old_env)


@pytest.fixture
def settings() -> Settings:
    return Settings(
        NODE_ENV="test",
        SITE_NAME="Property Listify",
        APP_URL="https://propertylistify.com",
    )


@pytest.fixture(autouse=True)
def reset_settings_cache():
    """Settings are cached per process; drop the cache between tests."""
    yield
    get_settings.cache_clear()


# ============================================================================
# Registry Fixtures
# ============================================================================

@pytest.fixture
def registry(settings) -> LocationRegistry:
    """Registry loaded from the bundled South African dataset."""
    return build_registry(settings)


@pytest.fixture
def snapshot(registry) -> RegistrySnapshot:
    return registry.snapshot()


@pytest.fixture
def router(registry) -> LocationRouter:
    return LocationRouter(registry)


@pytest.fixture
def make_entity() -> Callable[..., LocationEntity]:
    """Factory for hand-built entities with predictable ids."""

    def _make(
        location_type: LocationType,
        name: str,
        slug: Optional[str] = None,
        parent_slug: Optional[str] = None,
        aliases: Iterable[str] = (),
        code: Optional[str] = None,
        entity_id: Optional[str] = None,
    ) -> LocationEntity:
        slug = slug if slug is not None else name.lower().replace(" ", "-")
        return LocationEntity(
            id=entity_id or f"{location_type.value}:{slug}",
            type=location_type,
            name=name,
            slug=slug,
            parent_slug=parent_slug,
            aliases=frozenset(aliases),
            code=code,
        )

    return _make
