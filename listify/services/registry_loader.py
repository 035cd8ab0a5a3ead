"""
Location Registry Loader

Turns the externally owned location dataset into LocationEntity records:

1. Bundled/deployed YAML file (nested provinces -> cities -> suburbs, or a
   flat ``locations`` list)
2. Remote flat JSON export fetched over HTTP at startup

Structural problems (unreadable source, unknown type, record without a name)
raise RegistryLoadError. Hierarchy problems are left to RegistrySnapshot,
which excludes and logs the offending entities.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping, Optional

import httpx
import yaml

from ..config import Settings, get_settings
from ..exceptions import ConfigurationError, ExternalServiceError, RegistryLoadError
from ..models_location import LocationEntity, LocationType
from ..routing.location_registry import LocationRegistry
from ..routing.normalizer import slugify
from ..utils.geographies import known_province_aliases, province_code

logger = logging.getLogger(__name__)

_CHILD_KEYS = {
    LocationType.PROVINCE: ("cities", LocationType.CITY),
    LocationType.CITY: ("suburbs", LocationType.SUBURB),
}


def _parse_aliases(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [alias.strip() for alias in value.split(",") if alias.strip()]
    if isinstance(value, (list, tuple, set, frozenset)):
        return [str(alias).strip() for alias in value if str(alias).strip()]
    raise RegistryLoadError(f"Aliases must be a list or comma-separated string, got {type(value).__name__}")


def _parse_type(value: Any, source: str) -> LocationType:
    try:
        return LocationType(str(value).strip().lower())
    except ValueError:
        raise RegistryLoadError(f"Unknown location type {value!r}", source=source)


def entity_from_record(
    record: Mapping[str, Any],
    source: str = "memory",
    location_type: Optional[LocationType] = None,
    parent_slug: Optional[str] = None,
) -> LocationEntity:
    """
    Build one entity from a flat record.

    Accepts camelCase (``parentSlug``) and snake_case (``parent_slug``) keys.
    A missing slug is derived from the name; an explicit slug is kept as-is
    so published URLs stay stable.
    """
    if not isinstance(record, Mapping):
        raise RegistryLoadError(f"Registry record must be a mapping, got {type(record).__name__}", source=source)

    name = str(record.get("name") or "").strip()
    if not name:
        raise RegistryLoadError(f"Registry record without a name: {dict(record)!r}", source=source)

    if location_type is None:
        location_type = _parse_type(record.get("type"), source)

    slug = str(record.get("slug") or "").strip() or slugify(name)
    parent = record.get("parentSlug", record.get("parent_slug", parent_slug))
    parent = str(parent).strip() if parent else None

    aliases = _parse_aliases(record.get("aliases"))
    code = record.get("code")
    code = str(code).strip() if code else None

    if location_type is LocationType.PROVINCE:
        code = code or province_code(name)
        aliases.extend(known_province_aliases(name))

    entity_id = str(record.get("id") or "").strip()
    if not entity_id:
        entity_id = f"{location_type.value}:{parent + '/' if parent else ''}{slug}"

    return LocationEntity(
        id=entity_id,
        type=location_type,
        name=name,
        slug=slug,
        parent_slug=parent,
        aliases=frozenset(aliases),
        code=code,
    )


def _flatten_nested(
    records: Iterable[Mapping[str, Any]],
    location_type: LocationType,
    source: str,
    parent_slug: Optional[str] = None,
) -> List[LocationEntity]:
    entities: List[LocationEntity] = []
    for record in records or []:
        entity = entity_from_record(record, source, location_type, parent_slug)
        entities.append(entity)
        child = _CHILD_KEYS.get(location_type)
        if child:
            child_key, child_type = child
            entities.extend(_flatten_nested(record.get(child_key) or [], child_type, source, entity.slug))
    return entities


def entities_from_document(document: Any, source: str = "memory") -> List[LocationEntity]:
    """
    Accept either layout:

        provinces:                      locations:
          - name: Gauteng                 - {type: province, name: Gauteng}
            cities:                       - {type: city, name: Pretoria, parentSlug: gauteng}
              - name: Pretoria

    or a bare flat list (the JSON export format).
    """
    if document is None:
        raise RegistryLoadError("Registry source is empty", source=source)

    if isinstance(document, list):
        return [entity_from_record(record, source) for record in document]

    if not isinstance(document, Mapping):
        raise RegistryLoadError(f"Unsupported registry document type {type(document).__name__}", source=source)

    entities: List[LocationEntity] = []
    if "provinces" in document:
        entities.extend(_flatten_nested(document["provinces"], LocationType.PROVINCE, source))
    if "locations" in document:
        entities.extend(entity_from_record(record, source) for record in document["locations"] or [])
    if "provinces" not in document and "locations" not in document:
        raise RegistryLoadError("Registry document needs a 'provinces' or 'locations' key", source=source)
    return entities


def load_registry_file(path: str | Path) -> List[LocationEntity]:
    """Load entities from a YAML (or JSON, which YAML parses) file."""
    path = Path(path)
    source = str(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            document = yaml.safe_load(f)
    except FileNotFoundError:
        raise RegistryLoadError(f"Location registry file not found: {path}", source=source)
    except yaml.YAMLError as e:
        raise RegistryLoadError(f"Error parsing location registry {path}: {e}", source=source)
    except OSError as e:
        raise RegistryLoadError(f"Error reading location registry {path}: {e}", source=source)

    entities = entities_from_document(document, source)
    logger.info("Loaded %d location records from %s", len(entities), path.name)
    return entities


async def fetch_registry_export(url: str, timeout: float = 10.0) -> List[LocationEntity]:
    """Fetch the flat JSON export of the location service."""
    try:
        async with httpx.AsyncClient(timeout=timeout) as client:
            response = await client.get(url)
            response.raise_for_status()
            payload = response.json()
    except httpx.HTTPStatusError as e:
        raise ExternalServiceError(
            f"Location registry export returned HTTP {e.response.status_code}",
            service="location-registry",
        )
    except httpx.TimeoutException:
        raise ExternalServiceError("Location registry export timed out", service="location-registry")
    except (httpx.HTTPError, ValueError) as e:
        raise ExternalServiceError(f"Failed to fetch location registry export: {e}", service="location-registry")

    if isinstance(payload, Mapping) and "data" in payload and "locations" not in payload:
        payload = payload["data"]
    entities = entities_from_document(payload, source=url)
    logger.info("Fetched %d location records from %s", len(entities), url)
    return entities


class FileRegistryLoader:
    """Callable loader for LocationRegistry.reload()."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.source = str(self.path)

    def __call__(self) -> List[LocationEntity]:
        return load_registry_file(self.path)


def build_registry(settings: Optional[Settings] = None) -> LocationRegistry:
    """Registry backed by the configured YAML file."""
    settings = settings or get_settings()
    path = Path(settings.location_registry_path)
    if not path.is_file():
        raise ConfigurationError(
            f"LOCATION_REGISTRY_PATH does not point at a file: {path}",
            details={"setting": "LOCATION_REGISTRY_PATH", "path": str(path)},
        )
    loader = FileRegistryLoader(settings.location_registry_path)
    return LocationRegistry(loader(), loader=loader, source=loader.source)


async def refresh_from_remote(registry: LocationRegistry, settings: Optional[Settings] = None) -> bool:
    """
    Replace the registry snapshot with the remote export when one is configured.

    A failed fetch keeps the current snapshot; resolution keeps working on
    the file data.
    """
    settings = settings or get_settings()
    if not settings.location_registry_url:
        return False
    try:
        entities = await fetch_registry_export(
            settings.location_registry_url,
            timeout=settings.registry_fetch_timeout,
        )
    except (ExternalServiceError, RegistryLoadError) as e:
        logger.error("Remote location registry unavailable, keeping %s: %s", registry.snapshot().source, e)
        return False
    registry.replace(entities, source=settings.location_registry_url)
    return True


def describe_snapshot(registry: LocationRegistry) -> Dict[str, Any]:
    snapshot = registry.snapshot()
    return {
        "source": snapshot.source,
        "version": snapshot.version,
        "entities": len(snapshot),
        "excluded": len(snapshot.excluded),
        "ambiguous": len(snapshot.ambiguities),
    }
