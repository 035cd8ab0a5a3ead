#!/usr/bin/env python3
"""
Location registry validator.

Loads a registry YAML file the way the API does at startup and reports:
1. Entities excluded from matching (broken parent chain, duplicate id, no slug)
2. Ambiguous same-tier names/aliases/slugs
3. Entities whose own name routes somewhere else (shadowed by a higher tier)

Exit code is non-zero when (1) or (2) is non-empty, so the check can gate a
data import. Shadowed names are informational only.
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from listify.config import DEFAULT_REGISTRY_PATH  # noqa: E402
from listify.exceptions import RegistryLoadError  # noqa: E402
from listify.routing.location_registry import RegistrySnapshot  # noqa: E402
from listify.routing.location_router import LocationRouter  # noqa: E402
from listify.services.registry_loader import load_registry_file  # noqa: E402


def find_shadowed(snapshot: RegistrySnapshot) -> List[Dict[str, str]]:
    """Entities that typing their own name does not reach."""
    router = LocationRouter(snapshot)
    shadowed = []
    for entity in snapshot.entities:
        decision = router.resolve_and_route(entity.name, snapshot=snapshot)
        winner = decision.matched_entity
        if winner is not None and winner.id != entity.id:
            shadowed.append({
                "id": entity.id,
                "name": entity.name,
                "routes_to": decision.target,
                "winner": f"{winner.type.value}:{winner.slug}",
            })
    return shadowed


def build_report(path: Path) -> Dict[str, Any]:
    entities = load_registry_file(path)
    snapshot = RegistrySnapshot.build(entities, source=str(path))
    return {
        "source": str(path),
        "records": len(entities),
        "valid": len(snapshot),
        "excluded": [{"entity_id": e.entity_id, "message": e.message} for e in snapshot.excluded],
        "ambiguous": [{"key": e.key, "slugs": e.slugs, "message": e.message} for e in snapshot.ambiguities],
        "shadowed": find_shadowed(snapshot),
    }


def print_summary(report: Dict[str, Any]) -> None:
    print("\n=== Location Registry Validation ===")
    print(f"Source: {report['source']}")
    print(f"- Records: {report['records']}")
    print(f"- Valid: {report['valid']}")

    if report["excluded"]:
        print(f"\nExcluded entities ({len(report['excluded'])})")
        for item in report["excluded"]:
            print(f"  - {item['message']}")

    if report["ambiguous"]:
        print(f"\nAmbiguous keys ({len(report['ambiguous'])})")
        for item in report["ambiguous"]:
            print(f"  - {item['message']}")

    if report["shadowed"]:
        print(f"\nShadowed names ({len(report['shadowed'])})")
        for item in report["shadowed"]:
            print(f"  - {item['name']} ({item['id']}) -> {item['routes_to']} [{item['winner']}]")


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Validate a location registry YAML file")
    parser.add_argument(
        "path",
        nargs="?",
        default=str(DEFAULT_REGISTRY_PATH),
        help="Registry YAML file (default: bundled registry)",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="Print the report as JSON instead of a summary",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Show loader and snapshot log output",
    )

    args = parser.parse_args(argv)
    logging.basicConfig(level=logging.INFO if args.verbose else logging.ERROR)

    try:
        report = build_report(Path(args.path))
    except RegistryLoadError as e:
        print(f"\n❌ Could not load registry: {e.message}", file=sys.stderr)
        return 2

    if args.json:
        print(json.dumps(report, indent=2))
    else:
        print_summary(report)

    if report["excluded"] or report["ambiguous"]:
        if not args.json:
            print("\n❌ Registry has data-quality issues")
        return 1

    if not args.json:
        print("\n✅ Registry is valid")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
