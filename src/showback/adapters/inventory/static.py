# src/showback/adapters/inventory/static.py
"""
Static Inventory - Resource Views Loaded from JSON

This module provides a read-only resource view backed by plain data,
used when the inventory is exported to a file instead of queried live.
Container-class resources carry performance-state snapshots; other
resources may expose cpu_total_cores and ram_size.

Files that USE this module:
- showback.app (loads resources for a rating run)
- tests.* (resource fixtures)

Files that this module USES:
- showback.domain.models (ResourceRef)
"""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional

from showback.domain.models import ResourceRef

logger = logging.getLogger(__name__)


@dataclass
class StaticResource:
    """
    Snapshot of an inventory resource.

    Attributes:
        reference: Resource identity and kind
        performance_states: Time-ordered snapshots (numvcpus, total_mem, ...)
        cpu_total_cores: Core count, None when the resource has no such capability
        ram_size: Memory size, None when the resource has no such capability
    """
    reference: ResourceRef
    performance_states: List[Dict[str, Any]] = field(default_factory=list)
    cpu_total_cores: Optional[int] = None
    ram_size: Optional[int] = None

    def latest_performance_state(self) -> Optional[Mapping[str, Any]]:
        return self.performance_states[-1] if self.performance_states else None

    def record_performance_state(self, state: Dict[str, Any]) -> None:
        self.performance_states.append(state)

    @classmethod
    def from_json(cls, data: dict) -> StaticResource:
        return cls(
            reference=ResourceRef.from_type_name(str(data["id"]), data["type"]),
            performance_states=list(data.get("performance_states") or []),
            cpu_total_cores=data.get("cpu_total_cores"),
            ram_size=data.get("ram_size"),
        )


def load_resources(path: Path) -> Dict[str, StaticResource]:
    """
    Load resources from a JSON file of the form {"resources": [...]}.

    Returns:
        Resources keyed by inventory id

    Raises:
        RuntimeError: If the file can't be read or parsed
    """
    try:
        with Path(path).open("r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise RuntimeError(f"Failed to load resources file {path}: {e}") from e

    resources: Dict[str, StaticResource] = {}
    for entry in data.get("resources", []):
        try:
            resource = StaticResource.from_json(entry)
        except (KeyError, TypeError) as e:
            logger.warning("Skipping malformed resource entry %r: %s", entry, e)
            continue
        resources[resource.reference.id] = resource
    logger.info("Loaded %d resources from %s", len(resources), path)
    return resources
