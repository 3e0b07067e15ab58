"""Baseline comparison for lint gating.

A baseline is a previously written JSON report. The gate fails when the
current report contains entries the baseline does not; versions are ignored
so that routine upgrades do not count as new introductions.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, FrozenSet, Tuple

from analysis.report import FrontierReport

logger = logging.getLogger(__name__)

EntryKey = Tuple[str, str, str]


class BaselineError(ValueError):
    """Raised when a baseline report cannot be read or understood."""


@dataclass(frozen=True)
class BaselineDiff:
    """Entries added and removed relative to the baseline."""
    added: FrozenSet[EntryKey]
    removed: FrozenSet[EntryKey]

    @property
    def grew(self) -> bool:
        return bool(self.added)


def keys_from_dict(data: Dict[str, Any]) -> FrozenSet[EntryKey]:
    """Extract entry keys from a report's plain-data form."""
    if not isinstance(data, dict) or not isinstance(data.get("frontier"), list):
        raise BaselineError("Baseline is not a frontier report (missing 'frontier' list)")
    keys = set()
    for group in data["frontier"]:
        try:
            member = group["member"]["name"]
            for entry in group.get("entries", []):
                keys.add((member, entry["name"], entry["kind"]))
        except (KeyError, TypeError) as e:
            raise BaselineError(f"Malformed baseline frontier group: {e}") from e
    return frozenset(keys)


def load_baseline(path: str) -> FrozenSet[EntryKey]:
    """Read a JSON baseline report and return its entry keys."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
    except FileNotFoundError as e:
        raise BaselineError(f"Baseline file not found: {path}") from e
    except (OSError, ValueError) as e:
        raise BaselineError(f"Failed to read baseline {path}: {e}") from e
    return keys_from_dict(data)


def compare(report: FrontierReport, baseline: FrozenSet[EntryKey]) -> BaselineDiff:
    current = frozenset(report.entry_keys())
    diff = BaselineDiff(added=current - baseline, removed=baseline - current)
    logger.debug("Baseline diff: %d added, %d removed", len(diff.added), len(diff.removed))
    return diff
