"""Exact-name project overrides for folders the matcher cannot classify."""

from pathlib import Path

import yaml

from pokesort.vocab.catalog import DATA_DIR

OVERRIDES_PATH = DATA_DIR / "project_overrides.yaml"


def load_overrides(path: Path | None = None) -> dict[str, list[str]]:
    """Load the override table: exact project name → literal label list.

    The file is a YAML mapping under a top-level `projects` key.
    """
    path = path or OVERRIDES_PATH
    with open(path, encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}

    overrides = {}
    for name, labels in (data.get("projects") or {}).items():
        if isinstance(labels, str):
            labels = [labels]
        overrides[str(name)] = [str(label) for label in labels or []]
    return overrides


def resolve_override(project_name: str, overrides: dict[str, list[str]]) -> list[str] | None:
    """Return the override labels for an exact project name, or None."""
    return overrides.get(project_name)
