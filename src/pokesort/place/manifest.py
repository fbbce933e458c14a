"""Read and write the sort manifest TSV."""

import csv
from pathlib import Path

from pokesort.place.planner import PlacementRecord

MANIFEST_COLUMNS = [
    "source_project",
    "detected_labels_csv",
    "primary_label",
    "canonical_dest",
    "secondary_dests_csv",
    "status",
]

# Plain TSV: fields are never quoted, tabs/newlines/backslashes inside a field are backslash-escaped
MANIFEST_FORMAT = {
    "delimiter": "\t",
    "quoting": csv.QUOTE_NONE,
    "quotechar": None,
    "escapechar": "\\",
    "lineterminator": "\n",
}


def manifest_rows(records: list[PlacementRecord], statuses: dict | None = None) -> list[dict]:
    """One manifest row per record; status defaults to `planned`."""
    statuses = statuses or {}
    return [
        {
            "source_project": r.source_id,
            "detected_labels_csv": ",".join(r.labels),
            "primary_label": r.primary,
            "canonical_dest": r.canonical_path,
            "secondary_dests_csv": ",".join(r.secondary_paths),
            "status": statuses.get(r.source_id, "planned"),
        }
        for r in records
    ]


def write_manifest(rows: list[dict], path: Path) -> None:
    """Write the header and the given rows, replacing any existing file."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=MANIFEST_COLUMNS, **MANIFEST_FORMAT)
        writer.writeheader()
        writer.writerows(rows)


def append_manifest(rows: list[dict], path: Path) -> None:
    """Append rows to a manifest whose header is already written."""
    with open(path, "a", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=MANIFEST_COLUMNS, **MANIFEST_FORMAT)
        writer.writerows(rows)


def read_manifest(path: Path) -> list[dict]:
    with open(path, newline="", encoding="utf-8") as f:
        return list(csv.DictReader(f, **MANIFEST_FORMAT))


def format_manifest(rows: list[dict]) -> str:
    """Tab-separated preview text, header first."""
    lines = ["\t".join(MANIFEST_COLUMNS)]
    lines.extend("\t".join(row[col] for col in MANIFEST_COLUMNS) for row in rows)
    return "\n".join(lines)
