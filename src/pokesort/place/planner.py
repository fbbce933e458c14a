"""PLACE Stage — Assign collision-free canonical and secondary destinations."""

from collections import defaultdict
from dataclasses import dataclass

from pokesort.detect.detector import UNMAPPED, DetectionResult
from pokesort.intake.crawler import ProjectSource
from pokesort.place.index import DestinationIndex


class DestinationCollisionError(RuntimeError):
    """Two projects (or a project and the existing tree) claim the same path."""


@dataclass(frozen=True)
class PlacementRecord:
    source_id: str
    labels: tuple[str, ...]
    primary: str
    canonical_path: str
    secondary_paths: tuple[str, ...]
    resolved_folder_name: str
    variant_number: int | None = None

    @property
    def paths(self) -> tuple[str, ...]:
        return (self.canonical_path, *self.secondary_paths)


def variant_folder_name(base_folder_name: str, variant: int) -> str:
    return f"{base_folder_name} (Variant {variant})"


def plan_placement(
    source: ProjectSource,
    detection: DetectionResult,
    index: DestinationIndex,
    base_folder_name: str | None = None,
) -> PlacementRecord:
    """Place one project and commit its paths to the index.

    On any collision the whole folder name gets the next variant suffix, so
    the canonical path and every secondary share one resolved name.
    """
    base = base_folder_name or source.base_folder_name
    primary = detection.primary
    secondaries = detection.secondaries

    folder = base
    variant = None
    next_variant = 2
    while True:
        canonical = f"{primary}/{folder}"
        links = tuple(f"{label}/{folder}" for label in secondaries)
        if index.reserve((canonical, *links)):
            break
        folder = variant_folder_name(base, next_variant)
        variant = next_variant
        next_variant += 1

    return PlacementRecord(
        source_id=source.source_id,
        labels=detection.labels,
        primary=primary,
        canonical_path=canonical,
        secondary_paths=links,
        resolved_folder_name=folder,
        variant_number=variant,
    )


def plan_all(
    sources: list[ProjectSource],
    detections: list[DetectionResult],
    index: DestinationIndex,
    verbose: bool = False,
) -> list[PlacementRecord]:
    """Place projects strictly in the given order against one shared index."""
    records = []
    for source, detection in zip(sources, detections, strict=True):
        record = plan_placement(source, detection, index)
        if verbose and record.variant_number is not None:
            print(f"  AUTO-RESOLVE COLLISION: {source.source_id} -> {record.resolved_folder_name}")
        records.append(record)
    return records


def check_unique_destinations(records: list[PlacementRecord], existing=()) -> None:
    """Fail if any destination path is claimed twice or clashes with the existing tree."""
    claims = defaultdict(list)
    for record in records:
        for path in record.paths:
            claims[path].append(record.source_id)

    existing = set(existing)
    problems = []
    for path, sources in sorted(claims.items()):
        if len(sources) > 1:
            problems.append(f"  {path}\n" + "".join(f"    <- {s}\n" for s in sources))
        elif path in existing:
            problems.append(f"  {path}\n    <- {sources[0]} (already exists in output)\n")

    if problems:
        raise DestinationCollisionError(
            "Destination path collisions detected:\n" + "".join(problems).rstrip("\n")
        )


def summarize(records: list[PlacementRecord]) -> dict:
    """Counts for the run summary."""
    labels = {path.split("/", 1)[0] for r in records for path in r.paths}
    labels.discard(UNMAPPED)
    return {
        "projects": len(records),
        "shortcuts": sum(len(r.secondary_paths) for r in records),
        "auto_resolved": sum(1 for r in records if r.variant_number is not None),
        "label_folders": len(labels),
        "unmapped": sum(1 for r in records if r.primary == UNMAPPED),
    }
