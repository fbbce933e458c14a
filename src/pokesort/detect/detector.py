"""DETECT Stage — Find catalog species named by a project and pick its primary label."""

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass

from pokesort.intake.crawler import ProjectSource
from pokesort.vocab.catalog import CatalogEntry
from pokesort.vocab.normalizer import normalize
from pokesort.vocab.overrides import resolve_override

# Catch-all label for projects with no detected species
UNMAPPED = "_Unmapped"


@dataclass(frozen=True)
class DetectionResult:
    labels: tuple[str, ...]
    overridden: bool = False

    @property
    def primary(self) -> str:
        return self.labels[0] if self.labels else UNMAPPED

    @property
    def secondaries(self) -> tuple[str, ...]:
        return self.labels[1:]

    @property
    def unmapped(self) -> bool:
        return not self.labels


def build_haystack(names: list[str] | tuple[str, ...]) -> str:
    """Space-padded normalized text so `" key "` tests respect word boundaries."""
    return f" {normalize(' '.join(names))} "


def find_candidates(catalog: list[CatalogEntry], haystack: str) -> list[CatalogEntry]:
    """Catalog entries whose key occurs as whole words in the haystack."""
    return [entry for entry in catalog if f" {entry.key} " in haystack]


def disambiguate(candidates: list[CatalogEntry]) -> list[CatalogEntry]:
    """Drop candidates whose key is contained whole-word in another candidate's key.

    `iron` is suppressed when `iron valiant` also matched.
    """
    kept = []
    for entry in candidates:
        needle = f" {entry.key} "
        contained = any(
            other.key != entry.key and needle in f" {other.key} "
            for other in candidates
        )
        if not contained:
            kept.append(entry)
    return kept


def sort_labels(labels) -> tuple[str, ...]:
    """Distinct labels in case-insensitive lexicographic order."""
    return tuple(sorted(set(labels), key=lambda label: (label.casefold(), label)))


def detect_labels(
    source: ProjectSource,
    catalog: list[CatalogEntry],
    overrides: dict[str, list[str]] | None = None,
) -> DetectionResult:
    """Detect the species a project names. An exact-name override bypasses matching."""
    override = resolve_override(source.raw_name, overrides or {})
    if override is not None:
        return DetectionResult(tuple(dict.fromkeys(override)), overridden=True)

    haystack = build_haystack(source.names)
    matched = disambiguate(find_candidates(catalog, haystack))
    return DetectionResult(sort_labels(entry.display for entry in matched))


def detect_all(
    sources: list[ProjectSource],
    catalog: list[CatalogEntry],
    overrides: dict[str, list[str]] | None = None,
    workers: int = 1,
) -> list[DetectionResult]:
    """Detect labels for every source. Results are in input order regardless of workers."""
    if workers <= 1:
        return [detect_labels(source, catalog, overrides) for source in sources]
    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda s: detect_labels(s, catalog, overrides), sources))
