"""INTAKE Stage — Discover project folders and collect their searchable names."""

import os
from dataclasses import dataclass
from pathlib import Path

from pokesort.vocab.normalizer import normalize

# Only these file names contribute to a project's searchable text
MODEL_EXTENSIONS = {".stl", ".3mf", ".chitubox"}

# Top-level folders under the base dir that never hold projects
SKIP_TOPLEVEL = {"scripts"}
SKIP_TOPLEVEL_PREFIX = "Sorted by Pokemon"

# Output-tree folder excluded from the destination index
REPORTS_DIR = "_reports"


@dataclass(frozen=True)
class ProjectSource:
    source_id: str
    raw_name: str
    context: str
    path: Path
    names: tuple[str, ...]
    corpus: str

    @property
    def base_folder_name(self) -> str:
        return f"{self.context} - {self.raw_name}"


def collect_names(project_dir: Path) -> list[str]:
    """Nested directory names plus model file names under a project, in walk order."""
    names = []
    for dirpath, dirnames, filenames in os.walk(project_dir):
        dirnames.sort()
        names.extend(dirnames)
        for fname in sorted(filenames):
            if Path(fname).suffix.lower() in MODEL_EXTENSIONS:
                names.append(fname)
    return names


def project_source(project_dir: Path, base_dir: Path) -> ProjectSource:
    """Build the immutable description of one `<context>/<project>` folder."""
    project_dir = Path(project_dir)
    rel = project_dir.relative_to(base_dir)
    context = rel.parts[0]
    raw_name = project_dir.name.rstrip()
    names = (raw_name, *collect_names(project_dir))
    return ProjectSource(
        source_id=rel.as_posix(),
        raw_name=raw_name,
        context=context,
        path=project_dir,
        names=names,
        corpus=normalize(" ".join(names)),
    )


def _output_toplevel(base_dir: Path, output_root: Path | None) -> str | None:
    """Name of the output folder when it sits directly inside the base dir."""
    if output_root is None:
        return None
    try:
        rel = output_root.relative_to(base_dir)
    except ValueError:
        return None
    if len(rel.parts) == 1:
        return rel.parts[0]
    return None


def discover_projects(base_dir: Path, output_root: Path | None = None) -> list[ProjectSource]:
    """Return every `<context>/<project>` folder under base_dir, sorted by source path."""
    base_dir = Path(base_dir).expanduser().resolve()
    if output_root is not None:
        output_root = Path(output_root).expanduser().resolve()
    output_top = _output_toplevel(base_dir, output_root)

    projects = []
    for top in sorted(base_dir.iterdir()):
        if not top.is_dir() or top.is_symlink() or top.name.startswith("."):
            continue
        if top.name in SKIP_TOPLEVEL or top.name.startswith(SKIP_TOPLEVEL_PREFIX):
            continue
        if output_top and top.name == output_top:
            continue
        for project_dir in sorted(top.iterdir()):
            if project_dir.is_symlink() or project_dir.name.startswith("."):
                continue
            if project_dir.is_dir():
                projects.append(project_source(project_dir, base_dir))

    projects.sort(key=lambda p: p.source_id)
    return projects


def existing_destinations(output_root: Path) -> list[str]:
    """Relative `<label>/<folder>` entries already present in the output tree."""
    output_root = Path(output_root)
    if not output_root.is_dir():
        return []

    existing = []
    for label_dir in sorted(output_root.iterdir()):
        if label_dir.name == REPORTS_DIR or not label_dir.is_dir() or label_dir.is_symlink():
            continue
        for entry in sorted(label_dir.iterdir()):
            existing.append(f"{label_dir.name}/{entry.name}")
    return existing
