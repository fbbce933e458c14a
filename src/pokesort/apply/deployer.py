"""APPLY Stage — Move/copy planned projects and create secondary shortcuts."""

import os
import shutil
import subprocess
from pathlib import Path

from pokesort.intake.crawler import REPORTS_DIR, ProjectSource
from pokesort.place.manifest import append_manifest, manifest_rows, write_manifest
from pokesort.place.planner import PlacementRecord

TRANSFER_MODES = ("move", "copy")
SHORTCUT_TYPES = ("alias", "symlink")

MANIFEST_NAME = "sort_manifest.tsv"

_FINDER_ALIAS_SCRIPT = """
tell application "Finder"
  set targetItem to POSIX file (system attribute "TARGET_POSIX") as alias
  set destinationFolder to POSIX file (system attribute "DEST_POSIX") as alias
  set newAlias to make new alias file to targetItem at destinationFolder
  return POSIX path of (newAlias as alias)
end tell
"""

# Older Finder scripting dictionaries only accept `make alias file to`
_FINDER_ALIAS_SCRIPT_LEGACY = _FINDER_ALIAS_SCRIPT.replace("make new alias file", "make alias file")


class ApplyError(RuntimeError):
    """A planned filesystem action could not be carried out or verified."""


def create_symlink(target: Path, link: Path) -> None:
    """Relative symlink at `link` pointing to `target`."""
    rel_target = os.path.relpath(target, link.parent)
    link.symlink_to(rel_target, target_is_directory=True)


def create_finder_alias(target: Path, alias: Path) -> None:
    """Create a macOS Finder alias via osascript, renaming it to `alias`.

    Tries the current Finder syntax first, then the legacy form.
    """
    env = dict(os.environ, TARGET_POSIX=str(target), DEST_POSIX=str(alias.parent))
    errors = []
    for script in (_FINDER_ALIAS_SCRIPT, _FINDER_ALIAS_SCRIPT_LEGACY):
        result = subprocess.run(
            ["osascript"], input=script, env=env,
            capture_output=True, text=True,
        )
        if result.returncode == 0:
            created = result.stdout.strip()
            if not created:
                raise ApplyError(f"Finder created an alias but did not return its path: {alias} -> {target}")
            if Path(created) != alias:
                shutil.move(created, alias)
            return
        errors.append(result.stderr.strip())
    raise ApplyError(f"Failed to create Finder alias: {alias} -> {target}\n" + "\n".join(errors))


def transfer(source: Path, dest: Path, mode: str) -> None:
    if mode == "move":
        shutil.move(str(source), str(dest))
    else:
        shutil.copytree(source, dest, symlinks=True)


def verify_applied(
    records: list[PlacementRecord],
    sources: dict[str, ProjectSource],
    output_root: Path,
    transfer_mode: str,
    shortcut_type: str,
) -> None:
    """Check shortcuts exist, symlinks resolve, and sources moved/stayed as expected."""
    missing = [
        p for r in records for p in r.secondary_paths
        if not os.path.lexists(output_root / p)
    ]
    if missing:
        raise ApplyError("Missing shortcuts detected after apply:\n  " + "\n  ".join(missing))

    if shortcut_type == "symlink":
        broken = [
            str(output_root / p) for r in records for p in r.secondary_paths
            if not (output_root / p).exists()
        ]
        if broken:
            raise ApplyError("Broken symlinks detected after apply:\n  " + "\n  ".join(broken))

    for record in records:
        source_path = sources[record.source_id].path
        if transfer_mode == "move" and source_path.exists():
            raise ApplyError(f"Source project still exists after move: {source_path}")
        if transfer_mode == "copy" and not source_path.is_dir():
            raise ApplyError(f"Source project missing after copy: {source_path}")


def apply_records(
    records: list[PlacementRecord],
    sources: list[ProjectSource],
    output_root: Path,
    transfer_mode: str = "move",
    shortcut_type: str = "symlink",
) -> Path:
    """Realize planned records on disk, adding each to the manifest once it is applied.

    Returns the manifest path.
    """
    if transfer_mode not in TRANSFER_MODES:
        raise ValueError(f"transfer_mode must be one of {TRANSFER_MODES}")
    if shortcut_type not in SHORTCUT_TYPES:
        raise ValueError(f"shortcut_type must be one of {SHORTCUT_TYPES}")

    output_root = Path(output_root)
    if output_root.exists() and not output_root.is_dir():
        raise ApplyError(f"Output path exists but is not a directory: {output_root}")
    if shortcut_type == "alias" and shutil.which("osascript") is None:
        raise ApplyError("osascript is required for alias shortcuts")

    by_id = {s.source_id: s for s in sources}
    manifest_path = output_root / REPORTS_DIR / MANIFEST_NAME
    write_manifest([], manifest_path)
    link_label = "LINK" if shortcut_type == "symlink" else "ALIAS"
    suffix = "linked" if shortcut_type == "symlink" else "aliased"

    for record in records:
        source = by_id[record.source_id]
        canonical = output_root / record.canonical_path
        canonical.parent.mkdir(parents=True, exist_ok=True)
        if os.path.lexists(canonical):
            raise ApplyError(f"Destination already exists: {canonical}")
        transfer(source.path, canonical, transfer_mode)
        print(f"  {transfer_mode.upper()}: {record.source_id} -> {record.canonical_path}")

        for link_path in record.secondary_paths:
            link = output_root / link_path
            link.parent.mkdir(parents=True, exist_ok=True)
            if os.path.lexists(link):
                raise ApplyError(f"Shortcut destination already exists: {link}")
            if shortcut_type == "symlink":
                create_symlink(canonical, link)
            else:
                create_finder_alias(canonical, link)
            print(f"  {link_label}: {link_path} -> {record.canonical_path}")

        status = f"{transfer_mode}+{suffix}" if record.secondary_paths else transfer_mode
        append_manifest(manifest_rows([record], {record.source_id: status}), manifest_path)

    verify_applied(records, by_id, output_root, transfer_mode, shortcut_type)
    return manifest_path
