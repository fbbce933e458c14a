"""CLI entry point for pokesort commands."""

import argparse
import sys
from pathlib import Path

DEFAULT_OUTPUT_DIR = "Sorted by Pokemon"


def _load_catalog(args):
    from pokesort.vocab.catalog import load_catalog

    corpus = Path(args.corpus) if args.corpus else None
    aliases = Path(args.aliases) if args.aliases else None
    return load_catalog(corpus, aliases)


def _load_overrides(args):
    from pokesort.vocab.overrides import load_overrides

    return load_overrides(Path(args.overrides) if args.overrides else None)


def _output_root(args, base_dir: Path) -> Path:
    if args.output_root:
        return Path(args.output_root).expanduser().resolve()
    return base_dir / args.output_dir


def cmd_catalog(args):
    """Build the species catalog and write it as TSV."""
    from pokesort.vocab.catalog import write_catalog

    print("CATALOG — Building species catalog...")
    catalog = _load_catalog(args)
    output = Path(args.output)
    write_catalog(catalog, output)
    print(f"  Wrote {output} ({len(catalog)} entries)")


def cmd_detect(args):
    """Print detected labels for individual project folders."""
    from pokesort.detect.detector import detect_labels
    from pokesort.intake.crawler import project_source

    catalog = _load_catalog(args)
    overrides = _load_overrides(args)
    for project in args.project:
        project_dir = Path(project).expanduser().resolve()
        if not project_dir.is_dir():
            print(f"  WARNING: Not a directory: {project_dir}")
            continue
        source = project_source(project_dir, project_dir.parent.parent)
        result = detect_labels(source, catalog, overrides)
        labels = ", ".join(result.labels) if result.labels else "(unmapped)"
        tag = " [override]" if result.overridden else ""
        print(f"  {source.source_id}: {labels}{tag}")


def cmd_sort(args):
    """Plan destinations for every project, then optionally apply them."""
    from pokesort.detect.detector import detect_all
    from pokesort.intake.crawler import discover_projects, existing_destinations
    from pokesort.place.index import DestinationIndex
    from pokesort.place.manifest import format_manifest, manifest_rows, write_manifest
    from pokesort.place.planner import check_unique_destinations, plan_all, summarize

    base_dir = Path(args.base_dir).expanduser()
    if not base_dir.is_dir():
        raise FileNotFoundError(f"Base directory not found: {base_dir}")
    base_dir = base_dir.resolve()
    output_root = _output_root(args, base_dir)
    mode = "apply" if args.apply else "dry-run"

    catalog = _load_catalog(args)
    overrides = _load_overrides(args)

    sources = discover_projects(base_dir, output_root)
    existing = existing_destinations(output_root)
    index = DestinationIndex(existing)

    detections = detect_all(sources, catalog, overrides, workers=args.workers)
    records = plan_all(sources, detections, index, verbose=args.verbose)
    check_unique_destinations(records, index.seeded)
    stats = summarize(records)

    print(f"Base directory: {base_dir}")
    print(f"Mode: {mode}")
    print(f"Transfer mode: {args.transfer_mode}")
    print(f"Shortcut type: {args.shortcut_type}")
    print(f"Output directory: {output_root}")
    print(f"  Catalog entries: {len(catalog)}")
    print(f"  Discovered source projects: {stats['projects']}")
    print(f"  Planned canonical transfers: {stats['projects']}")
    print(f"  Planned shortcuts: {stats['shortcuts']}")
    print(f"  Existing destination entries: {len(existing)}")
    print(f"  Auto-resolved destination collisions: {stats['auto_resolved']}")
    print(f"  Label folders (excluding _Unmapped): {stats['label_folders']}")
    print(f"  Unmapped projects: {stats['unmapped']}")

    rows = manifest_rows(records)
    if mode == "dry-run":
        print("\nPlanned actions:")
        link_label = "LINK" if args.shortcut_type == "symlink" else "ALIAS"
        for record in records:
            print(f"  PLAN {args.transfer_mode.upper()}: {record.source_id} -> {record.canonical_path}")
            for link in record.secondary_paths:
                print(f"  PLAN {link_label}: {link} -> {record.canonical_path}")
        if args.manifest:
            write_manifest(rows, Path(args.manifest))
            print(f"\n  Wrote {args.manifest} ({len(rows)} rows)")
        if args.verbose:
            print("\nManifest preview TSV:")
            print(format_manifest(rows))
        print("\n  Run with --apply to execute.")
        return

    from pokesort.apply.deployer import apply_records

    print("\nApplying actions:")
    manifest_path = apply_records(
        records, sources, output_root,
        transfer_mode=args.transfer_mode,
        shortcut_type=args.shortcut_type,
    )
    print("\nApply complete.")
    print(f"  Canonical project transfers this run: {stats['projects']}")
    print(f"  Shortcuts created: {stats['shortcuts']}")
    print(f"  Manifest written to: {manifest_path}")


def cmd_status(args):
    """Summarize a sort manifest."""
    from collections import Counter

    from pokesort.place.manifest import read_manifest

    path = Path(args.manifest)
    if not path.exists():
        print(f"  {path}: not found")
        return
    rows = read_manifest(path)
    print(f"  {path}: {len(rows)} projects")
    for status, count in sorted(Counter(r["status"] for r in rows).items()):
        print(f"    {status}: {count}")
    unmapped = sum(1 for r in rows if not r["detected_labels_csv"])
    print(f"  Unmapped: {unmapped}")


def _add_data_args(p):
    p.add_argument("--corpus", help="Pokedex token stream file (default: packaged data)")
    p.add_argument("--aliases", help="Alias TSV file (default: packaged data)")


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="pokesort",
        description="Sort 3D-model project folders into Pokemon-centric folders",
    )
    sub = parser.add_subparsers(dest="command")

    # catalog
    p_catalog = sub.add_parser("catalog", help="Build and write the species catalog")
    _add_data_args(p_catalog)
    p_catalog.add_argument("--output", default="data/pokedex_catalog.tsv")
    p_catalog.set_defaults(func=cmd_catalog)

    # detect
    p_detect = sub.add_parser("detect", help="Show detected labels for project folders")
    _add_data_args(p_detect)
    p_detect.add_argument("--overrides", help="Project override YAML (default: packaged data)")
    p_detect.add_argument("project", nargs="+", help="Project folders (<month>/<project>)")
    p_detect.set_defaults(func=cmd_detect)

    # sort
    p_sort = sub.add_parser("sort", help="Plan (and optionally apply) project placement")
    _add_data_args(p_sort)
    p_sort.add_argument("--overrides", help="Project override YAML (default: packaged data)")
    p_sort.add_argument("--base-dir", default=".", help="Base directory to scan")
    p_sort.add_argument("--output-dir", default=DEFAULT_OUTPUT_DIR, help="Output folder name inside base dir")
    p_sort.add_argument("--output-root", help="Output root path; overrides --output-dir")
    mode = p_sort.add_mutually_exclusive_group()
    mode.add_argument("--dry-run", action="store_true", help="Plan only (default)")
    mode.add_argument("--apply", action="store_true", help="Perform transfers and shortcuts")
    p_sort.add_argument("--transfer-mode", choices=["move", "copy"], default="move")
    p_sort.add_argument("--shortcut-type", choices=["alias", "symlink"], default="symlink")
    p_sort.add_argument("--workers", type=int, default=1, help="Parallel detection workers")
    p_sort.add_argument("--manifest", help="Write the planned manifest TSV here (dry-run)")
    p_sort.add_argument("--verbose", action="store_true")
    p_sort.set_defaults(func=cmd_sort)

    # status
    p_status = sub.add_parser("status", help="Summarize a sort manifest")
    p_status.add_argument(
        "--manifest",
        default=f"{DEFAULT_OUTPUT_DIR}/_reports/sort_manifest.tsv",
    )
    p_status.set_defaults(func=cmd_status)

    args = parser.parse_args(argv)
    if not args.command:
        parser.print_help()
        sys.exit(1)

    from pokesort.apply.deployer import ApplyError
    from pokesort.place.planner import DestinationCollisionError
    from pokesort.vocab.catalog import CatalogError

    try:
        args.func(args)
    except (CatalogError, DestinationCollisionError, ApplyError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
