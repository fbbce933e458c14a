"""Tests for the apply stage and the CLI."""

import os
import subprocess

import pytest

from pokesort.apply.deployer import ApplyError, apply_records, create_finder_alias
from pokesort.cli import main
from pokesort.detect.detector import DetectionResult
from pokesort.intake.crawler import discover_projects
from pokesort.place.index import DestinationIndex
from pokesort.place.manifest import read_manifest
from pokesort.place.planner import plan_all


def _make_projects(base):
    for name in ["Pikachu Statue", "Eevee Pikachu Diorama", "Charizard Bust"]:
        project = base / "January 2026" / name
        project.mkdir(parents=True)
        (project / "part.stl").write_text("solid")


def _plan(base, output_root, detections):
    sources = discover_projects(base, output_root)
    records = plan_all(sources, detections, DestinationIndex())
    return sources, records


def test_apply_move_with_symlinks(tmp_path, capsys):
    _make_projects(tmp_path)
    out = tmp_path / "Sorted by Pokemon"
    detections = [
        DetectionResult(("Charizard",)),
        DetectionResult(("Eevee", "Pikachu")),
        DetectionResult(("Pikachu",)),
    ]
    sources, records = _plan(tmp_path, out, detections)
    manifest = apply_records(records, sources, out, transfer_mode="move", shortcut_type="symlink")

    canonical = out / "Eevee" / "January 2026 - Eevee Pikachu Diorama"
    link = out / "Pikachu" / "January 2026 - Eevee Pikachu Diorama"
    assert (canonical / "part.stl").exists()
    assert link.is_symlink()
    assert os.readlink(link) == os.path.join("..", "Eevee", "January 2026 - Eevee Pikachu Diorama")
    assert (link / "part.stl").exists()
    assert not (tmp_path / "January 2026" / "Eevee Pikachu Diorama").exists()

    rows = {r["source_project"]: r for r in read_manifest(manifest)}
    assert rows["January 2026/Eevee Pikachu Diorama"]["status"] == "move+linked"
    assert rows["January 2026/Charizard Bust"]["status"] == "move"
    assert "LINK: Pikachu/January 2026 - Eevee Pikachu Diorama" in capsys.readouterr().out


def test_apply_copy_keeps_source(tmp_path):
    _make_projects(tmp_path)
    out = tmp_path / "out"
    detections = [DetectionResult(("Charizard",)), DetectionResult(()), DetectionResult(("Pikachu",))]
    sources, records = _plan(tmp_path, out, detections)
    apply_records(records, sources, out, transfer_mode="copy")
    assert (tmp_path / "January 2026" / "Charizard Bust").is_dir()
    assert (out / "_Unmapped" / "January 2026 - Eevee Pikachu Diorama" / "part.stl").exists()


def test_apply_refuses_existing_destination(tmp_path):
    _make_projects(tmp_path)
    out = tmp_path / "out"
    (out / "Charizard" / "January 2026 - Charizard Bust").mkdir(parents=True)
    detections = [DetectionResult(("Charizard",)), DetectionResult(()), DetectionResult(())]
    sources, records = _plan(tmp_path, out, detections)
    with pytest.raises(ApplyError, match="already exists"):
        apply_records(records, sources, out)


def test_apply_failure_keeps_manifest_of_applied_records(tmp_path):
    _make_projects(tmp_path)
    out = tmp_path / "out"
    detections = [DetectionResult(("Charizard",)), DetectionResult(()), DetectionResult(("Pikachu",))]
    sources, records = _plan(tmp_path, out, detections)
    # appears between planning and apply
    (out / "Pikachu" / "January 2026 - Pikachu Statue").mkdir(parents=True)

    with pytest.raises(ApplyError, match="already exists"):
        apply_records(records, sources, out)

    assert (out / "Charizard" / "January 2026 - Charizard Bust" / "part.stl").exists()
    rows = read_manifest(out / "_reports" / "sort_manifest.tsv")
    assert [(r["source_project"], r["status"]) for r in rows] == [
        ("January 2026/Charizard Bust", "move"),
        ("January 2026/Eevee Pikachu Diorama", "move"),
    ]


def test_finder_alias_falls_back_to_legacy_syntax(tmp_path, monkeypatch):
    target = tmp_path / "Eevee" / "Diorama"
    target.mkdir(parents=True)
    alias = tmp_path / "Pikachu" / "Diorama"
    alias.parent.mkdir()
    scripts = []

    def fake_run(cmd, input, env, capture_output, text):
        scripts.append(input)
        if len(scripts) == 1:
            return subprocess.CompletedProcess(cmd, 1, "", "Can't make class alias file.")
        created = alias.parent / "Diorama alias"
        created.write_text("")
        return subprocess.CompletedProcess(cmd, 0, f"{created}\n", "")

    monkeypatch.setattr("pokesort.apply.deployer.subprocess.run", fake_run)
    create_finder_alias(target, alias)

    assert len(scripts) == 2
    assert "make new alias file to" in scripts[0]
    assert "make alias file to" in scripts[1]
    assert alias.exists()
    assert not (alias.parent / "Diorama alias").exists()


def test_finder_alias_reports_every_failure(tmp_path, monkeypatch):
    def fake_run(cmd, input, env, capture_output, text):
        return subprocess.CompletedProcess(cmd, 1, "", "Finder got an error")

    monkeypatch.setattr("pokesort.apply.deployer.subprocess.run", fake_run)
    with pytest.raises(ApplyError, match="Failed to create Finder alias"):
        create_finder_alias(tmp_path / "a", tmp_path / "b")


def test_apply_rejects_bad_mode(tmp_path):
    with pytest.raises(ValueError):
        apply_records([], [], tmp_path, transfer_mode="teleport")


def test_cli_sort_dry_run(tmp_path, capsys):
    _make_projects(tmp_path)
    main(["sort", "--base-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "Discovered source projects: 3" in out
    assert "PLAN MOVE: January 2026/Pikachu Statue -> Pikachu/January 2026 - Pikachu Statue" in out
    assert "PLAN LINK: Pikachu/January 2026 - Eevee Pikachu Diorama -> Eevee/January 2026 - Eevee Pikachu Diorama" in out
    assert "PLAN MOVE: January 2026/Charizard Bust -> Charizard/January 2026 - Charizard Bust" in out
    assert not (tmp_path / "Sorted by Pokemon").exists()


def test_cli_sort_apply_then_rerun(tmp_path, capsys):
    _make_projects(tmp_path)
    main(["sort", "--base-dir", str(tmp_path), "--apply", "--transfer-mode", "copy"])
    out_root = tmp_path / "Sorted by Pokemon"
    assert (out_root / "Pikachu" / "January 2026 - Pikachu Statue").is_dir()
    capsys.readouterr()

    # copies stay in place, so a second run must resolve every collision with variants
    main(["sort", "--base-dir", str(tmp_path)])
    out = capsys.readouterr().out
    assert "Existing destination entries: 4" in out
    assert "Auto-resolved destination collisions: 3" in out
    assert "Pikachu/January 2026 - Pikachu Statue (Variant 2)" in out

    main(["status", "--manifest", str(out_root / "_reports" / "sort_manifest.tsv")])
    status = capsys.readouterr().out
    assert "3 projects" in status
    assert "copy+linked: 1" in status


def test_cli_fatal_error(tmp_path, capsys):
    corpus = tmp_path / "tiny.txt"
    corpus.write_text("pikachu eevee")
    with pytest.raises(SystemExit) as exc:
        main(["sort", "--base-dir", str(tmp_path), "--corpus", str(corpus)])
    assert exc.value.code == 1
    assert "too few" in capsys.readouterr().err


def test_cli_catalog(tmp_path, capsys):
    out = tmp_path / "catalog.tsv"
    main(["catalog", "--output", str(out)])
    lines = out.read_text().splitlines()
    assert len(lines) >= 900
    assert "pikachu\tPikachu" in lines
