from __future__ import annotations

import os
import subprocess
import sys
from pathlib import Path

SVG = """<?xml version="1.0"?>
<svg xmlns="http://www.w3.org/2000/svg" width="100" height="100">
  <!-- two paths -->
  <path id="edge" d="M10 10 L20 10 L20 20" stroke-dasharray="2 1"/>
  <path id="solid" d="m0 0 h10 v10 z"/>
</svg>
"""


def _write_svg(tmp_path: Path, content: str = SVG) -> Path:
    path = tmp_path / "test.svg"
    path.write_text(content, encoding="utf-8")
    return path


def _run_cli(args: list[str], cwd: Path) -> subprocess.CompletedProcess[str]:
    env = os.environ.copy()
    project_root = Path(__file__).resolve().parents[1]
    src_path = project_root / "src"
    pythonpath = env.get("PYTHONPATH", "")
    new_path = str(src_path)
    if pythonpath:
        new_path = os.pathsep.join([new_path, pythonpath])
    env["PYTHONPATH"] = new_path
    env["COLUMNS"] = "200"
    return subprocess.run(
        [sys.executable, "-m", "pathscan.cli", *args],
        cwd=str(cwd),
        env=env,
        text=True,
        capture_output=True,
    )


def test_elements_lists_kinds(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    result = _run_cli(["elements", str(svg)], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    for kind in ("XMLDECL", "START_TAG", "COMMENT", "SELF_CLOSING", "END_TAG"):
        assert kind in result.stdout
    assert "6 elements" in result.stdout


def test_elements_skip_comments_from_config(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("scanner:\n  skip_comments: true\n", encoding="utf-8")
    result = _run_cli(["elements", str(svg), "--config", str(cfg)], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert "COMMENT" not in result.stdout
    assert "5 elements" in result.stdout


def test_tokens(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path, '<a x="1"/>')
    result = _run_cli(["tokens", str(svg)], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    lines = result.stdout.splitlines()
    assert lines[0].split() == ["LT", "''"]
    assert "STRING" in lines[4] and "'1'" in lines[4]
    assert lines[-1].split()[0] == "GT"


def test_paths_prints_normalized_data_and_bbox(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    result = _run_cli(["paths", str(svg), "--bbox", "--precision", "1"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert "M 10 10 L 20 10 L 20 20" in result.stdout
    assert "M 0 0 L 10 0 L 10 10 Z" in result.stdout
    assert "bbox: 10.0 10.0 10.0 10.0" in result.stdout
    assert "2 paths" in result.stdout


def test_dash_uses_the_element_pattern(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    result = _run_cli(["dash", str(svg), "--all"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert result.stdout.count(" yes ") == 8
    assert result.stdout.count(" no ") == 6


def test_verbose_shows_cli_debug_lines(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    result = _run_cli(["dash", str(svg), "--verbose"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert "path 1 has no dash pattern" in result.stdout


def test_dash_with_explicit_pattern_visible_only(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    result = _run_cli(["dash", str(svg), "--pattern", "4,6", "--visible-only"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert " no " not in result.stdout
    assert result.stdout.count(" yes ") == 6


def test_flatten(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    result = _run_cli(["flatten", str(svg), "--timings"], cwd=tmp_path)
    assert result.returncode == 0, result.stderr
    assert "0: 10.000,10.000 20.000,10.000 20.000,20.000" in result.stdout
    assert "1: 0.000,0.000 10.000,0.000 10.000,10.000 0.000,0.000" in result.stdout
    assert "Timings" in result.stdout


def test_missing_input_exits_with_code_2(tmp_path: Path) -> None:
    result = _run_cli(["paths", str(tmp_path / "missing.svg")], cwd=tmp_path)
    assert result.returncode == 2
    assert "Input not found" in result.stderr


def test_bad_config_exits_with_code_2(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    cfg = tmp_path / "cfg.yaml"
    cfg.write_text("- not a mapping\n", encoding="utf-8")
    result = _run_cli(["elements", str(svg), "--config", str(cfg)], cwd=tmp_path)
    assert result.returncode == 2
    assert "Config root must be a mapping" in result.stderr


def test_bad_dash_pattern_exits_with_code_2(tmp_path: Path) -> None:
    svg = _write_svg(tmp_path)
    result = _run_cli(["dash", str(svg), "--pattern", "abc"], cwd=tmp_path)
    assert result.returncode == 2
    assert "Invalid dash pattern" in result.stderr
