from __future__ import annotations

from pathlib import Path

import pytest

from pathscan.mappedfile import open_mapped


def test_maps_file_contents(tmp_path: Path) -> None:
    path = tmp_path / "in.svg"
    path.write_bytes(b"<svg/>")
    with open_mapped(path) as span:
        assert span.size() == 6
        assert span == b"<svg/>"
        assert span.starts_with("<svg")


def test_empty_file_gives_empty_span(tmp_path: Path) -> None:
    path = tmp_path / "empty.svg"
    path.write_bytes(b"")
    with open_mapped(path) as span:
        assert span.empty()


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError, match="Input not found"):
        with open_mapped(tmp_path / "missing.svg"):
            pass
