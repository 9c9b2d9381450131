"""Helper utilities for constructing temporary source trees in tests."""

from __future__ import annotations

import textwrap
from pathlib import Path
from typing import Mapping


class TreeBuilder:
    """Utility for writing files into a throwaway source tree."""

    def __init__(self, tmp_path: Path) -> None:
        self.root = tmp_path / "tree"
        self.root.mkdir()
        self.bin_dir = tmp_path / "bin"

    def write(self, files: Mapping[str, str]) -> None:
        """Write `path -> contents` entries into the tree."""
        for relative, content in files.items():
            path = self.root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            normalised = textwrap.dedent(content).lstrip("\n")
            path.write_text(normalised, encoding="utf-8")

    def write_bytes(self, relative: str, data: bytes) -> Path:
        path = self.root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path

    def install_rg_stub(self, body: str) -> Path:
        """Create an executable ``rg`` shell script and return its directory."""
        self.bin_dir.mkdir(exist_ok=True)
        stub = self.bin_dir / "rg"
        stub.write_text("#!/bin/sh\n" + textwrap.dedent(body).lstrip("\n"), encoding="utf-8")
        stub.chmod(0o755)
        return self.bin_dir

    def path(self, relative: str = "") -> Path:
        """Return the tree root, or a path inside it."""
        return self.root / relative if relative else self.root


__all__ = ["TreeBuilder"]
