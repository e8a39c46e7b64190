"""Shared fixtures for project tests."""

from __future__ import annotations

from collections import Counter
from pathlib import Path

import pytest

from tsplane.core.fs import LocalFileSystem


class CountingFileSystem(LocalFileSystem):
    """LocalFileSystem that counts probes and reads."""

    def __init__(self) -> None:
        super().__init__(case_sensitive=True)
        self.calls: Counter[str] = Counter()

    def read_file(self, path: str) -> str:
        self.calls["read_file"] += 1
        return super().read_file(path)

    def is_file(self, path: str) -> bool:
        self.calls["is_file"] += 1
        return super().is_file(path)


@pytest.fixture
def fs() -> CountingFileSystem:
    return CountingFileSystem()


@pytest.fixture
def monorepo(tmp_path: Path) -> Path:
    """Two independently configured packages plus a shared file.

    Layout::

        repo/
          shared/util.ts
          packages/app/tsconfig.json
          packages/app/src/main.ts      (imports ../../../shared/util)
          packages/lib/tsconfig.json    (strict)
          packages/lib/src/index.ts     (imports ../../../shared/util)
    """
    repo = tmp_path / "repo"
    (repo / "shared").mkdir(parents=True)
    (repo / "shared" / "util.ts").write_text("export const answer: number = 42;\n")

    app = repo / "packages" / "app"
    (app / "src").mkdir(parents=True)
    (app / "tsconfig.json").write_text('{"compilerOptions": {}}')
    (app / "src" / "main.ts").write_text(
        'import { answer } from "../../../shared/util";\nexport const doubled = answer * 2;\n'
    )

    lib = repo / "packages" / "lib"
    (lib / "src").mkdir(parents=True)
    (lib / "tsconfig.json").write_text('{"compilerOptions": {"strict": true}}')
    (lib / "src" / "index.ts").write_text(
        'import { answer } from "../../../shared/util";\nexport default answer;\n'
    )
    return repo


@pytest.fixture
def probes(fs: CountingFileSystem) -> Counter[str]:
    """Live call counts of the ``fs`` fixture."""
    return fs.calls
