"""Shared fixtures for unmake tests."""

import os
import shutil
import subprocess
import time
from pathlib import Path
from unittest.mock import patch

import pytest

from unmake.config import Settings


def set_mtime(path: Path, mtime: float) -> None:
    """Force both access and modification time of a file."""
    os.utime(path, (mtime, mtime))


class FakeToolchain:
    """Stand-in for subprocess.run that behaves like cc and rm.

    Any command with -o writes its output file; rm -rf removes its
    arguments. Exit codes can be forced per source or per program.
    """

    def __init__(self) -> None:
        self.calls: list[list[str]] = []
        self.fail_sources: dict[str, int] = {}
        self.program_codes: dict[str, int] = {}

    def __call__(self, cmd, check=False, **kwargs):
        cmd = list(cmd)
        self.calls.append(cmd)

        code = self.program_codes.get(cmd[0], 0)
        for source, source_code in self.fail_sources.items():
            if source in cmd:
                code = source_code

        if code == 0 and cmd[:2] == ["rm", "-rf"]:
            for target in cmd[2:]:
                shutil.rmtree(target, ignore_errors=True)
        elif code == 0 and "-o" in cmd:
            output = Path(cmd[cmd.index("-o") + 1])
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text("built\n")

        return subprocess.CompletedProcess(cmd, code)

    def commands_for(self, program: str) -> list[list[str]]:
        return [c for c in self.calls if c[0] == program]

    @property
    def compiled_sources(self) -> list[str]:
        return [c[c.index("-c") + 1] for c in self.calls if "-c" in c]

    @property
    def link_calls(self) -> list[list[str]]:
        return [c for c in self.calls if "-c" not in c and "-o" in c]


@pytest.fixture
def project(tmp_path, monkeypatch) -> Path:
    """An empty project directory set as the working directory."""
    monkeypatch.chdir(tmp_path)
    for name in list(os.environ):
        if name.startswith("UNMAKE_"):
            monkeypatch.delenv(name)
    return tmp_path


@pytest.fixture
def sources(project) -> list[Path]:
    """src/a.c and src/b.c, written a minute in the past."""
    src = project / "src"
    src.mkdir()
    past = time.time() - 60
    paths = []
    for name in ("a.c", "b.c"):
        path = src / name
        path.write_text(f"int {name[0]}(void) {{ return 0; }}\n")
        set_mtime(path, past)
        paths.append(path)
    return paths


@pytest.fixture
def settings(project) -> Settings:
    """Default settings resolved inside the project directory."""
    return Settings()


@pytest.fixture
def toolchain():
    """Patch subprocess.run with a FakeToolchain."""
    fake = FakeToolchain()
    with patch("subprocess.run", side_effect=fake):
        yield fake


@pytest.fixture
def touch():
    """Return a helper that forces a file's modification time."""
    return set_mtime
