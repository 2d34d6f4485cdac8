"""
Shared fixtures: logging setup, tarball builder and a fake command runner.
"""

import io
import json
import shutil
import tarfile
from pathlib import Path

import pytest

from dojocho.acquire.runner import CommandResult
from dojocho.config.schema import AppConfig, LoggingConfig
from dojocho.logging import configure_logging


@pytest.fixture(autouse=True, scope="session")
def _quiet_logging() -> None:
    """HUMAN events need the stdlib logger factory; keep the output silent."""
    configure_logging(LoggingConfig(), quiet=True)


def make_tarball(path: Path, files: dict[str, str | bytes], prefix: str = "package/") -> Path:
    """Write a gzipped tarball with ``files`` under ``prefix``."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with tarfile.open(path, "w:gz") as tar:
        for name, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(prefix + name)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
    return path


def pack_files(name: str = "effect-ts", **extra: str) -> dict[str, str]:
    """Minimal pack contents: pack.json plus a command and a skill."""
    files = {
        "pack.json": json.dumps({"name": name, "version": "1.0.0", "katas": []}),
        "tsconfig.json": json.dumps({"compilerOptions": {"strict": True}}),
        "commands/kata.md": "# kata\n",
        "skills/sensei/SKILL.md": "# sensei\n",
    }
    files.update(extra)
    return files


class FakeRunner:
    """CommandRunner double.

    ``pack`` commands copy ``archive`` into the requested destination,
    commands whose first two words are in ``failing`` exit with 1, and
    every call is recorded as ``(args, cwd)``.
    """

    def __init__(self, archive: Path | None = None, failing: set[tuple[str, str]] | None = None) -> None:
        self.archive = archive
        self.failing = failing or set()
        self.calls: list[tuple[list[str], Path]] = []

    def run(self, args: list[str], cwd: Path) -> CommandResult:
        self.calls.append((list(args), Path(cwd)))
        if tuple(args[:2]) in self.failing:
            return CommandResult(stdout="", exit_code=1, stderr=f"{args[0]} {args[1]} failed")
        if "pack" in args[:3] and self.archive is not None:
            destination = Path(args[args.index("--pack-destination") + 1])
            shutil.copy(self.archive, destination / self.archive.name)
            return CommandResult(stdout=self.archive.name + "\n", exit_code=0)
        return CommandResult(stdout="", exit_code=0)

    def commands(self) -> list[str]:
        return [" ".join(args[:2]) for args, _ in self.calls]


@pytest.fixture
def project(tmp_path: Path) -> Path:
    """An initialized practice project with a Claude agent directory."""
    root = tmp_path / "project"
    root.mkdir()
    (root / ".dojorc").write_text(json.dumps({"currentDojo": "", "currentKata": None, "editor": "code"}))
    (root / ".claude").mkdir()
    return root


@pytest.fixture
def config() -> AppConfig:
    return AppConfig()
