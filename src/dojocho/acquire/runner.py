"""
External commands: a narrow runner interface plus the package manager table.

The pipeline never calls ``subprocess`` directly. It goes through a
``CommandRunner`` so tests can substitute a fake, and it only knows the
three package manager operations it needs (pack, install, link).
"""

import json
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Literal, Protocol

import structlog

from .errors import CommandError

logger = structlog.get_logger()

PackageManager = Literal["npm", "pnpm", "yarn", "bun"]

_LOCKFILES: tuple[tuple[str, PackageManager], ...] = (
    ("pnpm-lock.yaml", "pnpm"),
    ("yarn.lock", "yarn"),
    ("bun.lockb", "bun"),
    ("bun.lock", "bun"),
    ("package-lock.json", "npm"),
)


@dataclass(frozen=True)
class CommandResult:
    stdout: str
    exit_code: int
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


class CommandRunner(Protocol):
    def run(self, args: list[str], cwd: Path) -> CommandResult: ...


class SubprocessRunner:
    """Runs commands with ``subprocess.run``, blocking until they exit."""

    def run(self, args: list[str], cwd: Path) -> CommandResult:
        logger.debug("command.run", args=args, cwd=str(cwd))
        try:
            proc = subprocess.run(
                args,
                cwd=str(cwd),
                capture_output=True,
                text=True,
            )
        except FileNotFoundError:
            # Executable missing; report it like a shell would
            return CommandResult(stdout="", exit_code=127, stderr=f"{args[0]}: command not found")
        if proc.returncode != 0:
            logger.debug("command.failed", args=args, exit_code=proc.returncode, stderr=proc.stderr[:200])
        return CommandResult(stdout=proc.stdout, exit_code=proc.returncode, stderr=proc.stderr)


def run_checked(runner: CommandRunner, args: list[str], cwd: Path) -> CommandResult:
    """Run a command and raise ``CommandError`` on a non-zero exit."""
    result = runner.run(args, cwd)
    if not result.ok:
        raise CommandError(args, result.exit_code, result.stderr)
    return result


def detect_package_manager(directory: Path) -> PackageManager:
    """Detect the package manager a directory uses.

    Order: ``packageManager`` field in package.json, then lockfiles,
    then npm.
    """
    pkg_path = directory / "package.json"
    if pkg_path.is_file():
        try:
            pkg = json.loads(pkg_path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, OSError):
            pkg = None
        if isinstance(pkg, dict) and isinstance(pkg.get("packageManager"), str):
            name = pkg["packageManager"].split("@")[0]
            if name in ("npm", "pnpm", "yarn", "bun"):
                return name  # type: ignore[return-value]

    for filename, manager in _LOCKFILES:
        if (directory / filename).exists():
            return manager

    return "npm"


@dataclass(frozen=True)
class PackageManagerCommands:
    """Argument lists for the package manager operations the pipeline uses."""

    name: PackageManager

    def pack(self, destination: Path) -> list[str]:
        match self.name:
            case "yarn":
                return ["yarn", "pack", "--out", str(destination / "%s-%v.tgz")]
            case "bun":
                return ["bun", "pm", "pack", "--destination", str(destination)]
            case _:
                return [self.name, "pack", "--pack-destination", str(destination)]

    def install(self) -> list[str]:
        match self.name:
            case "pnpm":
                return ["pnpm", "install", "--ignore-workspace", "--silent"]
            case _:
                return [self.name, "install", "--silent"]

    def link(self, package_path: Path) -> list[str]:
        return [self.name, "link", str(package_path)]


def package_manager_for(directory: Path) -> PackageManagerCommands:
    return PackageManagerCommands(detect_package_manager(directory))
