"""
Integration wiring -- hooks an installed pack into the project's tooling.

1. Pack tsconfig: module resolution ``paths`` for every dependency.
2. Root tsconfig: regenerated to extend the pack's tsconfig.
3. Agents: commands and skills symlinked into each agent directory.

Steps 1 and 2 raise ``WiringError``. Step 3 is per agent: one agent
failing does not stop the others.
"""

import json
import os
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import structlog

from ..config.schema import AppConfig
from ..logging.human import HumanLog
from ..project.agents import AgentIntegration, configured_agents
from .errors import WiringError

logger = structlog.get_logger()

TSCONFIG = "tsconfig.json"


@dataclass
class WiringReport:
    paths_merged: bool = False
    root_tsconfig: Path | None = None
    agents_wired: dict[str, int] = field(default_factory=dict)
    agents_failed: dict[str, str] = field(default_factory=dict)


def _dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def dependency_paths(dependencies: list[str]) -> dict[str, list[str]]:
    """``paths`` entries pointing each dependency at the pack's node_modules."""
    paths: dict[str, list[str]] = {}
    for dep in dependencies:
        paths[dep] = [f"./node_modules/{dep}"]
        paths[f"{dep}/*"] = [f"./node_modules/{dep}/*"]
    return paths


def build_root_tsconfig(extends: str, include: str) -> dict[str, Any]:
    return {
        "extends": extends,
        "compilerOptions": {"noEmit": True},
        "include": [include],
    }


def symlink_entries(source_dir: Path, target_dir: Path, keep: Callable[[Path], bool]) -> int:
    """Symlink every kept entry of ``source_dir`` into ``target_dir``.

    Existing files and symlinks with the same name are replaced. Link
    targets are relative so the project can be moved.

    Returns:
        Number of links created.
    """
    if not source_dir.is_dir():
        return 0
    target_dir.mkdir(parents=True, exist_ok=True)
    count = 0
    for entry in sorted(source_dir.iterdir()):
        if not keep(entry):
            continue
        link = target_dir / entry.name
        if link.is_symlink() or link.exists():
            link.unlink()
        link.symlink_to(os.path.relpath(entry, target_dir))
        count += 1
    return count


class IntegrationWirer:
    """Wires an installed pack into the project.

    Args:
        project_root: Project root directory.
        config: Project configuration (katas path).
        hlog: Progress reporter.
    """

    def __init__(self, project_root: Path, config: AppConfig, hlog: HumanLog | None = None) -> None:
        self.root = project_root
        self.config = config
        self.hlog = hlog or HumanLog(logger)
        self.log = logger.bind(component="integration_wirer")

    def merge_dependency_paths(self, pack_root: Path) -> bool:
        """Add ``paths`` entries for the pack's dependencies to its tsconfig.

        Returns:
            True if the pack tsconfig was rewritten.

        Raises:
            WiringError: If either file cannot be read or written.
        """
        pkg_path = pack_root / "package.json"
        tsconfig_path = pack_root / TSCONFIG
        if not pkg_path.is_file() or not tsconfig_path.is_file():
            return False

        try:
            pkg = json.loads(pkg_path.read_text(encoding="utf-8"))
            tsconfig = json.loads(tsconfig_path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise WiringError(f"Could not read {tsconfig_path} or its package.json: {e}") from e

        deps = list((pkg.get("dependencies") or {}).keys()) if isinstance(pkg, dict) else []
        if not deps or not isinstance(tsconfig, dict):
            return False

        compiler_options = tsconfig.setdefault("compilerOptions", {})
        if not isinstance(compiler_options, dict):
            raise WiringError(f"{tsconfig_path}: compilerOptions must be an object")
        paths = compiler_options.get("paths") or {}
        if not isinstance(paths, dict):
            raise WiringError(f"{tsconfig_path}: compilerOptions.paths must be an object")
        paths.update(dependency_paths(deps))
        compiler_options["paths"] = paths

        try:
            tsconfig_path.write_text(_dump_json(tsconfig), encoding="utf-8")
        except OSError as e:
            raise WiringError(f"Could not write {tsconfig_path}: {e}") from e
        self.log.info("wiring.paths_merged", path=str(tsconfig_path), dependencies=len(deps))
        return True

    def write_root_tsconfig(self, pack_root: Path) -> Path:
        """Regenerate the root tsconfig. Always a full overwrite.

        Raises:
            WiringError: If the file cannot be written.
        """
        extends = "./" + Path(os.path.relpath(pack_root / TSCONFIG, self.root)).as_posix()
        katas = Path(os.path.relpath(self.config.katas_root(self.root), self.root)).as_posix()
        tsconfig_path = self.root / TSCONFIG
        try:
            tsconfig_path.write_text(
                _dump_json(build_root_tsconfig(extends, f"{katas}/**/*.ts")),
                encoding="utf-8",
            )
        except OSError as e:
            raise WiringError(f"Could not write {tsconfig_path}: {e}") from e
        self.log.info("wiring.root_tsconfig", path=str(tsconfig_path), extends=extends)
        return tsconfig_path

    def link_agent(self, agent: AgentIntegration, pack_root: Path) -> int:
        commands = symlink_entries(
            pack_root / "commands",
            agent.commands_dir(self.root),
            lambda e: e.is_file() and e.suffix == ".md",
        )
        skills = symlink_entries(
            pack_root / "skills",
            agent.skills_dir(self.root),
            lambda e: e.is_dir(),
        )
        return commands + skills

    def wire(self, pack_root: Path, name: str) -> WiringReport:
        """Run the three wiring steps for an installed pack."""
        report = WiringReport()
        report.paths_merged = self.merge_dependency_paths(pack_root)
        report.root_tsconfig = self.write_root_tsconfig(pack_root)

        for agent in configured_agents(self.root):
            try:
                report.agents_wired[agent.name] = self.link_agent(agent, pack_root)
            except OSError as e:
                report.agents_failed[agent.name] = str(e)
                self.log.warning("wiring.agent_failed", agent=agent.name, error=str(e))
                continue
            self.hlog.agent_wired(name, agent.dir)
        return report
