"""
Installed packs under the packs root (``.dojos/<name>/``).

Listing and removal. Removal is also what ``dojo add --force`` uses to
clear the previous installation before the new one is moved in.
"""

import os
import shutil
from dataclasses import dataclass
from pathlib import Path

import structlog

from ..config.schema import AppConfig
from .agents import AGENTS
from .state import read_active_selection, write_active_selection

logger = structlog.get_logger()

PACK_MANIFEST = "pack.json"


@dataclass(frozen=True)
class InstalledPack:
    """A directory under the packs root."""

    name: str
    path: Path
    active: bool

    @property
    def has_manifest(self) -> bool:
        return (self.path / PACK_MANIFEST).is_file()


@dataclass(frozen=True)
class RemovalResult:
    name: str
    removed_links: tuple[str, ...]
    was_active: bool


def pack_dir(project_root: Path, config: AppConfig, name: str) -> Path:
    """Directory of the pack called ``name``.

    Raises:
        ValueError: If ``name`` would not be a direct child of the packs root.
    """
    root = Path(os.path.normpath(config.packs_root(project_root)))
    target = Path(os.path.normpath(root / name))
    if target.parent != root or target == root:
        raise ValueError(f"Invalid pack name: {name!r}")
    return target


def list_installed_packs(project_root: Path, config: AppConfig) -> list[InstalledPack]:
    """Enumerate pack directories, sorted by name."""
    root = config.packs_root(project_root)
    if not root.is_dir():
        return []
    active = read_active_selection(project_root)
    return [
        InstalledPack(name=entry.name, path=entry, active=entry.name == active)
        for entry in sorted(root.iterdir())
        if entry.is_dir()
    ]


def _points_into(link: Path, target_dir: Path) -> bool:
    # Works for dangling links too: the target is resolved lexically
    target = Path(os.path.normpath(link.parent / os.readlink(link)))
    resolved_dir = Path(os.path.normpath(target_dir))
    return target == resolved_dir or resolved_dir in target.parents


def _remove_agent_links(project_root: Path, target_dir: Path) -> list[str]:
    removed: list[str] = []
    for agent in AGENTS.values():
        for sub_dir in (agent.commands_dir(project_root), agent.skills_dir(project_root)):
            if not sub_dir.is_dir():
                continue
            for entry in sub_dir.iterdir():
                if entry.is_symlink() and _points_into(entry, target_dir):
                    entry.unlink()
                    removed.append(str(entry.relative_to(project_root)))
    return removed


def remove_pack(project_root: Path, config: AppConfig, name: str) -> RemovalResult:
    """Delete an installed pack and every agent symlink pointing into it.

    Clears the active selection if the removed pack was active.

    Raises:
        FileNotFoundError: If no pack with that name is installed.
    """
    target = pack_dir(project_root, config, name)
    if not target.exists():
        raise FileNotFoundError(f'Pack "{name}" not found at {config.packs_dir}/{name}')

    removed_links = _remove_agent_links(project_root.absolute(), target.absolute())
    shutil.rmtree(target)

    was_active = read_active_selection(project_root) == name
    if was_active:
        write_active_selection(project_root, None)

    logger.info("pack.removed", name=name, links=len(removed_links), was_active=was_active)
    return RemovalResult(name=name, removed_links=tuple(removed_links), was_active=was_active)
