"""
Project collaborators: active selection, installed packs, agent directories.
"""

from .agents import AGENTS, AgentIntegration, configured_agents
from .packs import (
    PACK_MANIFEST,
    InstalledPack,
    RemovalResult,
    list_installed_packs,
    pack_dir,
    remove_pack,
)
from .state import read_active_selection, read_rc, write_active_selection, write_rc

__all__ = [
    "AGENTS",
    "AgentIntegration",
    "configured_agents",
    "PACK_MANIFEST",
    "InstalledPack",
    "RemovalResult",
    "list_installed_packs",
    "pack_dir",
    "remove_pack",
    "read_active_selection",
    "write_active_selection",
    "read_rc",
    "write_rc",
]
