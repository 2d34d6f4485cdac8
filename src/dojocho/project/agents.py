"""
Coding agent integrations known to dojocho.

An agent is configured for a project when its directory exists at the
project root. Packs expose ``commands/*.md`` and ``skills/<name>/`` which
get symlinked into ``<agent dir>/commands`` and ``<agent dir>/skills``.
"""

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class AgentIntegration:
    """A coding agent and the directory it reads commands and skills from."""

    name: str
    dir: str

    def commands_dir(self, project_root: Path) -> Path:
        return project_root / self.dir / "commands"

    def skills_dir(self, project_root: Path) -> Path:
        return project_root / self.dir / "skills"


AGENTS: dict[str, AgentIntegration] = {
    "claude": AgentIntegration("claude", ".claude"),
    "opencode": AgentIntegration("opencode", ".opencode"),
    "codex": AgentIntegration("codex", ".codex"),
    "gemini": AgentIntegration("gemini", ".gemini"),
}


def configured_agents(project_root: Path) -> list[AgentIntegration]:
    """Agents whose directory exists at the project root, in registry order."""
    return [agent for agent in AGENTS.values() if (project_root / agent.dir).is_dir()]
