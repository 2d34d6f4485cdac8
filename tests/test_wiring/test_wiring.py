"""
Tests for integration wiring.

Covers:
- merge_dependency_paths: paths per dependency, idempotent, skipped without deps
- write_root_tsconfig: full overwrite, byte-identical on repeat
- agent symlinks: relative targets, replacement, per-agent isolation
"""

import json
import os
from pathlib import Path

import pytest

from dojocho.acquire.errors import WiringError
from dojocho.acquire.wiring import IntegrationWirer, dependency_paths, symlink_entries
from dojocho.config.schema import AppConfig


@pytest.fixture
def pack(project: Path) -> Path:
    root = project / ".dojos" / "effect-ts"
    (root / "commands").mkdir(parents=True)
    (root / "commands" / "kata.md").write_text("# kata")
    (root / "commands" / "notes.txt").write_text("ignored")
    (root / "skills" / "sensei").mkdir(parents=True)
    (root / "skills" / "sensei" / "SKILL.md").write_text("# sensei")
    (root / "skills" / "README.md").write_text("not a skill")
    (root / "tsconfig.json").write_text(json.dumps({"compilerOptions": {"strict": True}}))
    (root / "package.json").write_text(json.dumps({"dependencies": {"effect": "^3.0.0"}}))
    return root


class TestDependencyPaths:
    def test_entries(self) -> None:
        assert dependency_paths(["effect"]) == {
            "effect": ["./node_modules/effect"],
            "effect/*": ["./node_modules/effect/*"],
        }


class TestMergeDependencyPaths:
    def test_merges_into_pack_tsconfig(self, project: Path, pack: Path) -> None:
        assert IntegrationWirer(project, AppConfig()).merge_dependency_paths(pack)
        tsconfig = json.loads((pack / "tsconfig.json").read_text())
        assert tsconfig["compilerOptions"]["strict"] is True
        assert tsconfig["compilerOptions"]["paths"]["effect/*"] == ["./node_modules/effect/*"]

    def test_idempotent(self, project: Path, pack: Path) -> None:
        wirer = IntegrationWirer(project, AppConfig())
        wirer.merge_dependency_paths(pack)
        first = (pack / "tsconfig.json").read_bytes()
        wirer.merge_dependency_paths(pack)
        assert (pack / "tsconfig.json").read_bytes() == first

    def test_skipped_without_dependencies(self, project: Path, pack: Path) -> None:
        (pack / "package.json").write_text("{}")
        before = (pack / "tsconfig.json").read_bytes()
        assert not IntegrationWirer(project, AppConfig()).merge_dependency_paths(pack)
        assert (pack / "tsconfig.json").read_bytes() == before

    def test_skipped_without_tsconfig(self, project: Path, pack: Path) -> None:
        (pack / "tsconfig.json").unlink()
        assert not IntegrationWirer(project, AppConfig()).merge_dependency_paths(pack)

    @pytest.mark.parametrize(
        "tsconfig",
        [{"compilerOptions": None}, {"compilerOptions": [1]}, {"compilerOptions": {"paths": ["x"]}}],
    )
    def test_malformed_compiler_options_is_wiring_error(self, project: Path, pack: Path, tsconfig: dict) -> None:
        (pack / "tsconfig.json").write_text(json.dumps(tsconfig))
        with pytest.raises(WiringError, match="must be an object"):
            IntegrationWirer(project, AppConfig()).merge_dependency_paths(pack)

    def test_unreadable_tsconfig_is_wiring_error(self, project: Path, pack: Path) -> None:
        (pack / "tsconfig.json").write_text("{ // comments are not JSON\n}")
        with pytest.raises(WiringError):
            IntegrationWirer(project, AppConfig()).merge_dependency_paths(pack)


class TestRootTsconfig:
    def test_content(self, project: Path, pack: Path) -> None:
        path = IntegrationWirer(project, AppConfig()).write_root_tsconfig(pack)
        assert json.loads(path.read_text()) == {
            "extends": "./.dojos/effect-ts/tsconfig.json",
            "compilerOptions": {"noEmit": True},
            "include": ["katas/**/*.ts"],
        }

    def test_overwrites_user_content(self, project: Path, pack: Path) -> None:
        (project / "tsconfig.json").write_text('{"compilerOptions": {"target": "ES5"}}')
        IntegrationWirer(project, AppConfig()).write_root_tsconfig(pack)
        assert "ES5" not in (project / "tsconfig.json").read_text()

    def test_byte_identical_on_repeat(self, project: Path, pack: Path) -> None:
        wirer = IntegrationWirer(project, AppConfig())
        first = wirer.write_root_tsconfig(pack).read_bytes()
        assert wirer.write_root_tsconfig(pack).read_bytes() == first

    def test_custom_katas_path(self, project: Path, pack: Path) -> None:
        path = IntegrationWirer(project, AppConfig(katas_path="practice/katas")).write_root_tsconfig(pack)
        assert json.loads(path.read_text())["include"] == ["practice/katas/**/*.ts"]


class TestAgentLinks:
    def test_links_commands_and_skills(self, project: Path, pack: Path) -> None:
        report = IntegrationWirer(project, AppConfig()).wire(pack, "effect-ts")

        kata = project / ".claude" / "commands" / "kata.md"
        sensei = project / ".claude" / "skills" / "sensei"
        assert report.agents_wired == {"claude": 2}
        assert kata.is_symlink() and sensei.is_symlink()
        assert os.readlink(kata) == "../../.dojos/effect-ts/commands/kata.md"
        assert (sensei / "SKILL.md").read_text() == "# sensei"
        assert not (project / ".claude" / "commands" / "notes.txt").exists()
        assert not (project / ".claude" / "skills" / "README.md").exists()

    def test_unconfigured_agents_untouched(self, project: Path, pack: Path) -> None:
        IntegrationWirer(project, AppConfig()).wire(pack, "effect-ts")
        assert not (project / ".codex").exists()

    def test_replaces_existing_file_and_link(self, project: Path, pack: Path) -> None:
        commands = project / ".claude" / "commands"
        commands.mkdir(parents=True)
        (commands / "kata.md").write_text("default kata command")
        (project / ".claude" / "skills").mkdir()
        (project / ".claude" / "skills" / "sensei").symlink_to("/nowhere")

        IntegrationWirer(project, AppConfig()).wire(pack, "effect-ts")

        assert (commands / "kata.md").read_text() == "# kata"
        assert (project / ".claude" / "skills" / "sensei" / "SKILL.md").exists()

    def test_one_agent_failing_does_not_stop_others(self, project: Path, pack: Path) -> None:
        (project / ".codex").mkdir()
        # A regular file where the commands directory should be
        (project / ".claude" / "commands").write_text("oops")

        report = IntegrationWirer(project, AppConfig()).wire(pack, "effect-ts")

        assert "claude" in report.agents_failed
        assert report.agents_wired == {"codex": 2}
        assert (project / ".codex" / "commands" / "kata.md").is_symlink()

    def test_symlink_entries_missing_source(self, tmp_path: Path) -> None:
        assert symlink_entries(tmp_path / "none", tmp_path / "out", lambda e: True) == 0
        assert not (tmp_path / "out").exists()
