"""
Tests for workspace dependency rewriting.

Covers:
- workspace dependencies come from the source checkout, resolved to real paths
- their names are removed from the staged copy, whatever version it holds
- unresolved ones are left in place
- all three dependency sections are handled
- unreadable descriptors never raise
"""

import json
from pathlib import Path

import pytest

from dojocho.acquire.linker import is_workspace_spec, link_workspace_dependencies


@pytest.fixture
def monorepo(tmp_path: Path) -> Path:
    """packages/pack depends on packages/config through node_modules symlinks."""
    packages = tmp_path / "packages"
    config_pkg = packages / "config"
    config_pkg.mkdir(parents=True)
    (config_pkg / "package.json").write_text('{"name": "@dojocho/config"}')

    pack = packages / "pack"
    scoped = pack / "node_modules" / "@dojocho"
    scoped.mkdir(parents=True)
    (scoped / "config").symlink_to(config_pkg)
    return pack


def _descriptor(path: Path, data: dict) -> Path:
    path.write_text(json.dumps(data))
    return path


class TestIsWorkspaceSpec:
    @pytest.mark.parametrize("spec", ["workspace:*", "workspace:^", "workspace:~1.0.0"])
    def test_workspace(self, spec: str) -> None:
        assert is_workspace_spec(spec)

    @pytest.mark.parametrize("spec", ["^1.0.0", "*", "link:../x", None, 3])
    def test_not_workspace(self, spec: object) -> None:
        assert not is_workspace_spec(spec)


class TestLinkWorkspaceDependencies:
    def test_resolves_and_removes(self, monorepo: Path, tmp_path: Path) -> None:
        deps = {"@dojocho/config": "workspace:*", "effect": "^3.0.0"}
        _descriptor(monorepo / "package.json", {"name": "pack", "dependencies": deps})
        staged = _descriptor(tmp_path / "staged.json", {"name": "pack", "dependencies": deps})

        linked = link_workspace_dependencies(monorepo, staged)

        assert linked == [(tmp_path / "packages" / "config").resolve()]
        assert json.loads(staged.read_text())["dependencies"] == {"effect": "^3.0.0"}
        # The checkout keeps its workspace reference
        assert json.loads((monorepo / "package.json").read_text())["dependencies"] == deps

    def test_packed_copy_with_resolved_version(self, monorepo: Path, tmp_path: Path) -> None:
        # pnpm/yarn/bun pack replace workspace:* with the sibling's version
        _descriptor(monorepo / "package.json", {"dependencies": {"@dojocho/config": "workspace:*"}})
        staged = _descriptor(
            tmp_path / "staged.json",
            {"dependencies": {"@dojocho/config": "0.1.0", "effect": "^3.0.0"}},
        )

        linked = link_workspace_dependencies(monorepo, staged)

        assert linked == [(tmp_path / "packages" / "config").resolve()]
        assert json.loads(staged.read_text())["dependencies"] == {"effect": "^3.0.0"}

    def test_all_sections(self, monorepo: Path, tmp_path: Path) -> None:
        data = {
            "devDependencies": {"@dojocho/config": "workspace:^"},
            "peerDependencies": {"@dojocho/config": "workspace:*"},
        }
        _descriptor(monorepo / "package.json", data)
        staged = _descriptor(tmp_path / "staged.json", data)

        linked = link_workspace_dependencies(monorepo, staged)

        assert len(linked) == 1
        written = json.loads(staged.read_text())
        assert written["devDependencies"] == {}
        assert written["peerDependencies"] == {}

    def test_unresolved_left_in_place(self, monorepo: Path, tmp_path: Path) -> None:
        data = {"dependencies": {"@dojocho/missing": "workspace:*"}}
        _descriptor(monorepo / "package.json", data)
        staged = _descriptor(tmp_path / "staged.json", data)
        before = staged.read_text()

        assert link_workspace_dependencies(monorepo, staged) == []
        assert staged.read_text() == before

    def test_no_workspace_deps_does_not_rewrite(self, monorepo: Path, tmp_path: Path) -> None:
        _descriptor(monorepo / "package.json", {"dependencies": {"effect": "^3"}})
        staged = tmp_path / "staged.json"
        staged.write_text('{"dependencies":{"effect":"^3"}}')
        assert link_workspace_dependencies(monorepo, staged) == []
        assert staged.read_text() == '{"dependencies":{"effect":"^3"}}'

    @pytest.mark.parametrize("content", ["{broken", "[]", None])
    def test_never_raises(self, monorepo: Path, tmp_path: Path, content: str | None) -> None:
        _descriptor(monorepo / "package.json", {"dependencies": {"@dojocho/config": "workspace:*"}})
        staged = tmp_path / "staged.json"
        if content is not None:
            staged.write_text(content)
        assert link_workspace_dependencies(monorepo, staged) == []

    def test_unreadable_source_descriptor(self, monorepo: Path, tmp_path: Path) -> None:
        staged = _descriptor(tmp_path / "staged.json", {"dependencies": {"@dojocho/config": "workspace:*"}})
        assert link_workspace_dependencies(monorepo, staged) == []
