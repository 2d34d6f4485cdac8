"""
Tests for the ``dojo`` command line.

The acquisition pipeline runs for real; only the package manager is
replaced by a fake runner through a patched ``PackAcquirer`` factory.
"""

from pathlib import Path

import pytest
from click.testing import CliRunner

from conftest import FakeRunner, make_tarball, pack_files
from dojocho import __version__, cli
from dojocho.acquire.pipeline import PackAcquirer
from dojocho.config.schema import LoggingConfig
from dojocho.logging import configure_logging


@pytest.fixture(autouse=True)
def _restore_logging():
    """The CLI points log handlers at CliRunner streams; reset them afterwards."""
    yield
    configure_logging(LoggingConfig(), quiet=True)


@pytest.fixture
def in_project(project: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    monkeypatch.chdir(project)
    return project


@pytest.fixture
def fake_pm(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> FakeRunner:
    runner = FakeRunner(archive=make_tarball(tmp_path / "dist" / "effect-ts.tgz", pack_files()))
    monkeypatch.setattr(
        cli,
        "PackAcquirer",
        lambda root, config: PackAcquirer(root, config, runner=runner),
    )
    return runner


def _error_lines(output: str) -> list[str]:
    return [line for line in output.splitlines() if line.startswith("Error:")]


class TestAdd:
    def test_success(self, in_project: Path, fake_pm: FakeRunner) -> None:
        result = CliRunner().invoke(cli.main, ["add", "@dojocho/effect-ts"])

        assert result.exit_code == cli.EXIT_SUCCESS, result.output
        assert "Location:  .dojos/effect-ts" in result.output
        assert "Agents:    claude" in result.output
        assert (in_project / ".dojos" / "effect-ts" / "pack.json").is_file()

    def test_conflict_is_single_line_error(self, in_project: Path, fake_pm: FakeRunner) -> None:
        runner = CliRunner()
        runner.invoke(cli.main, ["add", "@dojocho/effect-ts", "--quiet"])

        result = runner.invoke(cli.main, ["add", "@dojocho/effect-ts", "--quiet"])

        assert result.exit_code == cli.EXIT_FAILED
        errors = _error_lines(result.output)
        assert len(errors) == 1
        assert "already exists" in errors[0] and "--force" in errors[0]

    def test_force(self, in_project: Path, fake_pm: FakeRunner) -> None:
        runner = CliRunner()
        runner.invoke(cli.main, ["add", "@dojocho/effect-ts", "--quiet"])
        result = runner.invoke(cli.main, ["add", "@dojocho/effect-ts", "--force", "--quiet"])
        assert result.exit_code == cli.EXIT_SUCCESS, result.output
        assert result.output == ""

    def test_config_error_exit_code(self, in_project: Path, fake_pm: FakeRunner) -> None:
        (in_project / "dojo.yaml").write_text("registries:\n  acme: https://acme.dev/packs.json\n")

        result = CliRunner().invoke(cli.main, ["add", "effect-ts"])

        assert result.exit_code == cli.EXIT_CONFIG_ERROR
        assert "Configuration error" in result.output

    def test_interrupted(self, in_project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        class Interrupting:
            def __init__(self, root, config) -> None:
                pass

            def add(self, source, force=False):
                raise KeyboardInterrupt

        monkeypatch.setattr(cli, "PackAcquirer", Interrupting)

        result = CliRunner().invoke(cli.main, ["add", "effect-ts"])

        assert result.exit_code == cli.EXIT_INTERRUPTED

    def test_log_file_gets_json(self, in_project: Path, fake_pm: FakeRunner, tmp_path: Path) -> None:
        log_file = tmp_path / "logs" / "dojo.jsonl"

        result = CliRunner().invoke(cli.main, ["add", "@dojocho/effect-ts", "--quiet", "--log-file", str(log_file)])

        assert result.exit_code == cli.EXIT_SUCCESS, result.output
        assert '"event": "pack.add.done"' in log_file.read_text()


class TestListAndRemove:
    def test_list_empty(self, in_project: Path) -> None:
        result = CliRunner().invoke(cli.main, ["list"])
        assert result.exit_code == 0
        assert "No packs installed." in result.output

    def test_list_then_remove(self, in_project: Path, fake_pm: FakeRunner) -> None:
        runner = CliRunner()
        runner.invoke(cli.main, ["add", "@dojocho/effect-ts", "--quiet"])

        listed = runner.invoke(cli.main, ["list"])
        assert "* effect-ts" in listed.output

        removed = runner.invoke(cli.main, ["remove", "effect-ts"])
        assert removed.exit_code == 0
        assert not (in_project / ".dojos" / "effect-ts").exists()
        assert not (in_project / ".claude" / "commands" / "kata.md").is_symlink()

    def test_remove_unknown(self, in_project: Path) -> None:
        result = CliRunner().invoke(cli.main, ["remove", "nope"])
        assert result.exit_code == cli.EXIT_FAILED
        assert len(_error_lines(result.output)) == 1


def test_version() -> None:
    result = CliRunner().invoke(cli.main, ["--version"])
    assert __version__ in result.output
