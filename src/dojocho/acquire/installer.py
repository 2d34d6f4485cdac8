"""
Pack installer -- moves a validated staged pack to ``<packs root>/<name>``.

Order of operations:
1. Conflict check (refuse without ``force``).
2. Dependency install inside the staging directory.
3. With ``force``, remove the previous installation.
4. Move staging -> final location. Nothing else writes there before this.
5. Link local workspace packages (pack and project root).
6. Mark the pack as the active selection.

Failures up to step 4 leave the final location untouched. Steps 5 and 6
run on an installed pack, so link failures are reported as warnings.
"""

import shutil
import tempfile
from pathlib import Path

import structlog

from ..config.schema import AppConfig
from ..logging.human import HumanLog
from ..project.packs import pack_dir, remove_pack
from ..project.state import write_active_selection
from .errors import AlreadyExistsError
from .runner import CommandRunner, package_manager_for, run_checked

logger = structlog.get_logger()


def move_dir(src: Path, dest: Path) -> None:
    """Move ``src`` to ``dest`` (which must not exist).

    Uses a rename. Across filesystems the tree is first copied next to
    ``dest`` and then renamed into place, so ``dest`` only ever appears
    complete.
    """
    try:
        src.rename(dest)
        return
    except OSError as e:
        logger.debug("install.rename_failed", src=str(src), dest=str(dest), error=str(e))

    partial = Path(tempfile.mkdtemp(prefix=f".{dest.name}.partial-", dir=dest.parent))
    try:
        shutil.copytree(src, partial, symlinks=True, dirs_exist_ok=True)
        partial.rename(dest)
    except BaseException:
        shutil.rmtree(partial, ignore_errors=True)
        raise
    shutil.rmtree(src, ignore_errors=True)


class PackInstaller:
    """Installs staged packs into the project.

    Args:
        project_root: Project root directory.
        config: Project configuration (packs directory).
        runner: Runs package manager install/link commands.
        hlog: Progress reporter.
    """

    def __init__(
        self,
        project_root: Path,
        config: AppConfig,
        runner: CommandRunner,
        hlog: HumanLog | None = None,
    ) -> None:
        self.root = project_root
        self.config = config
        self.runner = runner
        self.hlog = hlog or HumanLog(logger)
        self.log = logger.bind(component="pack_installer")

    def target_for(self, name: str) -> Path:
        return pack_dir(self.root, self.config, name)

    def check_conflict(self, name: str, force: bool) -> bool:
        """Return True if an installation exists and will be replaced.

        Raises:
            AlreadyExistsError: If it exists and ``force`` is False.
        """
        target = self.target_for(name)
        if not target.exists():
            return False
        if not force:
            raise AlreadyExistsError(name, f"{self.config.packs_dir}/{name}")
        return True

    def install_dependencies(self, staged_root: Path, name: str) -> None:
        """Run the project's package manager install inside the staged pack."""
        if not (staged_root / "package.json").is_file():
            return
        self.hlog.deps_install(name)
        pm = package_manager_for(self.root)
        run_checked(self.runner, pm.install(), staged_root)

    def link_local_packages(self, target: Path, linked: list[Path]) -> list[Path]:
        """Link local packages into the pack and the project root.

        Returns:
            Packages that failed to link in at least one location.
        """
        if not linked:
            return []
        pm = package_manager_for(self.root)
        failed: list[Path] = []
        for package_path in linked:
            for cwd in (target, self.root):
                result = self.runner.run(pm.link(package_path), cwd)
                if not result.ok:
                    self.log.warning(
                        "install.link_failed",
                        package=str(package_path),
                        cwd=str(cwd),
                        exit_code=result.exit_code,
                        stderr=result.stderr[:200],
                    )
                    if package_path not in failed:
                        failed.append(package_path)
        self.hlog.linked(len(linked) - len(failed))
        return failed

    def install(
        self,
        staged_root: Path,
        name: str,
        force: bool = False,
        linked: list[Path] | None = None,
    ) -> Path:
        """Install a staged pack under ``name`` and make it active.

        Args:
            staged_root: Directory holding the validated pack (with pack.json).
            name: Install name (manifest name without namespace).
            force: Replace an existing installation.
            linked: Local package directories to link after the move.

        Returns:
            The final pack directory.

        Raises:
            AlreadyExistsError: Target exists and ``force`` is False.
            CommandError: The dependency install failed.
        """
        replacing = self.check_conflict(name, force)
        self.install_dependencies(staged_root, name)

        target = self.target_for(name)
        if replacing:
            self.hlog.replacing(name)
            remove_pack(self.root, self.config, name)

        target.parent.mkdir(parents=True, exist_ok=True)
        move_dir(staged_root, target)
        self.log.info("pack.install.complete", name=name, path=str(target))

        self.link_local_packages(target, linked or [])
        write_active_selection(self.root, name)
        return target
