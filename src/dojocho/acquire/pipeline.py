"""
``dojo add`` -- classify, fetch, link, install, wire.

One call owns one staging directory for the fetch-through-install span;
it is removed on success and on failure. Wiring runs on the installed
pack, after staging is gone.
"""

import contextlib
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog

from .. import __version__
from ..config.schema import AppConfig
from ..logging.human import HumanLog
from .fetchers import PackFetcher, staging_directory
from .installer import PackInstaller
from .linker import link_workspace_dependencies
from .manifest import PackManifest
from .runner import CommandRunner, SubprocessRunner
from .sources import LocalSource, SourceKind, parse_source
from .wiring import IntegrationWirer, WiringReport

logger = structlog.get_logger()


@dataclass(frozen=True)
class AddResult:
    """Outcome of a successful ``add``."""

    name: str
    location: Path
    kind: SourceKind
    manifest: PackManifest
    linked: tuple[Path, ...]
    wiring: WiringReport


class PackAcquirer:
    """Adds packs to a project.

    Args:
        project_root: Project root directory.
        config: Validated project configuration.
        runner: Command runner for package manager calls. Defaults to
            ``SubprocessRunner``.
        http_client: HTTP client to use. When omitted a client is created
            per ``add`` call from ``config.http`` and closed afterwards.
    """

    def __init__(
        self,
        project_root: Path,
        config: AppConfig,
        runner: CommandRunner | None = None,
        http_client: httpx.Client | None = None,
    ) -> None:
        self.root = project_root.absolute()
        self.config = config
        self.runner = runner or SubprocessRunner()
        self._http = http_client
        self.log = logger.bind(component="pack_acquirer")
        self.hlog = HumanLog(self.log)

    @contextlib.contextmanager
    def _http_client(self) -> Iterator[httpx.Client]:
        if self._http is not None:
            yield self._http
            return
        with httpx.Client(
            timeout=self.config.http.timeout,
            follow_redirects=self.config.http.follow_redirects,
            headers={"User-Agent": f"dojocho/{__version__}"},
        ) as client:
            yield client

    def add(self, source: str, force: bool = False) -> AddResult:
        """Fetch ``source`` and install it as the active pack.

        Raises:
            DojoError: Any classified failure (see ``acquire.errors``).
            OSError: Unexpected filesystem failures.
        """
        parsed = parse_source(source)
        self.hlog.add_start(source, parsed.kind.value)
        installer = PackInstaller(self.root, self.config, self.runner, self.hlog)

        with self._http_client() as http, staging_directory() as staging:
            fetcher = PackFetcher(self.config, self.runner, http, self.hlog)
            fetched = fetcher.fetch(parsed, staging)
            name = fetched.manifest.install_name

            linked: list[Path] = []
            descriptor = fetched.root / "package.json"
            if isinstance(parsed, LocalSource) and fetched.origin and descriptor.is_file():
                linked = link_workspace_dependencies(fetched.origin, descriptor)

            location = installer.install(fetched.root, name, force=force, linked=linked)

        wiring = IntegrationWirer(self.root, self.config, self.hlog).wire(location, name)
        self.hlog.add_complete(name)
        self.log.info(
            "pack.add.done",
            name=name,
            version=fetched.manifest.version,
            kind=parsed.kind.value,
            agents=sorted(wiring.agents_wired),
        )
        return AddResult(
            name=name,
            location=location,
            kind=parsed.kind,
            manifest=fetched.manifest,
            linked=tuple(linked),
            wiring=wiring,
        )
