"""
Fetchers -- turn a classified source into a validated pack in staging.

Every variant ends the same way: an archive inside the staging
directory is extracted with ``safe_extract`` and the directory holding
``pack.json`` is validated. Registry fetch resolves a short name to one
of the other two remote variants.
"""

import contextlib
import shutil
import tempfile
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path

import httpx
import structlog

from ..config.schema import AppConfig
from ..logging.human import HumanLog
from .errors import FetchError, PackNotFoundError, SourceNotFoundError
from .extract import safe_extract
from .manifest import MANIFEST_FILENAME, PackManifest, load_manifest, validate_registry_item
from .runner import CommandRunner, package_manager_for, run_checked
from .sources import (
    ArchivedPackageSource,
    LocalSource,
    RegistrySource,
    RemoteUrlSource,
    Source,
)

logger = structlog.get_logger()

STAGING_PREFIX = "dojocho-"
DOWNLOAD_NAME = "pack.tgz"


@dataclass(frozen=True)
class FetchedPack:
    """A validated pack sitting in a staging directory."""

    root: Path
    manifest: PackManifest
    origin: Path | None = None


@contextlib.contextmanager
def staging_directory() -> Iterator[Path]:
    """Temporary directory owned by one ``add`` call, removed on every exit path.

    The pack inside may already have been moved away on success, so the
    cleanup must not care what is left.
    """
    path = Path(tempfile.mkdtemp(prefix=STAGING_PREFIX))
    logger.info("staging.created", path=str(path))
    try:
        yield path
    finally:
        shutil.rmtree(path, ignore_errors=True)
        logger.info("staging.removed", path=str(path))


def locate_pack_root(extract_dir: Path, entries: list[str]) -> Path:
    """Find the directory that holds ``pack.json`` after extraction.

    Package-manager tarballs put everything under one top-level folder
    (``package/``); hand-made tarballs may not. Falls back to
    ``extract_dir`` so that validation reports the missing descriptor.
    """
    if (extract_dir / MANIFEST_FILENAME).is_file():
        return extract_dir
    for entry in entries:
        normalized = entry.replace("\\", "/")
        while normalized.startswith("./"):
            normalized = normalized[2:]
        top = normalized.split("/", 1)[0]
        if not top:
            continue
        candidate = extract_dir / top
        if candidate.is_dir() and (candidate / MANIFEST_FILENAME).is_file():
            return candidate
        # Only the first top-level entry is considered
        break
    return extract_dir


def _single_archive(directory: Path, what: str) -> Path:
    archives = sorted(directory.glob("*.tgz"))
    if not archives:
        raise FetchError(f"Failed to produce an archive for {what}")
    return archives[0]


class PackFetcher:
    """Fetches packs into a staging directory.

    Args:
        config: Project configuration (registries).
        runner: Runs external package manager commands.
        http: HTTP client for registry lookups and downloads.
        hlog: Progress reporter.
    """

    def __init__(
        self,
        config: AppConfig,
        runner: CommandRunner,
        http: httpx.Client,
        hlog: HumanLog | None = None,
    ) -> None:
        self.config = config
        self.runner = runner
        self.http = http
        self.hlog = hlog or HumanLog(logger)
        self.log = logger.bind(component="pack_fetcher")

    def fetch(self, source: Source, staging: Path) -> FetchedPack:
        """Dispatch on the source variant."""
        match source:
            case LocalSource(path=path):
                return self.fetch_local(Path(path), staging)
            case ArchivedPackageSource(package=package):
                return self.fetch_archived_package(package, staging)
            case RemoteUrlSource(url=url):
                return self.fetch_remote_url(url, staging)
            case RegistrySource(name=name):
                return self.fetch_registry(name, staging)
        raise TypeError(f"Unsupported source: {source!r}")

    # ── Shared tail ──────────────────────────────────────────────────────

    def _extract_and_validate(self, archive: Path, staging: Path, label: str) -> FetchedPack:
        extract_dir = staging / "extract"
        extract_dir.mkdir()
        entries = safe_extract(archive, extract_dir)
        self.hlog.extracted(len(entries))

        pack_root = locate_pack_root(extract_dir, entries)
        manifest = load_manifest(pack_root, label)
        self.log.info("pack.validated", name=manifest.name, version=manifest.version, root=str(pack_root))
        return FetchedPack(root=pack_root, manifest=manifest)

    # ── Variants ─────────────────────────────────────────────────────────

    def fetch_local(self, path: Path, staging: Path) -> FetchedPack:
        """Pack a local directory with its own package manager, then extract it.

        Raises:
            SourceNotFoundError: If ``path`` does not exist.
        """
        source_path = path.expanduser().resolve()
        if not source_path.exists():
            raise SourceNotFoundError(f"Source not found: {source_path}")

        pm = package_manager_for(source_path)
        self.hlog.pack_local(str(path), pm.name)
        archive_dir = staging / "archive"
        archive_dir.mkdir()
        run_checked(self.runner, pm.pack(archive_dir), source_path)

        archive = _single_archive(archive_dir, str(source_path))
        fetched = self._extract_and_validate(archive, staging, str(path))
        return FetchedPack(root=fetched.root, manifest=fetched.manifest, origin=source_path)

    def fetch_archived_package(self, package: str, staging: Path) -> FetchedPack:
        """Download a package from the public npm registry as a tarball.

        Raises:
            FetchError: If ``npm pack`` fails or produces no archive.
        """
        self.hlog.fetch(package)
        archive_dir = staging / "archive"
        archive_dir.mkdir()
        args = ["npm", "pack", package, "--pack-destination", str(archive_dir)]
        run_checked(self.runner, args, staging)

        archive = _single_archive(archive_dir, package)
        return self._extract_and_validate(archive, staging, package)

    def fetch_remote_url(self, url: str, staging: Path) -> FetchedPack:
        """Stream a tarball over HTTP into staging, then extract it.

        Raises:
            FetchError: On a non-2xx response or a transport failure.
        """
        self.hlog.fetch(url)
        archive = staging / DOWNLOAD_NAME
        try:
            with self.http.stream("GET", url) as response:
                response.raise_for_status()
                with open(archive, "wb") as f:
                    for chunk in response.iter_bytes():
                        f.write(chunk)
        except httpx.HTTPStatusError as e:
            raise FetchError(f"Failed to download {url}: HTTP {e.response.status_code}") from e
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to download {url}: {e}") from e

        self.log.debug("pack.downloaded", url=url, bytes=archive.stat().st_size)
        return self._extract_and_validate(archive, staging, url)

    def fetch_registry(self, name: str, staging: Path) -> FetchedPack:
        """Resolve a short name against the configured registries, in order.

        Unreachable registries and non-2xx answers are skipped. A reachable
        registry answering with a malformed item stops the lookup with
        ``InvalidRegistryItemError``. The first valid item decides the
        fetch; later registries are never consulted.

        Raises:
            InvalidRegistryItemError: A registry returned a malformed item.
            PackNotFoundError: No registry knows ``name``.
        """
        for registry_name, template in self.config.registries.items():
            url = template.replace("{name}", name)
            self.hlog.registry_lookup(name, registry_name)
            try:
                response = self.http.get(url)
            except httpx.HTTPError as e:
                self.log.warning("registry.unreachable", registry=registry_name, url=url, error=str(e))
                continue
            if not response.is_success:
                self.log.warning(
                    "registry.unreachable",
                    registry=registry_name,
                    url=url,
                    status=response.status_code,
                )
                continue
            try:
                data = response.json()
            except ValueError:
                self.log.warning("registry.unreachable", registry=registry_name, url=url, error="body is not JSON")
                continue

            item = validate_registry_item(data, url)
            self.log.info(
                "registry.resolved",
                registry=registry_name,
                name=item.name,
                version=item.version,
                source_type=item.source.type,
            )
            if item.source.type == "npm":
                return self.fetch_archived_package(item.source.package, staging)
            return self.fetch_remote_url(item.source.url, staging)

        raise PackNotFoundError(
            name,
            [f"dojo add @dojocho/{name}", f"dojo add ./path/to/{name}"],
        )
