"""
Pack acquisition pipeline -- source classification, fetch, safe
extraction, manifest validation, workspace linking, install and wiring.
"""

from .errors import (
    AlreadyExistsError,
    CommandError,
    DojoError,
    FetchError,
    InvalidRegistryItemError,
    ManifestError,
    PackNotFoundError,
    SourceNotFoundError,
    UnsafeArchiveError,
    WiringError,
)
from .extract import safe_extract
from .fetchers import FetchedPack, PackFetcher, staging_directory
from .installer import PackInstaller
from .linker import link_workspace_dependencies
from .manifest import PackManifest, RegistryItem, validate_manifest, validate_registry_item
from .pipeline import AddResult, PackAcquirer
from .runner import CommandResult, CommandRunner, SubprocessRunner
from .sources import SourceKind, classify_source, parse_source
from .wiring import IntegrationWirer, WiringReport

__all__ = [
    "AddResult",
    "AlreadyExistsError",
    "CommandError",
    "CommandResult",
    "CommandRunner",
    "DojoError",
    "FetchError",
    "FetchedPack",
    "IntegrationWirer",
    "InvalidRegistryItemError",
    "ManifestError",
    "PackAcquirer",
    "PackFetcher",
    "PackInstaller",
    "PackManifest",
    "PackNotFoundError",
    "RegistryItem",
    "SourceKind",
    "SourceNotFoundError",
    "SubprocessRunner",
    "UnsafeArchiveError",
    "WiringError",
    "WiringReport",
    "classify_source",
    "link_workspace_dependencies",
    "parse_source",
    "safe_extract",
    "staging_directory",
    "validate_manifest",
    "validate_registry_item",
]
