"""
Source classification for ``dojo add <source>``.

Every source string maps to exactly one kind; the check order matters
(``./x`` is local, ``https://a/b`` is a URL even though it contains
``/``, ``@scope/pkg`` and ``org/pkg`` are package-manager identifiers,
anything else is a short registry name).
"""

from dataclasses import dataclass
from enum import Enum


class SourceKind(str, Enum):
    LOCAL = "local"
    REMOTE_URL = "url"
    ARCHIVED_PACKAGE = "package"
    REGISTRY = "registry"


@dataclass(frozen=True)
class LocalSource:
    path: str
    kind: SourceKind = SourceKind.LOCAL


@dataclass(frozen=True)
class RemoteUrlSource:
    url: str
    kind: SourceKind = SourceKind.REMOTE_URL


@dataclass(frozen=True)
class ArchivedPackageSource:
    package: str
    kind: SourceKind = SourceKind.ARCHIVED_PACKAGE


@dataclass(frozen=True)
class RegistrySource:
    name: str
    kind: SourceKind = SourceKind.REGISTRY


Source = LocalSource | RemoteUrlSource | ArchivedPackageSource | RegistrySource


def classify_source(source: str) -> SourceKind:
    """Map a user-supplied source string to its kind. Total, no I/O."""
    if source.startswith((".", "/")):
        return SourceKind.LOCAL
    if source.startswith(("http://", "https://")):
        return SourceKind.REMOTE_URL
    if source.startswith("@") or "/" in source:
        return SourceKind.ARCHIVED_PACKAGE
    return SourceKind.REGISTRY


def parse_source(source: str) -> Source:
    """Classify ``source`` and wrap it in the matching tagged variant."""
    match classify_source(source):
        case SourceKind.LOCAL:
            return LocalSource(source)
        case SourceKind.REMOTE_URL:
            return RemoteUrlSource(source)
        case SourceKind.ARCHIVED_PACKAGE:
            return ArchivedPackageSource(source)
        case SourceKind.REGISTRY:
            return RegistrySource(source)
