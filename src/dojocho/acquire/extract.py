"""
Safe archive extraction.

The full member list is checked before anything is written: one unsafe
entry (absolute path, ``..`` segment, or a link whose target escapes)
rejects the whole archive. Extraction only starts after that check.
"""

import posixpath
import re
import tarfile
from pathlib import Path

import structlog

from .errors import FetchError, UnsafeArchiveError

logger = structlog.get_logger()

_DRIVE_RE = re.compile(r"^[A-Za-z]:")


def _normalize(name: str) -> str:
    return name.replace("\\", "/")


def is_unsafe_path(name: str) -> bool:
    """True if an entry path is absolute or contains a ``..`` segment."""
    normalized = _normalize(name)
    if normalized.startswith("/") or _DRIVE_RE.match(normalized):
        return True
    return ".." in normalized.split("/")


def _link_escapes(member: tarfile.TarInfo) -> bool:
    target = _normalize(member.linkname)
    if member.islnk():
        # Hard link targets are archive-relative paths
        return is_unsafe_path(target)
    if target.startswith("/") or _DRIVE_RE.match(target):
        return True
    joined = posixpath.normpath(posixpath.join(posixpath.dirname(_normalize(member.name)), target))
    return joined == ".." or joined.startswith("../")


def find_unsafe_entries(members: list[tarfile.TarInfo]) -> list[str]:
    """Return the names of every member that would escape the destination."""
    unsafe: list[str] = []
    for member in members:
        if is_unsafe_path(member.name):
            unsafe.append(member.name)
        elif (member.issym() or member.islnk()) and _link_escapes(member):
            unsafe.append(f"{member.name} -> {member.linkname}")
    return unsafe


def safe_extract(archive: Path, destination: Path) -> list[str]:
    """Extract a (possibly compressed) tar archive into ``destination``.

    Args:
        archive: Path to the ``.tgz``/``.tar`` file.
        destination: Existing, empty or freshly created directory.

    Returns:
        The names of the extracted entries, in archive order.

    Raises:
        UnsafeArchiveError: If any entry would land outside ``destination``.
        FetchError: If the archive cannot be read.
    """
    try:
        with tarfile.open(archive, "r:*") as tar:
            members = tar.getmembers()

            unsafe = find_unsafe_entries(members)
            if unsafe:
                logger.warning("archive.unsafe", archive=str(archive), entries=unsafe[:10])
                raise UnsafeArchiveError(archive.name, unsafe)

            if hasattr(tarfile, "data_filter"):
                tar.extractall(destination, members=members, filter="data")
            else:
                tar.extractall(destination, members=members)
    except (tarfile.TarError, OSError) as e:
        raise FetchError(f"Could not extract {archive.name}: {e}") from e

    names = [m.name for m in members]
    logger.debug("archive.extracted", archive=str(archive), entries=len(names))
    return names
