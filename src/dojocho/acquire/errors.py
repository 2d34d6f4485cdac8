"""
Errors raised while acquiring a pack.

Integrity errors (unsafe archive, bad manifest, bad registry item) and
not-found errors always reach the CLI. Availability errors are only
swallowed inside the registry fallback loop.
"""


class DojoError(Exception):
    """Base error for every failure the CLI reports as a single line."""

    pass


class SourceNotFoundError(DojoError):
    """A local source path does not exist."""

    pass


class FetchError(DojoError):
    """A pack could not be downloaded, packed or unpacked."""

    pass


class CommandError(FetchError):
    """An external command exited with a non-zero status."""

    def __init__(self, args: list[str], exit_code: int, stderr: str = "") -> None:
        self.command = list(args)
        self.exit_code = exit_code
        self.stderr = stderr
        detail = f": {stderr.strip()[:200]}" if stderr.strip() else ""
        super().__init__(f"Command '{' '.join(args)}' failed with exit code {exit_code}{detail}")


class UnsafeArchiveError(DojoError):
    """An archive holds entries that would escape the extraction directory."""

    def __init__(self, archive: str, entries: list[str]) -> None:
        self.archive = archive
        self.entries = list(entries)
        shown = ", ".join(entries[:3])
        more = f" (+{len(entries) - 3} more)" if len(entries) > 3 else ""
        super().__init__(
            f"Refusing to extract {archive}: unsafe paths (absolute or ../): {shown}{more}"
        )


class ManifestError(DojoError):
    """The fetched directory is not a valid pack."""

    def __init__(self, path: str, errors: list[str]) -> None:
        self.path = path
        self.errors = list(errors)
        super().__init__(f"Invalid pack.json at {path}: {'; '.join(errors)}")


class InvalidRegistryItemError(DojoError):
    """A registry answered with a body that does not match the item schema."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Invalid registry item from {url}: {reason}")


class PackNotFoundError(DojoError):
    """No configured registry knows the requested pack."""

    def __init__(self, name: str, suggestions: list[str]) -> None:
        self.name = name
        self.suggestions = list(suggestions)
        super().__init__(f'"{name}" not found in any registry (try: {", ".join(suggestions)})')


class AlreadyExistsError(DojoError):
    """The install target exists and ``force`` was not given."""

    def __init__(self, name: str, location: str) -> None:
        self.name = name
        self.location = location
        super().__init__(
            f'Pack "{name}" already exists at {location} '
            f"(update with: dojo add <source> --force, or remove with: dojo remove {name})"
        )


class WiringError(DojoError):
    """The pack is installed but its tsconfig wiring could not be written."""

    pass
