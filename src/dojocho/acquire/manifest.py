"""
Validation of ``pack.json`` descriptors and registry responses.

Both schemas are Pydantic models. ``validate_manifest`` collects every
problem into a single ``ManifestError``; ``validate_registry_item``
raises ``InvalidRegistryItemError``, which the registry fetch loop never
swallows.
"""

import json
from pathlib import Path
from typing import Annotated, Any, Literal

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import InvalidRegistryItemError, ManifestError

MANIFEST_FILENAME = "pack.json"


class PackManifest(BaseModel):
    """The pack descriptor. Unknown keys (katas, runner, ...) are kept."""

    name: str
    version: str = "0.0.0"
    description: str | None = None
    dependencies: dict[str, str] | None = None

    model_config = ConfigDict(extra="allow", frozen=True, strict=True)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be empty")
        # The last segment becomes a directory name under the packs root
        segment = v.rsplit("/", 1)[-1]
        if segment.strip() in ("", ".", "..") or "\\" in segment or "\x00" in segment:
            raise ValueError(f"{v!r} does not end in a usable pack name")
        return v

    @property
    def install_name(self) -> str:
        """Manifest name without its namespace (``@dojocho/effect-ts`` -> ``effect-ts``)."""
        return self.name.rsplit("/", 1)[-1]


class NpmSource(BaseModel):
    type: Literal["npm"]
    package: str

    model_config = ConfigDict(strict=True)


class TarballSource(BaseModel):
    type: Literal["tarball"]
    url: str

    model_config = ConfigDict(strict=True)


class RegistryItem(BaseModel):
    """One registry entry: what the pack is and where to fetch it from."""

    name: str
    version: str
    description: str
    source: Annotated[NpmSource | TarballSource, Field(discriminator="type")]

    model_config = ConfigDict(strict=True, frozen=True)


def _describe_errors(exc: ValidationError) -> list[str]:
    problems: list[str] = []
    for error in exc.errors():
        loc = ".".join(str(part) for part in error["loc"])
        if error["type"] == "missing":
            problems.append(f'Missing required field: "{loc}"')
        elif loc:
            problems.append(f'"{loc}": {error["msg"]}')
        else:
            problems.append(error["msg"])
    return problems


def validate_manifest(raw: str, source_path: str | Path) -> PackManifest:
    """Parse and validate a ``pack.json`` body.

    Args:
        raw: File contents.
        source_path: Where the contents came from, used in the error.

    Raises:
        ManifestError: On invalid JSON, a non-object root or schema problems.
    """
    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ManifestError(str(source_path), [f"Invalid JSON ({e.msg})"]) from e

    if not isinstance(data, dict):
        raise ManifestError(str(source_path), ["manifest must be a JSON object"])

    try:
        return PackManifest.model_validate(data)
    except ValidationError as e:
        raise ManifestError(str(source_path), _describe_errors(e)) from e


def load_manifest(pack_root: Path, source: str) -> PackManifest:
    """Validate the descriptor at the root of a staged pack.

    Raises:
        ManifestError: If the descriptor is missing or invalid.
    """
    manifest_path = pack_root / MANIFEST_FILENAME
    if not manifest_path.is_file():
        raise ManifestError(str(manifest_path), [f"{source} is not a pack: missing {MANIFEST_FILENAME}"])
    return validate_manifest(manifest_path.read_text(encoding="utf-8"), manifest_path)


def validate_registry_item(data: Any, url: str = "<registry>") -> RegistryItem:
    """Validate a registry response body.

    Raises:
        InvalidRegistryItemError: If the body does not match the schema.
    """
    if not isinstance(data, dict):
        raise InvalidRegistryItemError(url, "expected a JSON object")
    try:
        return RegistryItem.model_validate(data)
    except ValidationError as e:
        raise InvalidRegistryItemError(url, "; ".join(_describe_errors(e))) from e
