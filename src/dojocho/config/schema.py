"""
Pydantic models for dojocho configuration.

Defines the project configuration (``dojo.yaml``) using Pydantic v2 for
validation, defaults, and serialization.
"""

from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field, field_validator

DEFAULT_REGISTRIES: dict[str, str] = {
    "dojocho": "https://dojocho.ai/r/{name}.json",
}


class LoggingConfig(BaseModel):
    """Logging system configuration."""

    level: Literal["debug", "info", "human", "warn", "error"] = "human"
    file: Path | None = None
    verbose: int = 0

    model_config = {"extra": "forbid"}


class HttpConfig(BaseModel):
    """HTTP client settings for registry lookups and URL downloads."""

    timeout: float = Field(default=30.0, gt=0, description="Per-request timeout in seconds")
    follow_redirects: bool = True

    model_config = {"extra": "forbid"}


class AppConfig(BaseModel):
    """Complete project configuration.

    Registries are tried in declaration order. The built-in ``dojocho``
    registry always comes first unless the YAML file redefines it.
    """

    registries: dict[str, str] = Field(default_factory=dict)
    katas_path: str = "katas"
    packs_dir: str = ".dojos"
    http: HttpConfig = Field(default_factory=HttpConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"extra": "forbid"}

    @field_validator("registries", mode="after")
    @classmethod
    def merge_default_registries(cls, v: dict[str, str]) -> dict[str, str]:
        """Put the built-in registries first and check every URL template."""
        merged = {**DEFAULT_REGISTRIES, **v}
        for name, template in merged.items():
            if "{name}" not in template:
                raise ValueError(
                    f"Registry '{name}' URL template must contain '{{name}}': {template}"
                )
        return merged

    @field_validator("packs_dir", "katas_path")
    @classmethod
    def validate_relative(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("path must not be empty")
        return v

    def packs_root(self, project_root: Path) -> Path:
        """Directory that holds one sub-directory per installed pack."""
        return project_root / self.packs_dir

    def katas_root(self, project_root: Path) -> Path:
        """The user's exercise workspace."""
        return project_root / self.katas_path
