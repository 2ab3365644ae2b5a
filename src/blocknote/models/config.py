"""Configuration models for blocknote."""

from pydantic import BaseModel, Field, HttpUrl, field_validator
from pathlib import Path
from typing import Optional
import yaml
import os
import stat


class RemoteConfig(BaseModel):
    """Configuration for the remote block table (PostgREST-style API)."""

    url: HttpUrl = Field(
        ...,
        description="Base URL of the remote project (e.g. https://xyz.supabase.co)"
    )

    api_key: str = Field(
        ...,
        description="API key sent as apikey header and bearer token"
    )

    table: str = Field(
        default="blocks",
        description="Table holding block records"
    )

    timeout: float = Field(
        default=10.0,
        gt=0,
        le=120,
        description="Per-request timeout in seconds"
    )

    model_config = {"frozen": True}


class CacheConfig(BaseModel):
    """Configuration for the local durable cache."""

    directory: str = Field(
        default="~/.cache/blocknote/data",
        description="Directory holding the cached working set"
    )

    @field_validator("directory")
    @classmethod
    def expand_directory(cls, v: str) -> str:
        """Expand ~ so callers always see an absolute-looking path."""
        return str(Path(v).expanduser())

    model_config = {"frozen": True}


class SyncConfig(BaseModel):
    """Configuration for the synchronization engine."""

    debounce_ms: int = Field(
        default=500,
        ge=0,
        le=60000,
        description="Delay after the last mutation before a sync runs"
    )

    model_config = {"frozen": True}


class Config(BaseModel):
    """Root configuration for blocknote."""

    remote: Optional[RemoteConfig] = Field(
        default=None,
        description="Remote store settings (omit for local-only mode)"
    )
    cache: CacheConfig = Field(default_factory=CacheConfig, description="Local cache settings")
    sync: SyncConfig = Field(default_factory=SyncConfig, description="Sync engine settings")

    @classmethod
    def load(cls, path: Path) -> "Config":
        """
        Load configuration from YAML file.

        A missing file yields the local-only defaults. When the file holds
        remote credentials it must not be group/world accessible.

        Args:
            path: Path to config.yaml file

        Returns:
            Validated Config instance

        Raises:
            PermissionError: If a file with credentials has open permissions
            ValueError: If YAML is invalid or validation fails
        """
        if not path.exists():
            return cls()

        with open(path) as f:
            try:
                data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ValueError(f"Invalid YAML in {path}: {e}") from e

        if not isinstance(data, dict):
            raise ValueError(f"Configuration root must be a mapping: {path}")

        # Credentials require a private file (600)
        if data.get("remote"):
            mode = os.stat(path).st_mode
            if mode & (stat.S_IRWXG | stat.S_IRWXO):
                raise PermissionError(
                    f"Config file has overly permissive permissions: {oct(mode)}\n"
                    f"Run: chmod 600 {path}"
                )

        return cls(**data)

    model_config = {"frozen": True}
