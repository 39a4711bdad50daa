"""
Configuration for backend selection.

Priority (highest first): keyword overrides > YAML file > environment > defaults.
"""

import os
from dataclasses import asdict, dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .object_store import DEFAULT_CONTENT_TYPE
from .transfer import DEFAULT_POLL_INTERVAL

ENV_BUCKET = "REPO_STORAGE_S3_BUCKET"
ENV_REGION = "REPO_STORAGE_S3_REGION"
ENV_MOUNT = "REPO_STORAGE_S3_MOUNT"
ENV_ENDPOINT = "REPO_STORAGE_S3_ENDPOINT"

BACKEND_LOCAL = "local"
BACKEND_MOUNTED = "mounted"
BACKEND_CACHED_REMOTE = "cached-remote"


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None or not str(value).strip():
        return None
    return str(value)


@dataclass
class StorageConfig:
    """Settings that decide which storage backend is built."""

    # Object store
    bucket: Optional[str] = None
    region: Optional[str] = None
    mount_path: Optional[str] = None  # Bucket mounted into the filesystem
    endpoint_url: Optional[str] = None  # S3-compatible services

    # Local root (cache directory for the remote backend)
    root: str = field(default_factory=os.getcwd)

    # Transfers
    poll_interval: float = DEFAULT_POLL_INTERVAL
    transfer_timeout: Optional[float] = None  # None = wait indefinitely
    content_type: str = DEFAULT_CONTENT_TYPE

    def __post_init__(self):
        """Normalize blanks and resolve paths."""
        self.bucket = _blank_to_none(self.bucket)
        self.region = _blank_to_none(self.region)
        self.mount_path = _blank_to_none(self.mount_path)
        self.endpoint_url = _blank_to_none(self.endpoint_url)

        self.root = str(Path(self.root).expanduser().resolve())
        if self.mount_path:
            self.mount_path = str(Path(self.mount_path).expanduser().resolve())

        if self.poll_interval <= 0:
            raise ValueError(f"poll_interval must be positive, got: {self.poll_interval}")
        if self.transfer_timeout is not None and self.transfer_timeout <= 0:
            raise ValueError(f"transfer_timeout must be positive or None, got: {self.transfer_timeout}")

    @property
    def backend_kind(self) -> str:
        """
        Which backend this configuration selects.

        | bucket | region | mount | result        |
        |--------|--------|-------|---------------|
        | set    | set    | unset | cached-remote |
        | set    | set    | set   | mounted       |
        | other combinations    | local         |
        """
        if self.bucket and self.region:
            return BACKEND_MOUNTED if self.mount_path else BACKEND_CACHED_REMOTE
        return BACKEND_LOCAL

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return asdict(self)

    def save(self, path: Union[str, Path]):
        """
        Save configuration to YAML file.

        Args:
            path: Path to save to (should end in .yaml or .yml)
        """
        path = Path(path)
        if path.suffix not in ['.yaml', '.yml']:
            raise ValueError(f"Config file must be .yaml or .yml, got: {path.suffix}")

        with open(path, 'w') as f:
            yaml.safe_dump({"storage": self.to_dict()}, f, default_flow_style=False, sort_keys=False)

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None, **kwargs) -> 'StorageConfig':
        """
        Create from environment variables.

        Args:
            environ: Mapping to read instead of ``os.environ``
            **kwargs: Additional fields (not read from the environment)
        """
        env = os.environ if environ is None else environ
        return cls(
            bucket=env.get(ENV_BUCKET),
            region=env.get(ENV_REGION),
            mount_path=env.get(ENV_MOUNT),
            endpoint_url=env.get(ENV_ENDPOINT),
            **kwargs
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> 'StorageConfig':
        """
        Load configuration from YAML file.

        The file may hold the fields at top level or under a ``storage:`` key.

        Args:
            path: Path to YAML config file (.yaml or .yml)

        Returns:
            StorageConfig instance
        """
        return cls(**_read_yaml(path))

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any]) -> 'StorageConfig':
        """Create from dictionary."""
        return cls(**config_dict)


def _read_yaml(path: Union[str, Path]) -> Dict[str, Any]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Config file not found: {path}")

    if path.suffix not in ['.yaml', '.yml']:
        raise ValueError(f"Config file must be .yaml or .yml, got: {path.suffix}")

    with open(path) as f:
        config_dict = yaml.safe_load(f) or {}

    if not isinstance(config_dict, dict):
        raise ValueError(f"Config file must contain a mapping: {path}")

    if isinstance(config_dict.get("storage"), dict):
        config_dict = config_dict["storage"]

    known = {f.name for f in fields(StorageConfig)}
    unknown = set(config_dict) - known
    if unknown:
        raise ValueError(f"Unknown config keys in {path}: {', '.join(sorted(unknown))}")

    return config_dict


def load_config(
    config_file: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
    **kwargs
) -> StorageConfig:
    """
    Load configuration with priority: kwargs > config_file > environment > defaults.

    Args:
        config_file: Optional path to YAML config file
        environ: Mapping to read instead of ``os.environ``
        **kwargs: Override parameters

    Returns:
        StorageConfig instance

    Examples:
        # From the environment only
        config = load_config()

        # From file with overrides
        config = load_config("storage.yaml", root="/srv/cache")
    """
    env = os.environ if environ is None else environ
    values: Dict[str, Any] = {
        "bucket": env.get(ENV_BUCKET),
        "region": env.get(ENV_REGION),
        "mount_path": env.get(ENV_MOUNT),
        "endpoint_url": env.get(ENV_ENDPOINT),
    }
    # Unset variables must not shadow dataclass defaults
    values = {k: v for k, v in values.items() if _blank_to_none(v) is not None}

    if config_file:
        values.update(_read_yaml(config_file))

    values.update(kwargs)
    return StorageConfig(**values)
