"""npmfetch - resolve npm packages and vendor them with their dependencies."""

from .api import build_walker, fetch_package, fetch_query
from .config import FetchConfig, ProxySettings, load_config
from .errors import (
    ConfigError,
    DependencyResolutionError,
    DownloadError,
    ExtractError,
    InvalidConstraintError,
    NoMatchingVersionError,
    NpmFetchError,
    RegistryError,
    UnpackLayoutError,
)
from .node import NodeState, PackageNode

__all__ = [
    "build_walker",
    "fetch_package",
    "fetch_query",
    "FetchConfig",
    "ProxySettings",
    "load_config",
    "ConfigError",
    "DependencyResolutionError",
    "DownloadError",
    "ExtractError",
    "InvalidConstraintError",
    "NoMatchingVersionError",
    "NpmFetchError",
    "RegistryError",
    "UnpackLayoutError",
    "NodeState",
    "PackageNode",
]
