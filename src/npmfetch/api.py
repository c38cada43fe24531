"""Public entry points: resolve and materialize a package by name."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Union

from .archive.unpacker import PackageUnpacker
from .common.http_client import HttpTransport
from .config import FetchConfig
from .node import PackageNode
from .registry.client import RegistryClient
from .versioning.parser import parse_query
from .walker import DependencyWalker


def build_walker(config: Optional[FetchConfig] = None) -> DependencyWalker:
    """Wire a walker whose client and unpacker share one HTTP transport."""
    config = config or FetchConfig()
    transport = HttpTransport(config)
    return DependencyWalker(
        RegistryClient(config, transport),
        PackageUnpacker(config, transport),
    )


def fetch_package(
    name: str,
    destination: Union[str, Path],
    constraint: Optional[str] = None,
    include_dependencies: bool = True,
    config: Optional[FetchConfig] = None,
) -> PackageNode:
    """Resolve ``name`` and materialize it under ``destination``.

    Args:
        name: Package name, optionally scoped (``@scope/pkg``).
        destination: Root directory; each package lands in ``<destination>/<name>``.
        constraint: Version range, exact version or dist-tag. None means latest.
        include_dependencies: Also materialize the transitive dependency closure.
        config: Registry/proxy settings; defaults to the public npm registry.

    Returns:
        PackageNode: The root of the resolved tree.
    """
    walker = build_walker(config)
    try:
        return walker.walk(name, constraint, Path(destination), recursive=include_dependencies)
    finally:
        walker.client.transport.close()


def fetch_query(
    query: str,
    destination: Union[str, Path],
    include_dependencies: bool = True,
    config: Optional[FetchConfig] = None,
) -> PackageNode:
    """Like fetch_package, taking a ``name[:constraint]`` request string."""
    name, constraint = parse_query(query)
    return fetch_package(name, destination, constraint, include_dependencies, config)
