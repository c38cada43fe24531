"""Dependency walker: resolve a package, materialize it, recurse into its dependencies.

The walk is depth-first and strictly sequential: every dependency, together
with its own transitive dependencies, is on disk before the next sibling is
looked at. All packages land side by side in one destination root.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional, Set, Tuple

from .archive.unpacker import PackageUnpacker
from .errors import DependencyResolutionError, InvalidConstraintError, NpmFetchError, RegistryError
from .node import NodeState, PackageNode
from .registry.client import RegistryClient
from .versioning.models import is_unconstrained
from .versioning.resolver import VersionResolver

logger = logging.getLogger(__name__)


class DependencyWalker:
    """Build the resolved tree for one request.

    A walker remembers every (name, version) pair it has expanded, so a
    dependency cycle or a repeated reference is materialized only once. The
    memory spans every walk made with the same instance.
    """

    def __init__(
        self,
        client: RegistryClient,
        unpacker: PackageUnpacker,
        resolver: Optional[VersionResolver] = None,
    ) -> None:
        self.client = client
        self.unpacker = unpacker
        self.resolver = resolver or VersionResolver(client)
        self.visited: Set[Tuple[str, Optional[str]]] = set()

    def resolve(self, name: str, constraint: Optional[str] = None) -> PackageNode:
        """Resolve ``name`` to a concrete version and tarball URL.

        Args:
            name: Package name, optionally scoped.
            constraint: npm range, exact version or dist-tag; None means latest.

        Returns:
            PackageNode: A node in the VERSION_RESOLVED state.

        Raises:
            InvalidConstraintError: For ``*`` and other unconstrained-any forms.
            NoMatchingVersionError: If nothing satisfies the constraint.
            RegistryError: If metadata cannot be fetched or lacks a tarball.
        """
        node = PackageNode(name=name, constraint=constraint)
        if is_unconstrained(constraint):
            raise InvalidConstraintError(name, constraint)

        packument = self.client.fetch_packument(name)
        node.advance(NodeState.METADATA_FETCHED)

        if constraint is None:
            version = self.resolver.latest_from(packument)
        else:
            selection = self.resolver.select_from(packument, constraint)
            version = str(selection.version)
            node.skipped_versions = selection.skipped

        manifest = packument.manifest(version)
        if not manifest.tarball:
            raise RegistryError(name, f"version {version} has no dist.tarball")

        node.set_resolution(version, manifest.tarball)
        node.declared_dependencies = dict(manifest.dependencies)
        logger.debug("Resolved %s:%s to %s", name, constraint or "latest", version)
        return node

    def materialize_with_dependencies(
        self, node: PackageNode, destination_root: Path, recursive: bool = True
    ) -> PackageNode:
        """Materialize ``node`` and, when ``recursive``, its whole dependency closure.

        A failing dependency aborts the remaining siblings and surfaces as a
        single DependencyResolutionError whose chain leads from this node's
        edge down to the one that failed.
        """
        if node.key in self.visited:
            node.revisit = True
            logger.debug("%s already handled in this walk; not expanding again", node)
            return node
        self.visited.add(node.key)

        self.unpacker.materialize(node, destination_root)
        if not recursive:
            return node

        for dep_name, dep_constraint in node.declared_dependencies.items():
            edge = (dep_name, dep_constraint)
            try:
                child = self.resolve(dep_name, dep_constraint)
                node.dependencies.append(child)
                self.materialize_with_dependencies(child, destination_root, recursive=True)
            except DependencyResolutionError as exc:
                raise exc.with_parent(edge) from exc.cause
            except NpmFetchError as exc:
                raise DependencyResolutionError([edge], exc) from exc

        node.advance(NodeState.DEPENDENCIES_EXPANDED)
        return node

    def walk(
        self,
        name: str,
        constraint: Optional[str],
        destination_root: Path,
        recursive: bool = True,
    ) -> PackageNode:
        """Resolve and materialize ``name`` (and its closure when ``recursive``)."""
        node = self.resolve(name, constraint)
        return self.materialize_with_dependencies(node, Path(destination_root), recursive)
