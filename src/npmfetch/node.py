"""Package nodes built while walking a dependency tree."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional, Tuple


class NodeState(Enum):
    """Lifecycle of a node; states only move forward."""
    PENDING = 0
    METADATA_FETCHED = 1
    VERSION_RESOLVED = 2
    MATERIALIZED = 3
    DEPENDENCIES_EXPANDED = 4


@dataclass
class PackageNode:
    """One resolved package instance in the dependency tree."""

    name: str
    constraint: Optional[str] = None
    resolved_version: Optional[str] = None
    download_url: Optional[str] = None
    declared_dependencies: Dict[str, str] = field(default_factory=dict)
    dependencies: List["PackageNode"] = field(default_factory=list)
    state: NodeState = NodeState.PENDING
    skipped_versions: Tuple[str, ...] = ()
    revisit: bool = False
    materialized_path: Optional[Path] = None
    downloaded: bool = False

    @property
    def key(self) -> Tuple[str, Optional[str]]:
        return (self.name, self.resolved_version)

    @property
    def is_resolved(self) -> bool:
        return self.resolved_version is not None and self.download_url is not None

    def advance(self, state: NodeState) -> None:
        """Move to ``state``; moving backwards raises RuntimeError."""
        if state.value < self.state.value:
            raise RuntimeError(
                f"{self.name}: cannot move from {self.state.name} back to {state.name}"
            )
        self.state = state

    def set_resolution(self, version: str, download_url: str) -> None:
        """Record the resolved version and tarball URL; allowed exactly once."""
        if self.resolved_version is not None or self.download_url is not None:
            raise RuntimeError(f"{self.name} is already resolved to {self.resolved_version}")
        self.resolved_version = version
        self.download_url = download_url
        self.advance(NodeState.VERSION_RESOLVED)

    def iter_nodes(self) -> Iterator["PackageNode"]:
        """Depth-first pre-order walk over this node and its dependencies."""
        yield self
        for child in self.dependencies:
            yield from child.iter_nodes()

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "name": self.name,
            "constraint": self.constraint,
            "version": self.resolved_version,
            "tarball": self.download_url,
            "path": str(self.materialized_path) if self.materialized_path else None,
            "downloaded": self.downloaded,
            "dependencies": [child.to_dict() for child in self.dependencies],
        }
        if self.revisit:
            data["revisit"] = True
        if self.skipped_versions:
            data["skipped_versions"] = list(self.skipped_versions)
        return data

    def __str__(self) -> str:
        return f"{self.name}@{self.resolved_version or self.constraint or 'latest'}"
