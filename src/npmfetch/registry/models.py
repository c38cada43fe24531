"""Typed views of npm registry documents.

The registry answers with a "packument": the full metadata document for a
package, holding every published version's manifest and the dist-tags. Only
the manifest of a selected version is decoded into a typed Manifest.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Mapping, Optional

from ..errors import RegistryError


@dataclass(frozen=True)
class Manifest:
    """One published version of a package."""

    name: str
    version: str
    tarball: Optional[str]
    dependencies: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, version: str, data: Any) -> "Manifest":
        if not isinstance(data, Mapping):
            raise RegistryError(name, f"manifest for version {version} is not an object")
        dist = data.get("dist")
        tarball = dist.get("tarball") if isinstance(dist, Mapping) else None
        deps = data.get("dependencies") or {}
        if not isinstance(deps, Mapping):
            raise RegistryError(name, f"'dependencies' of version {version} is not an object")
        return cls(
            name=str(data.get("name") or name),
            version=version,
            tarball=str(tarball) if tarball else None,
            dependencies={str(k): str(v) for k, v in deps.items()},
        )


@dataclass(frozen=True)
class Packument:
    """Full registry document: versions map plus dist-tags.

    ``versions`` keeps the raw manifests; a manifest is decoded only when
    ``manifest()`` asks for that version, so a malformed historical entry
    does not affect the resolution of any other version.
    """

    name: str
    versions: Dict[str, Any]
    dist_tags: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, name: str, data: Any) -> "Packument":
        """Decode a registry JSON body.

        Raises:
            RegistryError: If the body is not an object or has no ``versions`` object.
        """
        if not isinstance(data, Mapping):
            raise RegistryError(name, "registry response is not a JSON object")
        versions = data.get("versions")
        if not isinstance(versions, Mapping):
            raise RegistryError(name, "registry response has no 'versions' object")
        tags = data.get("dist-tags") or {}
        if not isinstance(tags, Mapping):
            tags = {}
        return cls(
            name=name,
            versions={str(ver): manifest for ver, manifest in versions.items()},
            dist_tags={str(k): str(v) for k, v in tags.items()},
        )

    @property
    def latest(self) -> Optional[str]:
        return self.dist_tags.get("latest")

    def manifest(self, version: str) -> Manifest:
        """Decode and return the manifest for ``version``.

        Raises:
            RegistryError: If the registry does not list that version or its
                manifest is malformed.
        """
        if version not in self.versions:
            raise RegistryError(
                self.name, f"version {version} is not listed in the registry metadata"
            )
        return Manifest.from_dict(self.name, version, self.versions[version])
