"""Error taxonomy for registry resolution and package materialization.

Every error raised by the engine derives from NpmFetchError so callers can
catch the whole family at once. Each class carries a short ``code`` and the
CLI exit code it maps to.
"""

from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from .constants import ExitCodes

# (package name, constraint) as written in a dependency map
DependencyEdge = Tuple[str, Optional[str]]


class NpmFetchError(Exception):
    """Base class for all npmfetch errors."""

    code: str = "UNKNOWN"
    exit_code: ExitCodes = ExitCodes.RESOLUTION_ERROR

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(message)
        self.cause = cause


class ConfigError(NpmFetchError):
    """Configuration file missing or holding invalid values."""

    code = "CONFIG_ERROR"
    exit_code = ExitCodes.USAGE_ERROR


class RegistryError(NpmFetchError):
    """Registry metadata could not be fetched or decoded (retry exhausted)."""

    code = "REGISTRY_ERROR"
    exit_code = ExitCodes.CONNECTION_ERROR

    def __init__(
        self,
        package: str,
        message: str,
        url: Optional[str] = None,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"{package}: {message}", cause)
        self.package = package
        self.url = url


class NoMatchingVersionError(NpmFetchError):
    """No published version satisfies the requested constraint."""

    code = "NO_MATCHING_VERSION"

    def __init__(self, package: str, constraint: Optional[str], candidates: int = 0) -> None:
        super().__init__(
            f"No version of {package} matches '{constraint}' "
            f"({candidates} published versions checked)"
        )
        self.package = package
        self.constraint = constraint
        self.candidates = candidates


class InvalidConstraintError(NpmFetchError):
    """Constraint is unconstrained-any or cannot be parsed."""

    code = "INVALID_CONSTRAINT"
    exit_code = ExitCodes.USAGE_ERROR

    def __init__(self, package: str, constraint: Optional[str], reason: Optional[str] = None) -> None:
        detail = reason or "unconstrained-any versions are not allowed, pin a range"
        super().__init__(f"Invalid constraint '{constraint}' for {package}: {detail}")
        self.package = package
        self.constraint = constraint


class DownloadError(NpmFetchError):
    """Tarball transfer failed."""

    code = "DOWNLOAD_ERROR"
    exit_code = ExitCodes.CONNECTION_ERROR

    def __init__(self, package: str, version: str, url: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Error downloading module {package}:{version} from {url}", cause)
        self.package = package
        self.version = version
        self.url = url


class ExtractError(NpmFetchError):
    """Tarball could not be decoded or unpacked."""

    code = "EXTRACT_ERROR"
    exit_code = ExitCodes.FILE_ERROR

    def __init__(self, package: str, version: str, cause: Optional[BaseException] = None) -> None:
        super().__init__(f"Error extracting module {package}:{version}", cause)
        self.package = package
        self.version = version


class UnpackLayoutError(NpmFetchError):
    """Extracted content has no single root or could not be moved into place."""

    code = "UNPACK_LAYOUT_ERROR"
    exit_code = ExitCodes.FILE_ERROR

    def __init__(
        self,
        package: str,
        version: str,
        detail: str,
        cause: Optional[BaseException] = None,
    ) -> None:
        super().__init__(f"Error unpacking module {package}:{version}: {detail}", cause)
        self.package = package
        self.version = version


class DependencyResolutionError(NpmFetchError):
    """A dependency somewhere below the requested package failed.

    ``chain`` lists the dependency edges from the outermost failing edge down
    to the edge that actually failed.
    """

    code = "DEPENDENCY_RESOLUTION_ERROR"

    def __init__(self, chain: Sequence[DependencyEdge], cause: BaseException) -> None:
        self.chain: List[DependencyEdge] = list(chain)
        path = " -> ".join(f"{name}:{constraint}" for name, constraint in self.chain)
        super().__init__(f"Error resolving dependency {path}: {cause}", cause)

    @property
    def package(self) -> str:
        return self.chain[-1][0]

    @property
    def constraint(self) -> Optional[str]:
        return self.chain[-1][1]

    @property
    def root_cause(self) -> BaseException:
        return self.cause  # type: ignore[return-value]

    def with_parent(self, edge: DependencyEdge) -> "DependencyResolutionError":
        """Return a copy of this error with ``edge`` prepended to the chain."""
        return DependencyResolutionError([edge] + self.chain, self.cause)  # type: ignore[arg-type]

    @property
    def exit_code(self) -> ExitCodes:  # type: ignore[override]
        inner = getattr(self.cause, "exit_code", None)
        return inner if isinstance(inner, ExitCodes) else ExitCodes.RESOLUTION_ERROR
