"""NPM version resolver using semantic versioning."""

import logging
from typing import Iterable, List, Optional, Union

import semantic_version

from ..errors import InvalidConstraintError, NoMatchingVersionError
from ..registry.client import RegistryClient
from ..registry.models import Packument
from .models import Selection, is_unconstrained, parse_version
from .parser import normalize_spec

logger = logging.getLogger(__name__)

Spec = Union[semantic_version.NpmSpec, semantic_version.SimpleSpec]


def parse_constraint(package: str, constraint: str) -> Spec:
    """Parse an npm range into a matcher.

    NpmSpec understands ^, ~, hyphen ranges, x-ranges and ``||``; text it
    rejects is normalized and retried as a SimpleSpec.

    Raises:
        InvalidConstraintError: If the constraint is unconstrained-any or unparseable.
    """
    if is_unconstrained(constraint):
        raise InvalidConstraintError(package, constraint)
    try:
        return semantic_version.NpmSpec(constraint.strip())
    except ValueError:
        pass
    try:
        return semantic_version.SimpleSpec(normalize_spec(constraint))
    except ValueError as e:
        raise InvalidConstraintError(package, constraint, f"invalid semver range: {e}") from e


class VersionResolver:
    """Pick concrete versions for one package at a time.

    Each call is independent: nothing resolved for another package, or for
    the same package elsewhere in the tree, is consulted.
    """

    def __init__(self, client: RegistryClient) -> None:
        self.client = client

    def resolve_latest(self, name: str) -> str:
        """Return the version the ``latest`` dist-tag points at."""
        return self.latest_from(self.client.fetch_full_metadata(name))

    def resolve_constraint(self, name: str, constraint: str) -> semantic_version.Version:
        """Return the highest published version of ``name`` satisfying ``constraint``.

        The constraint is validated before the registry is queried.

        Raises:
            InvalidConstraintError: For unconstrained-any or unparseable constraints.
            NoMatchingVersionError: If no published version satisfies the constraint.
            RegistryError: If the metadata query fails.
        """
        spec = parse_constraint(name, constraint)
        versions = self.client.fetch_version_metadata(name)
        return self._select(name, constraint, spec, versions.keys()).version

    def latest_from(self, packument: Packument) -> str:
        """Read ``dist-tags.latest`` from an already-fetched document."""
        latest = packument.latest
        if not latest:
            raise NoMatchingVersionError(packument.name, "latest", len(packument.versions))
        return latest

    def select_from(self, packument: Packument, constraint: str) -> Selection:
        """Match ``constraint`` against an already-fetched document.

        A constraint naming a dist-tag (``next``, ``beta``...) resolves to
        the tagged version.
        """
        if is_unconstrained(constraint):
            raise InvalidConstraintError(packument.name, constraint)
        tagged = packument.dist_tags.get(constraint.strip())
        if tagged is not None:
            version = parse_version(tagged)
            if version is not None:
                return Selection(version=version, matched=1, candidates=len(packument.versions))
        spec = parse_constraint(packument.name, constraint)
        return self._select(packument.name, constraint, spec, packument.versions.keys())

    def select(self, name: str, constraint: str, candidates: Iterable[str]) -> Selection:
        """Pure matching step: highest of ``candidates`` satisfying ``constraint``."""
        return self._select(name, constraint, parse_constraint(name, constraint), candidates)

    def _select(
        self, name: str, constraint: str, spec: Spec, candidates: Iterable[str]
    ) -> Selection:
        raw_candidates = list(candidates)
        skipped: List[str] = []
        best: Optional[semantic_version.Version] = None
        matched = 0
        for raw in raw_candidates:
            version = parse_version(raw)
            if version is None:
                skipped.append(raw)
                continue
            if spec.match(version):
                matched += 1
                if best is None or version > best:
                    best = version

        if skipped:
            logger.warning(
                "Skipped %d unparseable version(s) of %s while matching '%s': %s",
                len(skipped), name, constraint, ", ".join(skipped),
            )
        if best is None:
            raise NoMatchingVersionError(name, constraint, len(raw_candidates))

        logger.debug(
            "Resolved %s@%s to %s (%d of %d versions matched)",
            name, constraint, best, matched, len(raw_candidates),
        )
        return Selection(
            version=best,
            matched=matched,
            candidates=len(raw_candidates),
            skipped=tuple(skipped),
        )
