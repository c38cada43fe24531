"""NPM registry client: metadata queries for a single package name."""

from __future__ import annotations

import logging
import time
from typing import Any, Dict, Optional

import requests

from ..common.http_client import HttpTransport
from ..common.logging_utils import Timer, extra_context, safe_url
from ..config import FetchConfig
from ..errors import RegistryError
from .models import Packument

logger = logging.getLogger(__name__)


def encode_name(name: str) -> str:
    """Percent-encode the scope separator only.

    ``@scope/pkg`` becomes ``@scope%2Fpkg``; the ``@`` and every other
    character are passed through as-is.
    """
    return name.replace("/", "%2F")


class RegistryClient:
    """Stateless client bound to one FetchConfig."""

    def __init__(self, config: FetchConfig, transport: Optional[HttpTransport] = None) -> None:
        self.config = config
        self.transport = transport or HttpTransport(config)

    def metadata_url(self, name: str) -> str:
        """Build the metadata URL for ``name`` from the registry template."""
        encoded = encode_name(name)
        template = self.config.registry
        if "{name}" in template:
            return template.replace("{name}", encoded)
        if "%s" in template:
            return template.replace("%s", encoded)
        return template.rstrip("/") + "/" + encoded

    def _get_document(self, name: str, url: str) -> Packument:
        data = self.transport.get_json(url, context="registry")
        return Packument.from_dict(name, data)

    def fetch_packument(self, name: str) -> Packument:
        """Fetch and decode the full registry document for ``name``.

        A failed first attempt (transport, HTTP status or decoding) is retried
        exactly once after ``config.retry_delay`` seconds; the second outcome
        is final.

        Args:
            name: Package name, optionally scoped.

        Returns:
            Packument: The decoded document.

        Raises:
            RegistryError: If both attempts fail.
        """
        url = self.metadata_url(name)
        with Timer() as timer:
            try:
                packument = self._get_document(name, url)
            except (requests.RequestException, ValueError, RegistryError) as first:
                logger.warning(
                    "Registry query for %s failed (%s); retrying once",
                    name,
                    first,
                    extra=extra_context(
                        event="registry_retry",
                        component="registry",
                        target=safe_url(url),
                        package=name,
                    ),
                )
                time.sleep(self.config.retry_delay)
                try:
                    packument = self._get_document(name, url)
                except RegistryError as exc:
                    exc.url = exc.url or url
                    raise
                except (requests.RequestException, ValueError) as exc:
                    raise RegistryError(
                        name, f"metadata query failed: {exc}", url=url, cause=exc
                    ) from exc
        logger.debug(
            "Fetched metadata for %s (%d versions)",
            name,
            len(packument.versions),
            extra=extra_context(
                event="registry_metadata",
                component="registry",
                outcome="success",
                duration_ms=timer.duration_ms(),
                package=name,
            ),
        )
        return packument

    def fetch_version_metadata(self, name: str) -> Dict[str, Any]:
        """Return the ``versions`` map (version string to raw manifest) for ``name``."""
        return self.fetch_packument(name).versions

    def fetch_full_metadata(self, name: str) -> Packument:
        """Return the complete document, including ``dist-tags``."""
        return self.fetch_packument(name)
