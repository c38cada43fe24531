"""HTTP transport shared by the registry client and the archive fetcher.

Wraps a requests Session configured once from FetchConfig (timeout, user
agent, outbound proxy). Failures are raised as ``requests`` exceptions; the
callers translate them into the npmfetch error taxonomy.
"""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional
from urllib.parse import quote

import requests

from ..config import FetchConfig, ProxySettings
from ..constants import Constants, ProxyProtocol
from .logging_utils import Timer, extra_context, is_debug_enabled, safe_url

logger = logging.getLogger(__name__)


def proxy_urls(proxy: Optional[ProxySettings]) -> Dict[str, str]:
    """Return the requests ``proxies`` mapping for ``proxy``.

    Credentials go into the proxy URL, percent-quoted. requests turns them
    into a Basic Proxy-Authorization header on the CONNECT for HTTPS targets
    and on every plain-HTTP proxied request, never towards the origin.
    """
    if proxy is None or proxy.is_direct:
        return {}
    auth = ""
    if proxy.username:
        auth = f"{quote(proxy.username, safe='')}:{quote(proxy.password or '', safe='')}@"
    scheme = "socks5h" if proxy.protocol is ProxyProtocol.SOCKS else "http"
    url = f"{scheme}://{auth}{proxy.host}:{proxy.port}"
    return {"http": url, "https": url}


class HttpTransport:
    """Blocking GET helper bound to one FetchConfig."""

    def __init__(self, config: FetchConfig, session: Optional[requests.Session] = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self.session.headers.update({"User-Agent": config.user_agent})
        self.session.headers.update(config.headers)
        proxies = proxy_urls(config.proxy)
        if proxies:
            self.session.proxies.update(proxies)
            # proxy settings from the config win over HTTP(S)_PROXY variables
            self.session.trust_env = False

    def get(self, url: str, *, context: str, **kwargs: Any) -> requests.Response:
        """GET ``url`` and raise for non-2xx statuses.

        Args:
            url: Target URL.
            context: Human-readable source tag for logs (e.g. "registry").
            **kwargs: Passed through to ``Session.get``.

        Returns:
            requests.Response: The successful response.

        Raises:
            requests.RequestException: On transport errors and HTTP error statuses.
        """
        safe_target = safe_url(url)
        with Timer() as t:
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP request",
                    extra=extra_context(
                        event="http_request",
                        component="http_client",
                        action="GET",
                        target=safe_target,
                        context=context,
                    ),
                )
            res = self.session.get(url, timeout=self.config.timeout, **kwargs)
            try:
                res.raise_for_status()
            except requests.HTTPError:
                res.close()
                raise
            if is_debug_enabled(logger):
                logger.debug(
                    "HTTP response ok",
                    extra=extra_context(
                        event="http_response",
                        component="http_client",
                        action="GET",
                        outcome="success",
                        status_code=res.status_code,
                        duration_ms=t.duration_ms(),
                        target=safe_target,
                        context=context,
                    ),
                )
            return res

    def get_json(self, url: str, *, context: str, **kwargs: Any) -> Any:
        """GET ``url`` and decode the body as JSON.

        Raises:
            requests.RequestException: On transport errors and HTTP error statuses.
            ValueError: If the body is not valid JSON.
        """
        headers = {"Accept": Constants.REGISTRY_ACCEPT}
        headers.update(kwargs.pop("headers", None) or {})
        res = self.get(url, context=context, headers=headers, **kwargs)
        return res.json()

    def download(self, url: str, dest: str, *, context: str) -> int:
        """Stream ``url`` into the file ``dest``; return the number of bytes written.

        Progress is logged at DEBUG every ``DOWNLOAD_PROGRESS_STEP`` bytes. A
        partially written file is removed before the error propagates.
        """
        written = 0
        next_report = Constants.DOWNLOAD_PROGRESS_STEP
        with self.get(url, context=context, stream=True) as res:
            total = _content_length(res)
            try:
                with open(dest, "wb") as fh:
                    for chunk in res.iter_content(chunk_size=Constants.DOWNLOAD_CHUNK_SIZE):
                        if not chunk:
                            continue
                        fh.write(chunk)
                        written += len(chunk)
                        if written >= next_report:
                            _log_progress(url, written, total)
                            next_report = written + Constants.DOWNLOAD_PROGRESS_STEP
            except (requests.RequestException, OSError):
                if os.path.exists(dest):
                    os.remove(dest)
                raise
        logger.debug("Downloaded %d bytes from %s", written, safe_url(url))
        return written

    def close(self) -> None:
        self.session.close()


def _content_length(res: requests.Response) -> Optional[int]:
    try:
        return int(res.headers.get("Content-Length", ""))
    except (TypeError, ValueError):
        return None


def _log_progress(url: str, written: int, total: Optional[int]) -> None:
    if not is_debug_enabled(logger):
        return
    logger.debug(
        "Download progress",
        extra=extra_context(
            event="download_progress",
            component="http_client",
            target=safe_url(url),
            bytes=written,
            total_bytes=total,
            percent=round(written * 100.0 / total, 1) if total else None,
        ),
    )
