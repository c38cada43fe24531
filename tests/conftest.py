"""Shared fixtures: an in-memory registry and tarball builders."""

import io
import tarfile
from typing import Dict, Iterable, List, Optional, Tuple

import pytest
import requests

from npmfetch.archive.unpacker import PackageUnpacker
from npmfetch.config import FetchConfig
from npmfetch.registry.client import RegistryClient
from npmfetch.walker import DependencyWalker

REGISTRY = "http://registry.test/{name}"


def make_tgz(files: Dict[str, str]) -> bytes:
    """Build a gzip tarball holding ``files`` (path -> text content)."""
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for path, content in files.items():
            data = content.encode("utf-8")
            info = tarfile.TarInfo(path)
            info.size = len(data)
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def packument(name: str, versions: Dict[str, Optional[Dict[str, str]]], latest: Optional[str] = None) -> dict:
    """Build a registry document; ``versions`` maps version -> dependency map."""
    doc = {
        "name": name,
        "versions": {
            ver: {
                "name": name,
                "version": ver,
                "dist": {"tarball": tarball_url(name, ver)},
                **({"dependencies": deps} if deps is not None else {}),
            }
            for ver, deps in versions.items()
        },
        "dist-tags": {"latest": latest} if latest else {},
    }
    return doc


def tarball_url(name: str, version: str) -> str:
    base = name.rsplit("/", 1)[-1]
    return f"http://registry.test/{name}/-/{base}-{version}.tgz"


class FakeTransport:
    """Stands in for HttpTransport; serves documents and tarballs from dicts."""

    def __init__(self) -> None:
        self.documents: Dict[str, object] = {}
        self.tarballs: Dict[str, bytes] = {}
        self.json_calls: List[str] = []
        self.download_calls: List[str] = []
        self.failures: Dict[str, List[BaseException]] = {}

    def add_package(self, name: str, versions: Dict[str, Optional[Dict[str, str]]],
                    latest: Optional[str] = None, files: Optional[Dict[str, str]] = None) -> None:
        url = REGISTRY.replace("{name}", name.replace("/", "%2F"))
        self.documents[url] = packument(name, versions, latest)
        for ver in versions:
            content = files or {"package/package.json": f'{{"name": "{name}", "version": "{ver}"}}'}
            self.tarballs[tarball_url(name, ver)] = make_tgz(content)

    def fail_next(self, url: str, *errors: BaseException) -> None:
        self.failures.setdefault(url, []).extend(errors)

    def get_json(self, url: str, *, context: str, **kwargs):
        self.json_calls.append(url)
        pending = self.failures.get(url)
        if pending:
            raise pending.pop(0)
        if url not in self.documents:
            raise requests.HTTPError(f"404 Client Error: Not Found for url: {url}")
        return self.documents[url]

    def download(self, url: str, dest: str, *, context: str) -> int:
        self.download_calls.append(url)
        pending = self.failures.get(url)
        if pending:
            raise pending.pop(0)
        if url not in self.tarballs:
            raise requests.HTTPError(f"404 Client Error: Not Found for url: {url}")
        data = self.tarballs[url]
        with open(dest, "wb") as fh:
            fh.write(data)
        return len(data)

    def close(self) -> None:
        pass


@pytest.fixture
def config() -> FetchConfig:
    return FetchConfig(registry=REGISTRY, retry_delay=0)


@pytest.fixture
def transport() -> FakeTransport:
    return FakeTransport()


@pytest.fixture
def client(config, transport) -> RegistryClient:
    return RegistryClient(config, transport)


@pytest.fixture
def unpacker(config, transport) -> PackageUnpacker:
    return PackageUnpacker(config, transport)


@pytest.fixture
def walker(client, unpacker) -> DependencyWalker:
    return DependencyWalker(client, unpacker)


def tree_names(node) -> List[Tuple[str, str]]:
    return [(n.name, n.resolved_version) for n in node.iter_nodes()]


def listdir(path) -> Iterable[str]:
    return sorted(p.name for p in path.iterdir())
