"""Tests for downloading and unpacking package tarballs."""

from pathlib import Path
from unittest.mock import patch

import pytest
import requests

from conftest import make_tgz, tarball_url
from npmfetch.errors import DownloadError, ExtractError, UnpackLayoutError
from npmfetch.node import NodeState, PackageNode


def resolved_node(name: str, version: str) -> PackageNode:
    node = PackageNode(name=name, constraint=version)
    node.set_resolution(version, tarball_url(name, version))
    return node


class TestMaterialize:
    """Happy paths and the idempotent short-circuit."""

    def test_unpacks_package_root_into_final_dir(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("colors", "1.1.2")] = make_tgz({
            "package/package.json": '{"name": "colors"}',
            "package/lib/index.js": "module.exports = {};",
        })
        node = resolved_node("colors", "1.1.2")

        final = unpacker.materialize(node, tmp_path)

        assert final == tmp_path / "colors"
        assert (final / "package.json").is_file()
        assert (final / "lib" / "index.js").is_file()
        assert not (tmp_path / "colors_tmp").exists()
        assert node.state is NodeState.MATERIALIZED
        assert node.downloaded is True

    def test_second_call_is_a_no_op(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("colors", "1.1.2")] = make_tgz({"package/a.txt": "a"})
        unpacker.materialize(resolved_node("colors", "1.1.2"), tmp_path)
        before = sorted(p.relative_to(tmp_path) for p in tmp_path.rglob("*"))

        again = resolved_node("colors", "1.1.2")
        unpacker.materialize(again, tmp_path)

        assert len(transport.download_calls) == 1
        assert sorted(p.relative_to(tmp_path) for p in tmp_path.rglob("*")) == before
        assert again.downloaded is False
        assert again.materialized_path == tmp_path / "colors"

    def test_existing_directory_skips_download(self, unpacker, transport, tmp_path):
        (tmp_path / "colors").mkdir()

        unpacker.materialize(resolved_node("colors", "1.1.2"), tmp_path)

        assert transport.download_calls == []

    def test_scoped_package_keeps_scope_in_directory(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("@scope/pkg", "2.0.0")] = make_tgz({"package/index.js": ""})
        node = resolved_node("@scope/pkg", "2.0.0")

        final = unpacker.materialize(node, tmp_path)

        assert unpacker.archive_name(node) == "pkg-2.0.0.tgz"
        assert final == tmp_path / "@scope" / "pkg"
        assert (final / "index.js").is_file()

    def test_package_dir_picked_among_several_entries(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("multi", "1.0.0")] = make_tgz({
            "package/index.js": "",
            "extras/readme.txt": "",
        })

        final = unpacker.materialize(resolved_node("multi", "1.0.0"), tmp_path)

        assert (final / "index.js").is_file()

    def test_non_package_single_root_is_used(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("odd", "1.0.0")] = make_tgz({"odd-1.0.0/index.js": ""})

        final = unpacker.materialize(resolved_node("odd", "1.0.0"), tmp_path)

        assert (final / "index.js").is_file()

    def test_unresolved_node_rejected(self, unpacker, tmp_path):
        with pytest.raises(ValueError):
            unpacker.materialize(PackageNode(name="colors"), tmp_path)


class TestMaterializeFailures:
    """Error classification and staging-directory handling."""

    def test_ambiguous_layout(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("amb", "1.0.0")] = make_tgz({"a/x.js": "", "b/y.js": ""})

        with pytest.raises(UnpackLayoutError) as excinfo:
            unpacker.materialize(resolved_node("amb", "1.0.0"), tmp_path)

        assert excinfo.value.package == "amb"
        assert not (tmp_path / "amb").exists()

    def test_download_failure_leaves_staging(self, unpacker, transport, tmp_path):
        url = tarball_url("colors", "1.1.2")
        transport.fail_next(url, requests.ConnectionError("reset"))

        with pytest.raises(DownloadError) as excinfo:
            unpacker.materialize(resolved_node("colors", "1.1.2"), tmp_path)

        assert excinfo.value.package == "colors"
        assert excinfo.value.version == "1.1.2"
        assert (tmp_path / "colors_tmp").is_dir()
        assert not (tmp_path / "colors").exists()

    def test_corrupt_archive_raises_extract_error(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("broken", "0.1.0")] = b"definitely not gzip"

        with pytest.raises(ExtractError) as excinfo:
            unpacker.materialize(resolved_node("broken", "0.1.0"), tmp_path)

        assert excinfo.value.version == "0.1.0"
        assert (tmp_path / "broken_tmp").is_dir()

    def test_path_traversal_rejected(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("evil", "1.0.0")] = make_tgz({"../escape.txt": "x"})

        with pytest.raises(ExtractError):
            unpacker.materialize(resolved_node("evil", "1.0.0"), tmp_path / "root")

        assert not (tmp_path / "escape.txt").exists()

    def test_staging_cleanup_failure_is_not_fatal(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("colors", "1.1.2")] = make_tgz({"package/a.txt": "a"})

        with patch("npmfetch.archive.unpacker.shutil.rmtree", side_effect=OSError("busy")):
            final = unpacker.materialize(resolved_node("colors", "1.1.2"), tmp_path)

        assert (final / "a.txt").is_file()

    def test_staging_path_blocked_by_file(self, unpacker, transport, tmp_path):
        (tmp_path / "colors_tmp").write_text("stray")

        with pytest.raises(DownloadError) as excinfo:
            unpacker.materialize(resolved_node("colors", "1.1.2"), tmp_path)

        assert excinfo.value.package == "colors"
        assert excinfo.value.version == "1.1.2"
        assert isinstance(excinfo.value.cause, OSError)
        assert transport.download_calls == []

    def test_unreadable_staging_is_layout_error(self, unpacker, transport, tmp_path):
        transport.tarballs[tarball_url("colors", "1.1.2")] = make_tgz({"package/a.txt": "a"})

        with patch.object(Path, "iterdir", side_effect=PermissionError("denied")):
            with pytest.raises(UnpackLayoutError) as excinfo:
                unpacker.materialize(resolved_node("colors", "1.1.2"), tmp_path)

        assert excinfo.value.version == "1.1.2"
        assert isinstance(excinfo.value.cause, PermissionError)
