"""Tests for the npmfetch command line and the public entry points."""

import json
import logging
import os
from unittest.mock import patch

import pytest

from npmfetch import api, cli
from npmfetch.args import parse_args
from npmfetch.constants import ExitCodes
from npmfetch.node import PackageNode


class TestArgParsing:
    """CLI argument parsing."""

    def test_defaults(self):
        ns = parse_args(["colors:1.1.2"])
        assert ns.packages == ["colors:1.1.2"]
        assert ns.OUTPUT == "node_modules"
        assert ns.NO_DEPS is False
        assert ns.LOG_LEVEL is None

    def test_proxy_options(self):
        ns = parse_args([
            "--proxy-host", "p", "--proxy-port", "3128", "--proxy-protocol", "SOCKS", "x",
        ])
        assert ns.PROXY_PORT == 3128
        assert ns.PROXY_PROTOCOL == "socks"

    def test_requires_a_package(self):
        with pytest.raises(SystemExit):
            parse_args([])


class TestMain:
    """End-to-end CLI runs against the fake registry."""

    def test_prints_tree(self, walker, transport, tmp_path, capsys):
        transport.add_package("pkgA", {"2.0.0": {"pkgB": "^1.0.0"}}, latest="2.0.0")
        transport.add_package("pkgB", {"1.0.0": None, "1.2.0": None}, latest="1.2.0")

        with patch.object(cli, "build_walker", return_value=walker):
            code = cli.main(["-o", str(tmp_path), "pkgA"])

        assert code == ExitCodes.SUCCESS.value
        assert capsys.readouterr().out.splitlines() == ["pkgA@2.0.0", "  pkgB@1.2.0"]
        assert (tmp_path / "pkgB").is_dir()

    def test_json_output(self, walker, transport, tmp_path, capsys):
        transport.add_package("colors", {"1.1.2": None}, latest="1.1.2")

        with patch.object(cli, "build_walker", return_value=walker):
            code = cli.main(["-o", str(tmp_path), "--json", "colors:1.1.2"])

        assert code == 0
        data = json.loads(capsys.readouterr().out)
        assert data[0]["name"] == "colors"
        assert data[0]["version"] == "1.1.2"
        assert data[0]["downloaded"] is True

    def test_resolution_failure_exit_code(self, walker, transport, tmp_path):
        transport.add_package("pkgC", {"1.0.0": None}, latest="1.0.0")

        with patch.object(cli, "build_walker", return_value=walker):
            code = cli.main(["-o", str(tmp_path), "-q", "pkgC:9.9.9"])

        assert code == ExitCodes.RESOLUTION_ERROR.value

    def test_star_is_usage_error(self, walker, tmp_path):
        with patch.object(cli, "build_walker", return_value=walker):
            code = cli.main(["-o", str(tmp_path), "-q", "colors:*"])

        assert code == ExitCodes.USAGE_ERROR.value

    def test_bad_config_file(self, tmp_path):
        code = cli.main(["-c", str(tmp_path / "missing.yml"), "colors"])
        assert code == ExitCodes.USAGE_ERROR.value


class TestApi:
    """Public entry points delegate to a fresh walker."""

    def test_fetch_query_splits_constraint(self, walker, transport, tmp_path):
        transport.add_package("@scope/pkg", {"1.0.0": None, "1.5.0": None}, latest="1.5.0")

        with patch.object(api, "build_walker", return_value=walker):
            node = api.fetch_query("@scope/pkg:~1.0.0", tmp_path)

        assert isinstance(node, PackageNode)
        assert node.resolved_version == "1.0.0"
        assert (tmp_path / "@scope" / "pkg").is_dir()

    def test_fetch_package_without_dependencies(self, walker, transport, tmp_path):
        transport.add_package("pkgA", {"2.0.0": {"pkgB": "^1.0.0"}}, latest="2.0.0")

        with patch.object(api, "build_walker", return_value=walker):
            node = api.fetch_package("pkgA", tmp_path, include_dependencies=False)

        assert node.dependencies == []
        assert sorted(p.name for p in tmp_path.iterdir()) == ["pkgA"]


class TestLoggingSetup:
    """Log level precedence between the environment and --loglevel."""

    def test_environment_level_kept_without_flag(self):
        with patch.dict(os.environ, {"NPMFETCH_LOG_LEVEL": "WARNING"}):
            cli._setup_logging(parse_args(["colors"]))
            assert os.environ["NPMFETCH_LOG_LEVEL"] == "WARNING"
        assert logging.getLogger().level == logging.WARNING

    def test_flag_overrides_environment(self):
        with patch.dict(os.environ, {"NPMFETCH_LOG_LEVEL": "WARNING"}):
            cli._setup_logging(parse_args(["--loglevel", "DEBUG", "colors"]))
        assert logging.getLogger().level == logging.DEBUG
