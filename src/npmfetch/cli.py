"""Command-line entry point: fetch packages into a vendoring directory."""

from __future__ import annotations

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, List, Optional

from .api import build_walker
from .args import parse_args
from .common.logging_utils import configure_logging
from .config import FetchConfig, apply_cli_overrides, load_config
from .constants import Constants, ExitCodes
from .errors import DependencyResolutionError, NpmFetchError
from .node import PackageNode
from .versioning.parser import parse_query

logger = logging.getLogger(__name__)


def _setup_logging(args: Any) -> None:
    """Configure logging based on CLI arguments."""
    if getattr(args, "LOG_LEVEL", None):
        os.environ[Constants.LOG_LEVEL_ENV] = str(args.LOG_LEVEL).upper()

    configure_logging()

    log_file = getattr(args, "LOG_FILE", None)
    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s %(message)s")
        )
        logging.getLogger().addHandler(file_handler)
        logger.info("Logging to file: %s", log_file)


def render_tree(node: PackageNode, depth: int = 0) -> List[str]:
    """Render ``node`` and its dependencies as indented ``name@version`` lines."""
    suffix = ""
    if node.revisit:
        suffix = " (seen)"
    elif node.materialized_path is not None and not node.downloaded:
        suffix = " (present)"
    lines = ["  " * depth + f"{node.name}@{node.resolved_version}{suffix}"]
    for child in node.dependencies:
        lines.extend(render_tree(child, depth + 1))
    return lines


def _report_error(exc: NpmFetchError) -> None:
    if isinstance(exc, DependencyResolutionError):
        logger.error("%s", exc)
        logger.debug("Dependency chain: %s", exc.chain)
    else:
        logger.error("%s", exc)


def main(argv: Optional[List[str]] = None) -> int:
    """Run the CLI and return the process exit code."""
    args = parse_args(argv)
    _setup_logging(args)

    try:
        config: FetchConfig = apply_cli_overrides(load_config(args.CONFIG), args)
    except NpmFetchError as exc:
        logger.error("%s", exc)
        return exc.exit_code.value

    try:
        queries = [parse_query(token) for token in args.packages]
    except ValueError as exc:
        logger.error("%s", exc)
        return ExitCodes.USAGE_ERROR.value

    destination = Path(args.OUTPUT)
    destination.mkdir(parents=True, exist_ok=True)

    walker = build_walker(config)
    trees: List[PackageNode] = []
    try:
        for name, constraint in queries:
            trees.append(
                walker.walk(name, constraint, destination, recursive=not args.NO_DEPS)
            )
    except NpmFetchError as exc:
        _report_error(exc)
        return exc.exit_code.value
    finally:
        walker.client.transport.close()

    if not args.QUIET:
        if args.JSON:
            sys.stdout.write(json.dumps([tree.to_dict() for tree in trees], indent=2) + "\n")
        else:
            for tree in trees:
                sys.stdout.write("\n".join(render_tree(tree)) + "\n")
    return ExitCodes.SUCCESS.value


if __name__ == "__main__":
    sys.exit(main())
