"""Argument parsing functionality for npmfetch."""

import argparse

from .constants import Constants, ProxyProtocol


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="npmfetch",
        description=(
            "npmfetch - resolve npm packages and vendor them with their dependencies"
        ),
        add_help=True,
    )

    parser.add_argument("packages",
                        metavar="PACKAGE[:CONSTRAINT]",
                        help="Package to fetch, e.g. colors, colors:1.1.2 or @scope/pkg:^2.0.0",
                        nargs="+")
    parser.add_argument("-o", "--output",
                        dest="OUTPUT",
                        help=f"Destination root directory (default: {Constants.DEFAULT_DESTINATION})",
                        action="store",
                        type=str,
                        default=Constants.DEFAULT_DESTINATION)
    parser.add_argument("--no-deps",
                        dest="NO_DEPS",
                        help="Fetch only the named packages, not their dependencies.",
                        action="store_true")
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--registry",
                        dest="REGISTRY",
                        help="Registry URL template; '{name}' is replaced by the package name",
                        action="store",
                        type=str)
    parser.add_argument("--timeout",
                        dest="TIMEOUT",
                        help="HTTP timeout in seconds",
                        action="store",
                        type=float)

    proxy_group = parser.add_argument_group("proxy")
    proxy_group.add_argument("--proxy-host",
                             dest="PROXY_HOST",
                             action="store",
                             type=str)
    proxy_group.add_argument("--proxy-port",
                             dest="PROXY_PORT",
                             action="store",
                             type=int)
    proxy_group.add_argument("--proxy-protocol",
                             dest="PROXY_PROTOCOL",
                             action="store",
                             type=str.lower,
                             choices=[p.value for p in ProxyProtocol])
    proxy_group.add_argument("--proxy-user",
                             dest="PROXY_USER",
                             action="store",
                             type=str)
    proxy_group.add_argument("--proxy-password",
                             dest="PROXY_PASSWORD",
                             action="store",
                             type=str)

    parser.add_argument("--json",
                        dest="JSON",
                        help="Print the resolved tree as JSON.",
                        action="store_true")
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level (default: $NPMFETCH_LOG_LEVEL or INFO)",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default=None)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="Do not output to console.",
                        action="store_true")

    return parser.parse_args(argv)
