"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    CONNECTION_ERROR = 2
    RESOLUTION_ERROR = 3
    USAGE_ERROR = 4


class ProxyProtocol(Enum):
    """Outbound proxy protocols understood by the HTTP transport.

    Args:
        Enum (string): Protocol name as written in configuration.
    """

    DIRECT = "direct"
    HTTP = "http"
    SOCKS = "socks"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration defaults; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/{name}"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    METADATA_RETRY_DELAY_SEC = 0.2
    DOWNLOAD_CHUNK_SIZE = 8192
    DOWNLOAD_PROGRESS_STEP = 1024 * 1024
    USER_AGENT = "npmfetch/0.1"
    REGISTRY_ACCEPT = "application/json"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "NPMFETCH_LOG_LEVEL"
    STAGING_SUFFIX = "_tmp"
    ARCHIVE_SUFFIX = ".tgz"
    PACKAGE_ROOT_DIR = "package"
    DEFAULT_DESTINATION = "node_modules"
    # npm ranges that accept every published version: "", *, x, x.x, *.*.* ...
    UNCONSTRAINED_ANY_RE = r"[*xX](\.[*xX]){0,2}"
