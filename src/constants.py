"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    MIGRATION_ABORTED = 1
    CONFIG_ERROR = 2
    PACKAGE_FAILURES = 3


class VersionManagers(Enum):
    """Runtime version managers supported by the program.

    Args:
        Enum (string): Version managers supported by the program.
    """

    FNM = "fnm"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    REGISTRY_URL_NPM = "https://registry.npmjs.org/"
    RELEASE_INDEX_URL_NODE = "https://nodejs.org/dist/index.json"
    SUPPORTED_VERSION_MANAGERS = [
        VersionManagers.FNM.value,
    ]
    NPM_BIN = "npm"
    NODE_BIN = "node"
    FNM_BIN = "fnm"
    LATEST_LTS = "latest-lts"
    UNKNOWN_VERSION = "unknown"
    MODULE_ROOT = "node_modules/"
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_LEVEL_ENV = "CARRYOVER_LOG_LEVEL"
    CONFIG_SECTION = "carryover"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3
