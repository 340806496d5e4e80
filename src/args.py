"""Argument parsing functionality for carryover."""

import argparse
from constants import Constants

def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    parser = argparse.ArgumentParser(
        prog="carryover",
        description=(
            "carryover - Move global npm packages to a new Node.js version"
        ),
        add_help=True,
    )

    parser.add_argument("-t", "--target",
                        dest="TARGET",
                        help=f"Node.js version to switch to, or '{Constants.LATEST_LTS}' (default)",
                        action="store", type=str)
    parser.add_argument("--remove-old",
                        dest="REMOVE_OLD",
                        help="Uninstall the previously active Node.js version after switching.",
                        action="store_true",
                        default=None)
    parser.add_argument("--no-force",
                        dest="FORCE_UPGRADE",
                        help="Skip packages whose installed version already matches the registry's latest.",
                        action="store_false",
                        default=None)
    parser.add_argument("-x", "--exclude",
                        dest="EXCLUDE",
                        help="Global package to leave behind (can be used multiple times)",
                        action="append",
                        type=str,
                        default=[])
    parser.add_argument("--registry-url",
                        dest="REGISTRY_URL",
                        help=f"npm registry base URL (default: {Constants.REGISTRY_URL_NPM})",
                        action="store", type=str)
    parser.add_argument("--release-index-url",
                        dest="RELEASE_INDEX_URL",
                        help=f"Node.js release index URL (default: {Constants.RELEASE_INDEX_URL_NODE})",
                        action="store", type=str)
    parser.add_argument("--version-manager",
                        dest="VERSION_MANAGER",
                        help="Runtime version manager",
                        action="store", type=str,
                        choices=Constants.SUPPORTED_VERSION_MANAGERS)

    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML or YML)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'],
                        default='WARNING')
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("-q", "--quiet",
                        dest="QUIET",
                        help="No spinner or colors; notifications go to the log instead.",
                        action="store_true")

    return parser.parse_args(argv)
