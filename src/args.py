"""Argument parsing for the add-on indexer."""

import argparse
from constants import Constants

LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _add_common(parser):
    parser.add_argument("-c", "--config",
                        dest="CONFIG",
                        help="Path to configuration file (YAML)",
                        action="store",
                        type=str)
    parser.add_argument("--loglevel",
                        dest="LOG_LEVEL",
                        help="Set the logging level",
                        action="store",
                        type=str.upper,
                        choices=LOG_LEVELS)
    parser.add_argument("--logfile",
                        dest="LOG_FILE",
                        help="Log output file",
                        action="store",
                        type=str)
    parser.add_argument("--store",
                        dest="STORE",
                        help="Document store backing the index (default from config: elasticsearch)",
                        action="store",
                        type=str.lower,
                        choices=Constants.SUPPORTED_STORES)
    parser.add_argument("--es-url",
                        dest="ES_URL",
                        help="Elasticsearch base URL",
                        action="store",
                        type=str)
    parser.add_argument("--add-on-list",
                        dest="ADD_ON_LIST",
                        help="Manifest of add-ons to index: a URL, or a path to a local JSON file",
                        action="store",
                        type=str)


def build_parser():
    """Builds the top-level parser with one subcommand per mode."""
    parser = argparse.ArgumentParser(
        prog="addonindex",
        description="Add-on catalog indexer: fetches add-on metadata and serves search over it",
        add_help=True,
    )
    subparsers = parser.add_subparsers(dest="COMMAND", metavar="COMMAND")
    subparsers.required = True

    serve = subparsers.add_parser("serve", help="Run the REST API and the periodic indexing jobs")
    _add_common(serve)
    serve.add_argument("--host",
                       dest="HOST",
                       help=f"Bind address (default: {Constants.SERVER_HOST})",
                       action="store",
                       type=str)
    serve.add_argument("--port",
                       dest="PORT",
                       help=f"Bind port (default: {Constants.SERVER_PORT})",
                       action="store",
                       type=int)

    fetch = subparsers.add_parser("fetch", help="Fetch the add-on list and index every add-on once, then exit")
    _add_common(fetch)

    search = subparsers.add_parser("search", help="Search the index and print matching summaries as JSON")
    _add_common(search)
    search.add_argument("-t", "--type",
                        dest="ADD_ON_TYPE",
                        help="Restrict results to one add-on type (omod or owa)",
                        action="store",
                        type=str)
    search.add_argument("QUERY",
                        help="Free-text query; omit to list everything",
                        nargs="?",
                        default=None)
    return parser


def parse_args(argv=None):
    """Parses the arguments passed to the program."""
    return build_parser().parse_args(argv)
