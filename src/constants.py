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
    INDEX_ERROR = 3
    USAGE_ERROR = 4


class Backends(Enum):
    """Hosting backends an add-on can be fetched from.

    Args:
        Enum (string): Backend identifiers as they appear in the manifest.
    """

    BINTRAY = "bintray"
    MAVEN = "maven"


class FetchStrategy(Enum):
    """Where the list of add-ons to index comes from."""

    FETCH = "FETCH"
    LOCAL = "LOCAL"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    SUPPORTED_STORES = ["elasticsearch", "memory"]
    SUPPORTED_BACKENDS = [
        Backends.BINTRAY.value,
        Backends.MAVEN.value,
    ]
    LOG_FORMAT = "[%(levelname)s] %(name)s: %(message)s"
    ENV_LOG_LEVEL = "ADDONINDEX_LOG_LEVEL"
    USER_AGENT = "addonindex/1.0"
    REQUEST_TIMEOUT = 30  # Timeout in seconds for all HTTP requests
    HTTP_RETRY_MAX = 3
    HTTP_RETRY_BASE_DELAY_SEC = 0.3

    # Bintray-style package API
    BINTRAY_API_URL = "https://bintray.com/api/v1"
    BINTRAY_DOWNLOAD_URL = "https://dl.bintray.com"
    BINTRAY_HOSTED_URL = "https://bintray.com"
    BINTRAY_STATS_URL = "https://bintray.com/statistics/packageGeoStats"

    # Maven repository
    MAVEN_REPO_URL = "https://repo1.maven.org/maven2"

    # Manifest of add-ons to index
    ADD_ON_LIST_URL = (
        "https://raw.githubusercontent.com/openmrs/openmrs-contrib-addonindex/master/"
        "src/main/resources/add-ons-to-index.json"
    )

    # Index / document store
    ES_URL = "http://localhost:9200"
    ES_INDEX = "add_ons"
    SEARCH_SIZE = 200
    TOP_DOWNLOADED_SIZE = 10

    # Ranking boosts
    BOOST_UID = 1700.0
    BOOST_TAG = 1500.0
    BOOST_NAME_PREFIX = 4.0
    BOOST_NAME = 2.0
    BOOST_DESCRIPTION = 0.5
    PHRASE_SLOP = 2
    NEGATIVE_BOOST = 0.01
    DEMOTED_STATUSES = ["DEPRECATED", "INACTIVE"]

    # Scheduling defaults, in seconds
    FETCH_ADD_ON_LIST_INITIAL_DELAY = 0
    FETCH_ADD_ON_LIST_PERIOD = 3600
    FETCH_DETAILS_INITIAL_DELAY = 30
    FETCH_DETAILS_PERIOD = 3600

    # REST server
    SERVER_HOST = "127.0.0.1"
    SERVER_PORT = 8080
    API_PREFIX = "/api/v1"

    # Environment overrides
    ENV_BINTRAY_USERNAME = "ADDONINDEX_BINTRAY_USERNAME"
    ENV_BINTRAY_API_KEY = "ADDONINDEX_BINTRAY_API_KEY"
    ENV_ES_URL = "ADDONINDEX_ES_URL"
    ENV_ADD_ON_LIST_URL = "ADDONINDEX_ADD_ON_LIST_URL"

    MODULE_CONFIG_FILE = "config.xml"
