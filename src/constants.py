"""Constants used in the project."""

from enum import Enum


class ExitCodes(Enum):
    """Exit codes for the program.

    Args:
        Enum (int): Exit codes for the program.
    """

    SUCCESS = 0
    FILE_ERROR = 1
    GRAPH_ERROR = 2
    EXIT_WARNINGS = 3
    UNKNOWN_TARGET = 4


class GraphProviders(Enum):
    """Graph metadata providers supported by the program.

    Args:
        Enum (string): Graph metadata providers supported by the program.
    """

    AUTO = "auto"
    CARGO = "cargo"
    UV = "uv"
    GRAPH = "graph"


class OutputFormats(Enum):
    """Report output formats.

    Args:
        Enum (string): Report output formats.
    """

    JSON = "json"
    YAML = "yaml"
    CSV = "csv"
    HTML = "html"
    TOML = "toml"


class Constants:  # pylint: disable=too-few-public-methods
    """General constants used in the project.
    Data holder for configuration constants; not intended to provide behavior.
    """

    SUPPORTED_PROVIDERS = [p.value for p in GraphProviders]
    SUPPORTED_FORMATS = [f.value for f in OutputFormats]
    SUPPORTED_KINDS = ["normal", "build", "dev", "development"]
    DEFAULT_FORMAT = OutputFormats.JSON.value
    CARGO_LOCK_FILE = "Cargo.lock"
    CARGO_MANIFEST_FILE = "Cargo.toml"
    UV_LOCK_FILE = "uv.lock"
    CARGO_METADATA_COMMAND = ["cargo", "metadata", "--format-version", "1"]
    CARGO_METADATA_TIMEOUT = 300  # Seconds to wait for `cargo metadata`
    LOG_FORMAT = "[%(levelname)s] %(message)s"
    LOG_FILE_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
    ENV_LOG_LEVEL = "DEPFRONTIER_LOG_LEVEL"
    CONFIG_SECTION = "depfrontier"
    REPORT_SCHEMA_VERSION = 1
