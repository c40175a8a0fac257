# /src/querysh/config.py

import getpass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional

import structlog
import yaml
from pydantic import BaseModel, Field, ValidationError

from .errors import ConfigurationError
from .execution.executor import OutputMode
from .interactive.session import SessionState
from .utils import DEFAULT_HISTORY_FILE, QUERYSH_HOME

logger = structlog.get_logger(__name__)

DEFAULT_CONFIG_FILE = QUERYSH_HOME / "config.yaml"


def _default_user() -> str:
    try:
        return getpass.getuser()
    except (KeyError, OSError):
        return "querysh"


class RunMode(str, Enum):
    INTERACTIVE = "interactive"
    EXECUTE = "execute"
    FILE = "file"


class ClientOptions(BaseModel):
    """All connection and mode options, merged from the config file and the CLI."""

    server: Optional[str] = Field(
        None, description="SQLAlchemy URL of the default database."
    )
    catalog: Optional[str] = Field(None, description="The initial catalog.")
    schema_name: Optional[str] = Field(None, description="The initial schema.")
    user: str = Field(default_factory=_default_user)
    source: str = "querysh"
    session_properties: Dict[str, str] = Field(default_factory=dict)
    catalogs: Dict[str, str] = Field(
        default_factory=dict,
        description="Maps catalog names to SQLAlchemy URLs.",
    )
    execute: Optional[str] = None
    file: Optional[Path] = None
    output_format: OutputMode = OutputMode.CSV
    debug: bool = False
    history_file: Path = DEFAULT_HISTORY_FILE

    def resolve_mode(self) -> RunMode:
        if self.execute and self.file:
            raise ConfigurationError("both --execute and --file specified")
        if self.file:
            return RunMode.FILE
        if self.execute:
            return RunMode.EXECUTE
        return RunMode.INTERACTIVE

    def read_query(self) -> str:
        """Returns the batch text for --execute or --file."""
        if self.resolve_mode() is RunMode.FILE:
            try:
                return self.file.read_text(encoding="utf-8")
            except OSError as e:
                raise ConfigurationError(
                    f"Error reading from file {self.file}: {e.strerror or e}"
                ) from e
        return self.execute or ""

    def to_session_state(self) -> SessionState:
        properties = {"user": self.user, "source": self.source}
        if self.server:
            properties["server"] = self.server
        for key, value in self.session_properties.items():
            properties[f"session.{key}"] = value
        return SessionState(
            catalog=self.catalog,
            schema_name=self.schema_name,
            debug=self.debug,
            properties=properties,
        )


def parse_session_properties(pairs: Optional[List[str]]) -> Dict[str, str]:
    """Parses repeated `--session key=value` flags."""
    properties = {}
    for pair in pairs or []:
        key, sep, value = pair.partition("=")
        if not sep or not key.strip():
            raise ConfigurationError(
                f"Session property must be in the form key=value: '{pair}'"
            )
        properties[key.strip()] = value.strip()
    return properties


def load_config_file(path: Path) -> Dict[str, Any]:
    """Reads the YAML config file. A missing file is an empty config."""
    if not path.is_file():
        logger.debug("config.file.missing", path=str(path))
        return {}
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(f"Could not read config file {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigurationError(f"Config file {path} must contain a mapping.")
    logger.debug("config.file.loaded", path=str(path), keys=sorted(data))
    return data


def build_client_options(config_path: Optional[Path] = None, **overrides) -> ClientOptions:
    """
    Merges the config file with CLI values. Overrides that are None (flags
    the user did not pass) leave the file's value in place.
    """
    values = load_config_file(config_path or DEFAULT_CONFIG_FILE)
    values.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return ClientOptions(**values)
    except ValidationError as e:
        raise ConfigurationError(f"Invalid configuration: {e}") from e
