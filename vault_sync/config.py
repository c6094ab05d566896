"""Configuration models and loaders for vault-sync."""

import re
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import yaml
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
    field_validator,
    model_validator,
)

from .errors import ConfigError, FormatError

DEFAULT_FILE = "vault.yaml"
DEFAULT_EXPORT_PATH = "secret"
DEFAULT_VAULT_ADDR = "https://127.0.0.1:8200"

BOOL_TAG = "tag:yaml.org,2002:bool"
TIMESTAMP_TAG = "tag:yaml.org,2002:timestamp"


class KeyFileLoader(yaml.SafeLoader):
    """
    SafeLoader with YAML 1.2 scalars: only true/false are booleans and
    dates stay strings, so `on: 2024-01-01` reads as {"on": "2024-01-01"}.
    """


KeyFileLoader.yaml_implicit_resolvers = {
    first: [(tag, regexp) for tag, regexp in resolvers if tag not in (BOOL_TAG, TIMESTAMP_TAG)]
    for first, resolvers in yaml.SafeLoader.yaml_implicit_resolvers.items()
}
KeyFileLoader.add_implicit_resolver(
    BOOL_TAG, re.compile(r"^(?:true|True|TRUE|false|False|FALSE)$"), list("tTfF")
)

_json_values = TypeAdapter(Dict[str, Any])


class State(str, Enum):
    """Desired state of a key in the backend."""

    PRESENT = "present"
    ABSENT = "absent"


class Mode(str, Enum):
    IMPORT = "import"
    EXPORT = "export"


class Record(BaseModel):
    """A single secret: where it lives, whether it should exist, and its data."""

    model_config = ConfigDict(extra="forbid")

    key: str = Field(min_length=1)
    state: State = State.PRESENT
    values: Optional[Dict[str, Any]] = None

    @field_validator("state", mode="before")
    @classmethod
    def empty_state_is_present(cls, v: Any) -> Any:
        """Older exports write `state: ""` for keys that should exist."""
        if v is None or v == "":
            return State.PRESENT
        return v

    @field_validator("values")
    @classmethod
    def json_compatible_values(cls, v: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        """Values are sent to the backend as JSON; dates and binary become strings."""
        if v is None:
            return v
        try:
            return _json_values.dump_python(v, mode="json")
        except ValueError as e:
            raise ValueError(f"values of key are not JSON compatible: {e}") from e

    @model_validator(mode="after")
    def check_values(self) -> "Record":
        """Values are required unless the key is marked absent."""
        if self.state == State.PRESENT and self.values is None:
            raise ValueError(f"key '{self.key}' needs values unless state is absent")
        return self

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {"key": self.key}
        if self.state == State.ABSENT:
            data["state"] = self.state.value
        else:
            data["values"] = self.values
        return data


class RecordSet(BaseModel):
    """Root of a key file: an ordered list of records under ``keys``."""

    model_config = ConfigDict(extra="forbid")

    keys: List[Record]

    @classmethod
    def from_yaml(cls, content: Union[str, bytes]) -> "RecordSet":
        """
        Parse key file content.

        Raises:
            FormatError: If the content is not YAML or does not have the
                expected shape
        """
        try:
            data = yaml.load(content, Loader=KeyFileLoader)
        except yaml.YAMLError as e:
            raise FormatError(f"Unable to parse key file: {e}") from e

        if not isinstance(data, dict):
            raise FormatError("Key file must contain a mapping with a 'keys' list")

        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise FormatError(f"Invalid key file: {e}") from e

    def to_yaml(self) -> str:
        """Serialize to the key file format, keeping record and value order."""
        data = {"keys": [record.to_dict() for record in self.keys]}
        return yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)


def split_export_paths(values: Iterable[str]) -> Tuple[str, ...]:
    """
    Flatten repeated and comma-separated path options into an ordered set.

    Examples:
        ['secret'] -> ('secret',)
        ['secret,kv', 'secret'] -> ('secret', 'kv')
    """
    paths: List[str] = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part and part not in paths:
                paths.append(part)
    return tuple(paths)


def token_from_disk(path: Union[str, Path] = "~/.vault-token") -> str:
    """Read a token left behind by ``vault login``, or '' if there is none."""
    try:
        return Path(path).expanduser().read_text().strip()
    except (OSError, UnicodeDecodeError):
        return ""


class RunConfig(BaseModel):
    """Options for a single import or export run, fixed at startup."""

    model_config = ConfigDict(frozen=True)

    file: Path
    mode: Mode
    export_paths: Tuple[str, ...] = (DEFAULT_EXPORT_PATH,)
    ignore_errors: bool = False
    vault_addr: str = DEFAULT_VAULT_ADDR
    vault_token: str
    verbose: bool = False

    @classmethod
    def from_options(
        cls,
        file: Optional[str],
        do_import: bool,
        do_export: bool,
        export_paths: Iterable[str] = (DEFAULT_EXPORT_PATH,),
        ignore_errors: bool = False,
        vault_addr: Optional[str] = None,
        vault_token: Optional[str] = None,
        verbose: bool = False,
    ) -> "RunConfig":
        """
        Validate command-line options and build the run configuration.

        The token falls back to ``~/.vault-token`` when not given. No
        backend connection is made here.

        Raises:
            ConfigError: If any precondition for the run is not met
        """
        token = (vault_token or "").strip() or token_from_disk()
        if not token:
            raise ConfigError("You need to set vault-token")

        if not file:
            raise ConfigError("You need to specify a file")

        if do_import == do_export:
            raise ConfigError("You need to either import or export")

        path = Path(file)
        if do_export and path.exists():
            raise ConfigError("Output file exists, stopping now.")
        if do_import and not path.exists():
            raise ConfigError("Input file does not exist, stopping now.")

        paths = split_export_paths(export_paths)
        if do_export and not paths:
            raise ConfigError("You need to specify at least one export path")

        return cls(
            file=path,
            mode=Mode.IMPORT if do_import else Mode.EXPORT,
            export_paths=paths,
            ignore_errors=ignore_errors,
            vault_addr=vault_addr or DEFAULT_VAULT_ADDR,
            vault_token=token,
            verbose=verbose,
        )
