from enum import Enum
import configparser
import re
from os import environ
from os.path import exists
from typing import Any
import logging

from pydantic import (
    BaseModel,
    Field,
    ValidationError,
    ValidationInfo,
    computed_field,
    field_validator,
)

logger = logging.getLogger(__name__)

_PATH = "app{suffix}.conf"
_CONFIG = None

ERROR_POLICIES = ("accept", "reject", "flag")


def _convert_conf_to_sec(value: str) -> int:
    conversion_map = {"s": 1, "m": 60, "h": 3600, "d": 86400}
    match = re.match(r"^(\d+)([smhd])$", value)
    if not match:
        raise ValueError(
            f"Incorrect input, must be digits with {conversion_map.keys()}"
        )

    number = int(match.group(1))
    unit = match.group(2)

    return number * conversion_map[unit]


class LogLevel(str, Enum):
    debug = "debug"
    info = "info"
    warning = "warning"
    error = "error"
    critical = "critical"


class ConfigSection(BaseModel):
    """
    Base for all configuration sections. An INI key that is present but left empty
    falls back to the default of its field.
    """

    @field_validator("*", mode="before")
    @classmethod
    def blank_is_default(cls, v: Any, info: ValidationInfo) -> Any:
        if not isinstance(v, str) or v.strip() != "" or info.field_name is None:
            return v

        field = cls.model_fields[info.field_name]
        if field.is_required():
            return v
        return field.get_default(call_default_factory=True)


class ConfigApp(ConfigSection):
    loglevel: LogLevel = Field(default=LogLevel.info)


class ConfigUvicorn(ConfigSection):
    swagger_enabled: bool = Field(default=False)
    docs_url: str = Field(default="/docs")
    redoc_url: str = Field(default="/redoc")
    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, gt=0, lt=65535)
    reload: bool = Field(default=True)
    reload_delay: float = Field(default=1)
    reload_dirs: list[str] = Field(default=["app"])
    use_ssl: bool = Field(default=False)
    ssl_base_dir: str | None = Field(default=None)
    ssl_cert_file: str | None = Field(default=None)
    ssl_key_file: str | None = Field(default=None)

    @field_validator("reload_dirs", mode="before")
    @classmethod
    def split_reload_dirs(cls, v: Any) -> Any:
        if isinstance(v, str):
            return [d.strip() for d in v.split(",") if d.strip()]
        return v


class ConfigFhir(ConfigSection):
    # Base url of the FHIR server that stores the resources locally
    base_url: str = Field(min_length=1)
    timeout: int = Field(default=10, gt=0)
    retries: int = Field(default=3, ge=1)
    backoff: float = Field(default=0.1, ge=0)
    strict_validation: bool = Field(default=False)


class ConfigAdapter(ConfigSection):
    base_url: str = Field(min_length=1)
    # Identifies this gateway in the relay path of the adapter
    client_id: str = Field(min_length=1)
    client_resource_id_header: str = Field(default="X-Client-Resource-Id")
    timeout: int = Field(default=10, gt=0)
    liveness_path: str = Field(default="health")
    authorization_path: str = Field(default="authorized")


class ConfigDhis2(ConfigSection):
    base_url: str = Field(min_length=1)
    client_id: str = Field(min_length=1)
    client_secret: str = Field(min_length=1)
    timeout: int = Field(default=10, gt=0)
    token_safety_margin: str = Field(
        default="60s",
        description="Time before expiry at which an access token is refreshed",
    )

    @field_validator("token_safety_margin")
    @classmethod
    def validate_token_safety_margin(cls, v: str) -> str:
        _convert_conf_to_sec(v)
        return v

    @computed_field  # type: ignore[prop-decorator]
    @property
    def token_safety_margin_in_sec(self) -> int:
        return _convert_conf_to_sec(self.token_safety_margin)


class ConfigSync(ConfigSection):
    check_if_authorized_by_adapter: bool = Field(default=False)
    check_if_adapter_is_running: bool = Field(default=False)
    store_resource_before_update: bool = Field(default=False)
    authorization_gate_enabled: bool = Field(default=False)
    error_policy: str = Field(
        description="Policy applied when relaying to the adapter fails, can be 'accept', 'reject' or 'flag'",
    )

    @field_validator("error_policy")
    @classmethod
    def validate_error_policy(cls, value: str) -> str:
        if value not in ERROR_POLICIES:
            raise ValueError(f"error_policy must be one of {', '.join(ERROR_POLICIES)}")
        return value


class ConfigStats(ConfigSection):
    enabled: bool = Field(default=False)
    host: str | None = Field(default=None)
    port: int | None = Field(default=None)
    module_name: str | None = Field(default=None)


class Config(BaseModel):
    app: ConfigApp
    uvicorn: ConfigUvicorn
    fhir: ConfigFhir
    adapter: ConfigAdapter
    dhis2: ConfigDhis2
    sync: ConfigSync
    stats: ConfigStats


def read_ini_file(path: str) -> Any:
    ini_data = configparser.ConfigParser()
    ini_data.read(path)

    ret = {}
    for section in ini_data.sections():
        ret[section] = dict(ini_data[section])

    return ret


def reset_config() -> None:
    global _CONFIG
    _CONFIG = None


def set_config(config: Config) -> None:
    global _CONFIG
    _CONFIG = config


def get_config(path: str | None = None) -> Config:
    global _CONFIG
    global _PATH

    if _CONFIG is not None:
        return _CONFIG

    if path is None:
        suffix = environ.get("APP_ENV", "")
        if suffix:
            suffix = f".{suffix}"
        path = _PATH.replace("{suffix}", suffix)
        logger.info(f"Reading configuration using file: {path}")

    if not exists(path):
        raise FileNotFoundError(f"Config file not found: {path}")

    # To be inline with other python code, we use INI-type files for configuration. Since this isn't
    # a standard format for pydantic, we need to do some manual parsing first.
    ini_data = read_ini_file(path)
    for optional_section in ("app", "uvicorn", "stats"):
        ini_data.setdefault(optional_section, {})

    try:
        _CONFIG = Config(**ini_data)
    except ValidationError as e:
        logger.error(f"Configuration validation error: {e}")
        raise e

    return _CONFIG
