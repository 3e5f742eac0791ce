"""Configuration of the roller monitor and the rollup monitor."""

import json
import os
import types
from dataclasses import MISSING, asdict, dataclass, field, fields, is_dataclass, replace
from pathlib import Path
from typing import Any, Mapping, Optional, Union, get_args, get_origin

from rollermon.errors import (
    ConfigError,
    MonitorError,
    ProviderError,
    PushMessageError,
    SequencerClientError,
)

ROLLER_MONITOR_ENV_PREFIX = "MYSTIKO_ROLLER_MONITOR"
MONITOR_ROLLUP_ENV_PREFIX = "MYSTIKO_MONITOR_ROLLUP"
_ENV_SEPARATOR = "."
_U16_MAX = 0xFFFF
_U32_MAX = 0xFFFFFFFF
_TRUE_WORDS = frozenset({"true", "1", "yes", "on"})
_FALSE_WORDS = frozenset({"false", "0", "no", "off"})


@dataclass
class ClientOptions:
    """Connection options of the sequencer client."""

    host: Optional[str] = None
    port: Optional[int] = None
    is_ssl: Optional[bool] = None
    ssl_cert: Optional[str] = None
    ssl_cert_path: Optional[str] = None
    ssl_server_name: Optional[str] = None


@dataclass
class MystikoConfigOptions:
    """Where the chain configuration is loaded from."""

    file_path: Optional[str] = None
    is_testnet: bool = False
    is_staging: bool = False
    git_revision: Optional[str] = None
    remote_base_url: Optional[str] = None


@dataclass
class StartOptions:
    """Options the scheduler is started with."""

    interval_ms: int
    no_retry_on_timeout: bool = False
    task_timeout_ms: Optional[int] = None
    max_retry_times: int = 0
    retry_policy: Any = None


@dataclass
class SchedulerConfig:
    """Scheduling of the periodic monitor task."""

    interval_ms: int = 7_200_000
    task_timeout_ms: Optional[int] = 60_000
    no_retry_on_timeout: bool = False
    max_retry_times: int = field(default=0, metadata={"max": _U32_MAX})
    status_server_bind_address: str = "0.0.0.0"
    # Has no serde default in a present section, so it must be given there.
    status_server_port: int = field(default=21828, metadata={"required": True, "max": _U16_MAX})

    def start_options(self, retry_policy=None) -> StartOptions:
        """Build the scheduler start options, using the given retry policy."""
        return StartOptions(
            interval_ms=self.interval_ms,
            no_retry_on_timeout=self.no_retry_on_timeout,
            task_timeout_ms=self.task_timeout_ms,
            max_retry_times=self.max_retry_times,
            retry_policy=retry_policy,
        )


def _rollup_scheduler_config() -> SchedulerConfig:
    return SchedulerConfig(
        interval_ms=120_000,
        task_timeout_ms=600_000_000,
        status_server_port=21829,
    )


@dataclass
class NotificationConfig:
    """Where alerts are published."""

    topic_arn: Optional[str] = None
    region: str = ""


@dataclass
class ChainMonitorConfig:
    """Per-chain monitor settings."""

    max_rollup_delay_block: int


@dataclass
class RollerMonitorConfig:
    """Configuration of the roller monitor."""

    logging_level: str = "info"
    extern_logging_level: str = "warn"
    chains: dict[int, ChainMonitorConfig] = field(default_factory=dict)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    sequencer: ClientOptions = field(default_factory=ClientOptions)
    mystiko: MystikoConfigOptions = field(default_factory=MystikoConfigOptions)
    notification: NotificationConfig = field(default_factory=NotificationConfig)

    def get_max_rollup_delay_block(self, chain_id: int) -> int:
        """Blocks a queued commitment may wait before an alert is raised."""
        chain = self.chains.get(chain_id)
        if chain is not None:
            return chain.max_rollup_delay_block
        return default_max_delay_block(chain_id)


@dataclass
class MonitorRollupConfig:
    """Configuration of the rollup monitor."""

    logging_level: str = "info"
    extern_logging_level: str = "warn"
    scheduler: SchedulerConfig = field(default_factory=_rollup_scheduler_config)
    mystiko: MystikoConfigOptions = field(default_factory=MystikoConfigOptions)


class DefaultRetryPolicy:
    """Retry policy of the roller monitor."""

    def should_retry(self, error: MonitorError) -> bool:
        return isinstance(error, (ProviderError, SequencerClientError, PushMessageError))


class RollupRetryPolicy:
    """Retry policy of the rollup monitor."""

    def should_retry(self, error: MonitorError) -> bool:
        return isinstance(error, ProviderError)


def default_max_delay_block(chain_id: int) -> int:
    """The default rollup delay, in blocks, for a chain."""
    if chain_id in (1, 5):
        return 500
    if chain_id in (56, 97, 43113):
        return 1875
    if chain_id in (137, 80001, 8453, 84531):
        return 2500
    if chain_id == 4002:
        return 3125
    if chain_id == 1287:
        return 292
    return 2000


def _lower_keys(data: Any) -> Any:
    if isinstance(data, Mapping):
        return {str(key).lower(): _lower_keys(value) for key, value in data.items()}
    return data


def _deep_merge(base: dict, override: Mapping) -> dict:
    merged = dict(base)
    for key, value in override.items():
        current = merged.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            merged[key] = _deep_merge(current, value)
        else:
            merged[key] = value
    return merged


def _read_file(path: Path) -> dict:
    if not path.is_file():
        raise ConfigError(f'configuration file "{path}" not found')
    if path.suffix.lower() != ".json":
        raise ConfigError(f'configuration file "{path}" has an unsupported format')
    try:
        with path.open(encoding="utf-8") as handle:
            data = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise ConfigError(f'cannot read "{path}": {exc}') from exc
    if not isinstance(data, Mapping):
        raise ConfigError(f'configuration file "{path}" does not hold a mapping')
    return _lower_keys(data)


def _env_tree(prefix: str, environ: Mapping[str, str]) -> dict:
    head = prefix.lower() + _ENV_SEPARATOR
    tree: dict = {}
    for key, value in environ.items():
        lowered = key.lower()
        if not lowered.startswith(head):
            continue
        parts = lowered[len(head):].split(_ENV_SEPARATOR)
        if not all(parts):
            continue
        node = tree
        for part in parts[:-1]:
            child = node.get(part)
            if not isinstance(child, dict):
                child = node[part] = {}
            node = child
        node[parts[-1]] = value
    return tree


def _convert(hint: Any, raw: Any, path: str, current: Any) -> Any:
    origin = get_origin(hint)
    if origin in (Union, types.UnionType):
        if raw is None:
            return None
        inner = next(arg for arg in get_args(hint) if arg is not type(None))
        return _convert(inner, raw, path, current)
    if origin is dict:
        key_type, value_type = get_args(hint)
        if not isinstance(raw, Mapping):
            raise ConfigError(f"invalid type at {path}: expected a mapping")
        return {
            _convert(key_type, key, path, None): _convert(value_type, value, f"{path}.{key}", None)
            for key, value in raw.items()
        }
    if is_dataclass(hint):
        return _build(hint, raw, path, current)
    if hint is bool:
        if isinstance(raw, bool):
            return raw
        if isinstance(raw, str) and raw.strip().lower() in _TRUE_WORDS | _FALSE_WORDS:
            return raw.strip().lower() in _TRUE_WORDS
        raise ConfigError(f"invalid boolean at {path}: {raw!r}")
    if hint is int:
        if isinstance(raw, bool):
            raise ConfigError(f"invalid integer at {path}: {raw!r}")
        if isinstance(raw, int):
            value = raw
        elif isinstance(raw, str):
            try:
                value = int(raw.strip())
            except ValueError as exc:
                raise ConfigError(f"invalid integer at {path}: {raw!r}") from exc
        else:
            raise ConfigError(f"invalid integer at {path}: {raw!r}")
        if value < 0:
            raise ConfigError(f"invalid value at {path}: {value} is negative")
        return value
    if hint is str:
        if isinstance(raw, str):
            return raw
        if isinstance(raw, (int, float)) and not isinstance(raw, bool):
            return str(raw)
        raise ConfigError(f"invalid string at {path}: {raw!r}")
    raise ConfigError(f"unsupported type at {path}")


def _build(cls: type, raw: Any, path: str, base: Any) -> Any:
    if not isinstance(raw, Mapping):
        raise ConfigError(f"invalid type at {path or 'root'}: expected a mapping")
    values = {}
    for item in fields(cls):
        where = f"{path}.{item.name}" if path else item.name
        if item.name not in raw:
            has_default = item.default is not MISSING or item.default_factory is not MISSING
            if item.metadata.get("required") or not has_default:
                raise ConfigError(f"missing field `{where}`")
            continue
        current = getattr(base, item.name) if base is not None else None
        value = _convert(item.type, raw[item.name], where, current)
        limit = item.metadata.get("max")
        if limit is not None and value is not None and value > limit:
            raise ConfigError(f"invalid value at {where}: {value} is out of range")
        values[item.name] = value
    if base is None:
        return cls(**values)
    return replace(base, **values)


def load_config(config_type, config_path=None, env_prefix=None, environ=None):
    """Load a configuration from an optional JSON file overlaid by prefixed environment variables."""
    data: dict = {}
    if config_path is not None:
        data = _deep_merge(data, _read_file(Path(config_path)))
    if env_prefix:
        source = os.environ if environ is None else environ
        data = _deep_merge(data, _env_tree(env_prefix, source))
    return _build(config_type, data, "", config_type())


def load_roller_monitor_config(config_path=None) -> RollerMonitorConfig:
    """Load the roller monitor configuration."""
    return load_config(RollerMonitorConfig, config_path, ROLLER_MONITOR_ENV_PREFIX)


def load_monitor_rollup_config(config_path=None) -> MonitorRollupConfig:
    """Load the rollup monitor configuration."""
    return load_config(MonitorRollupConfig, config_path, MONITOR_ROLLUP_ENV_PREFIX)


def to_safe_json(config) -> str:
    """Render a configuration as a JSON string."""
    return json.dumps(asdict(config), default=str)