# rollermon

`rollermon` watches the commitment pools of configured chains and reacts
when queued commitments are not rolled up in time. It offers two monitors,
each run periodically by a small asyncio scheduler
(`rollermon.scheduler.Scheduler`):

- **`RollerMonitor`** (`rollermon.roller_monitor`) looks at the first queued
  commitment of every enabled pool contract of version 6 or later. When that
  commitment's block number plus the chain's maximum rollup delay is at or
  below the latest block number, it pushes an alert through a notification
  channel. Chains are checked concurrently; the first error met is raised.
- **`MonitorRollup`** (`rollermon.rollup_monitor`) checks every chain for
  enabled pool contracts (version 6 or later) with a non-zero queued
  commitment count, and then runs a rollup for each such chain in turn. A
  chain whose check fails counts as not needing a rollup; a failed rollup is
  logged and the next chain is still rolled up.

## Installation

```
pip install .
```

The package has no dependencies outside the standard library. The test
suite needs the `test` extra (`pytest`, `pytest-asyncio`).

## Configuration

`rollermon.config` holds the configuration dataclasses
(`RollerMonitorConfig`, `MonitorRollupConfig`, `SchedulerConfig`,
`NotificationConfig`, `ChainMonitorConfig`, `ClientOptions`,
`MystikoConfigOptions`) and the loaders.

Configuration comes from an optional JSON file, overlaid with environment
variables. Variable names start with a prefix followed by the dot-separated
key path; key matching ignores case. Values from the environment are
converted to the field's type (integers, and booleans such as `true`/`false`).

| Monitor          | Prefix                    | Loader                        |
|------------------|---------------------------|-------------------------------|
| Roller monitor   | `MYSTIKO_ROLLER_MONITOR`  | `load_roller_monitor_config`  |
| Rollup monitor   | `MYSTIKO_MONITOR_ROLLUP`  | `load_monitor_rollup_config`  |

For example, `MYSTIKO_ROLLER_MONITOR.CHAINS.1.MAX_ROLLUP_DELAY_BLOCK=1000`
sets the delay limit for chain 1, and
`MYSTIKO_ROLLER_MONITOR.NOTIFICATION.TOPIC_ARN=test_topic` sets the topic that
alerts go to. `load_config(config_type, config_path, env_prefix, environ)` is
the general loader behind both; `environ` defaults to `os.environ`.

Missing files, files other than `.json`, bad values, negative integers and
out-of-range values raise `ConfigError`. When a `scheduler` section is given,
it must include `status_server_port`.

If a chain has no configured limit,
`RollerMonitorConfig.get_max_rollup_delay_block(chain_id)` falls back to
`default_max_delay_block(chain_id)`, for example 500 blocks for chains 1 and
5, and 2000 for chains without a built-in value.

Scheduler defaults:

| Setting                       | Roller monitor | Rollup monitor |
|-------------------------------|----------------|----------------|
| `interval_ms`                 | 7 200 000      | 120 000        |
| `task_timeout_ms`             | 60 000         | 600 000 000    |
| `no_retry_on_timeout`         | false          | false          |
| `max_retry_times`             | 0              | 0              |
| `status_server_bind_address`  | `0.0.0.0`      | `0.0.0.0`      |
| `status_server_port`          | 21828          | 21829          |

`to_safe_json(config)` renders a configuration as a JSON string.

## Usage

```python
from rollermon.config import load_roller_monitor_config
from rollermon.roller_monitor import start_monitor_with_config


async def run(mystiko_config, providers, notification, sequencer):
    config = load_roller_monitor_config("monitor.json")
    scheduler = await start_monitor_with_config(
        config, mystiko_config, providers, notification, sequencer
    )
    await scheduler.wait_shutdown()
```

`mystiko_config` is a `rollermon.chains.MystikoConfig` listing `ChainConfig`
entries and their `PoolContract`s. The other arguments are objects you
supply, with coroutine methods:

- `providers.get_provider(chain_id)` returns a provider with
  `get_block_number()` and `get_queued_commitments(address)` (for the roller
  monitor) or `get_commitment_queued_count(address)` (for the rollup monitor);
- `sequencer.get_commitments(chain_id, address, hashes)` returns records with
  a `block_number`;
- `notification.push(message)` publishes a `rollermon.alert.PublishInput`,
  built from a `MonitorAlert` with `into_message()`.

Contract addresses are checked with `rollermon.chains.parse_address`, which
accepts 40 hex digits with an optional `0x` prefix.

The rollup monitor is started with `load_monitor_rollup_config` and
`rollermon.rollup_monitor.start_monitor_rollup_with_config(config,
mystiko_config, providers, rollup)`, where `rollup` is a coroutine function
taking a chain id and performing that chain's rollup.

The scheduler runs the task at once and then every `interval_ms`. A run that
times out is retried unless `no_retry_on_timeout` is set; a run that raises a
`MonitorError` is retried when the retry policy allows it. Either way, at most
`max_retry_times` retries are made. `scheduler.stop()` stops it;
`scheduler.wait_shutdown()` waits until it is stopped or SIGINT/SIGTERM
arrives, then stops it.

## Logging

`rollermon.trace.roller_monitor_trace_init(config)` and
`monitor_rollup_trace_init(config)` set the level of the package's own
loggers from `logging_level` and that of the root logger from
`extern_logging_level`, adding a stream handler if the root logger has none.
Level names are `off`, `error`, `warn`, `info`, `debug` and `trace`;
`parse_level(name)` raises `ParseLevelError` for anything else.

## Errors

All errors derive from `rollermon.errors.MonitorError`. `DefaultRetryPolicy`
(roller monitor) retries `ProviderError`, `SequencerClientError` and
`PushMessageError`; `RollupRetryPolicy` (rollup monitor) retries
`ProviderError` only.

## What this package does not do

- It has no command-line program; the monitors are started from your own
  code.
- It serves no status endpoint: `status_server_bind_address` and
  `status_server_port` are kept on the scheduler but nothing listens on them.
- It has no chain providers, sequencer client or notification service of its
  own, does not load chain configuration from `MystikoConfigOptions`, and
  does not implement the rollup itself. These are supplied by the caller.