"""Errors raised by the roller monitor and the rollup monitor."""

from __future__ import annotations


class MonitorError(Exception):
    """Base class for every error raised by the monitors."""


class ConfigError(MonitorError):
    """The configuration could not be loaded or parsed."""

    def __init__(self, reason: object) -> None:
        super().__init__(f"failed to parse config: {reason}")
        self.reason = reason


class ChainConfigNotFoundError(MonitorError):
    """No chain configuration exists for the requested chain id."""

    def __init__(self, chain_id: int) -> None:
        super().__init__(f"chain={chain_id} config not found error")
        self.chain_id = chain_id


class ConvertContractAddressError(MonitorError):
    """A contract address string could not be converted to an address."""

    def __init__(self, address: str) -> None:
        super().__init__(f"convert contract address={address} error")
        self.address = address


class ContractCallError(MonitorError):
    """A contract function call failed."""

    def __init__(self, function: str, message: str) -> None:
        super().__init__(f"call contract func={function} meet error: {message}")
        self.function = function
        self.message = message


class PushMessageError(MonitorError):
    """A notification message could not be pushed."""

    def __init__(self, message: str) -> None:
        super().__init__(f"failed to push notification message: {message}")
        self.message = message


class ParseLevelError(MonitorError):
    """A logging level name is not recognised."""

    def __init__(
        self,
        message: str = "attempted to convert a string that doesn't match an existing log level",
    ) -> None:
        super().__init__(message)


class SchedulerError(MonitorError):
    """The scheduler failed to start, run or stop a task."""


class SequencerClientError(MonitorError):
    """The sequencer client failed."""


class ProviderError(MonitorError):
    """A chain provider call failed."""


class RollupError(MonitorError):
    """Running a rollup for a chain failed."""