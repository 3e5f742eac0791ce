"""Monitor that triggers a rollup on chains with queued commitments."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Awaitable, Callable, Iterable

from rollermon.chains import MystikoConfig, parse_address
from rollermon.config import MonitorRollupConfig, RollupRetryPolicy, to_safe_json
from rollermon.errors import (
    ChainConfigNotFoundError,
    ContractCallError,
    ConvertContractAddressError,
    MonitorError,
    RollupError,
)
from rollermon.scheduler import Scheduler
from rollermon.trace import monitor_rollup_trace_init

logger = logging.getLogger(__name__)

_MIN_POOL_VERSION = 6


class MonitorRollup:
    """Finds chains whose pool contracts hold queued commitments and rolls them up.

    ``providers.get_provider(chain_id)`` yields a provider offering the
    coroutine ``get_commitment_queued_count(address)``; ``rollup`` is a
    coroutine function that performs the rollup of one chain.
    """

    def __init__(self, mystiko_config: MystikoConfig, providers, rollup: Callable[[int], Awaitable[Any]]):
        self.mystiko_config = mystiko_config
        self.providers = providers
        self._rollup_runner = rollup

    async def run(self, args: Any = None) -> None:
        """Check all chains concurrently, then roll up those that need it."""
        logger.info("monitor_rollup start to run with args: %r", args)
        results = await asyncio.gather(*(self.check_chain(chain.chain_id) for chain in self.mystiko_config.chains))
        await self.rollup([chain_id for chain_id, needs_rollup in results if needs_rollup])
        logger.info("monitor_rollup run successfully")

    async def check_chain(self, chain_id: int) -> tuple[int, bool]:
        """Return the chain id and whether it needs a rollup; errors count as no."""
        try:
            return chain_id, await self.check_chain_status(chain_id)
        except Exception as error:  # noqa: BLE001 - one failing chain must not stop the others
            logger.error("check_chain raised error: %s", error)
            return chain_id, False

    async def check_chain_status(self, chain_id: int) -> bool:
        """Whether any enabled pool contract of the chain has queued commitments."""
        logger.info("check chain=%s", chain_id)
        try:
            provider = await self.providers.get_provider(chain_id)
        except MonitorError:
            raise
        except Exception as exc:
            raise MonitorError(str(exc)) from exc
        chain_cfg = self.mystiko_config.find_chain(chain_id)
        if chain_cfg is None:
            raise ChainConfigNotFoundError(chain_id)
        for contract in chain_cfg.pool_contracts:
            if contract.version >= _MIN_POOL_VERSION and not contract.disabled:
                if await self.check_contract(chain_id, contract.address, provider):
                    return True
        return False

    async def check_contract(self, chain_id: int, contract_address: str, provider) -> bool:
        """Whether the contract has any queued commitments."""
        logger.info("check chain=%s contract=%s", chain_id, contract_address)
        try:
            address = parse_address(contract_address)
        except ValueError:
            raise ConvertContractAddressError(contract_address) from None
        try:
            queued = await provider.get_commitment_queued_count(address)
        except Exception as exc:
            raise ContractCallError("get_commitment_queued_count", str(exc)) from exc
        return queued != 0

    async def rollup(self, chains: Iterable[int]) -> None:
        """Roll up each chain in turn, logging failures and carrying on."""
        for chain_id in chains:
            try:
                await self.rollup_for_chain(chain_id)
            except Exception as error:  # noqa: BLE001 - a failed rollup must not stop the rest
                logger.error("rollup for chain %r raised error: %r", chain_id, error)

    async def rollup_for_chain(self, chain_id: int) -> None:
        """Run the rollup of one chain."""
        logger.info("rollup for chain=%s", chain_id)
        try:
            await self._rollup_runner(chain_id)
        except MonitorError:
            raise
        except Exception as exc:
            raise RollupError(str(exc)) from exc
        logger.info("rollup for chain=%s successfully", chain_id)


async def start_monitor_rollup_with_config(
    config: MonitorRollupConfig, mystiko_config: MystikoConfig, providers, rollup
) -> Scheduler:
    """Set up logging, build the rollup monitor and start it on a scheduler."""
    monitor_rollup_trace_init(config)
    logger.info("starting monitor_rollup with config: %s", to_safe_json(config))
    monitor = MonitorRollup(mystiko_config, providers, rollup)
    scheduler = Scheduler(
        monitor,
        config.scheduler.status_server_bind_address,
        config.scheduler.status_server_port,
    )
    await scheduler.start(None, config.scheduler.start_options(RollupRetryPolicy()))
    return scheduler