"""Monitor that alerts when queued commitments are not rolled up in time."""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from rollermon.alert import MonitorAlert
from rollermon.chains import MystikoConfig, parse_address
from rollermon.config import DefaultRetryPolicy, RollerMonitorConfig, to_safe_json
from rollermon.errors import (
    ChainConfigNotFoundError,
    ContractCallError,
    ConvertContractAddressError,
    MonitorError,
    ProviderError,
    PushMessageError,
    SequencerClientError,
)
from rollermon.scheduler import Scheduler
from rollermon.trace import roller_monitor_trace_init

logger = logging.getLogger(__name__)

_MIN_POOL_VERSION = 6


class RollerMonitor:
    """Checks every pool contract for commitments stuck in the rollup queue.

    ``providers.get_provider(chain_id)`` yields a provider offering
    ``get_block_number()`` and ``get_queued_commitments(address)``;
    ``sequencer.get_commitments(chain_id, address, hashes)`` returns records
    with a ``block_number``; ``notification.push(message)`` publishes an alert.
    All of them are coroutines.
    """

    def __init__(self, config: RollerMonitorConfig, mystiko_config: MystikoConfig, sequencer, providers, notification):
        self.config = config
        self.mystiko_config = mystiko_config
        self.sequencer = sequencer
        self.providers = providers
        self.notification = notification

    async def run(self, args: Any = None) -> None:
        """Check all chains concurrently and raise the first error met."""
        logger.info("roller_monitor start to run with args: %r", args)
        results = await asyncio.gather(
            *(self.check_chain(chain.chain_id, chain.name) for chain in self.mystiko_config.chains),
            return_exceptions=True,
        )
        error = next((result for result in results if isinstance(result, BaseException)), None)
        if error is not None:
            logger.error("roller_monitor raised error when running: %s", error)
            raise error
        logger.info("roller_monitor run successfully")

    async def check_chain(self, chain_id: int, chain_name: str) -> None:
        """Check every enabled pool contract of a chain."""
        logger.info("check chain=%s", chain_name)
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
                await self.check_contract(chain_id, chain_name, contract.address, provider)

    async def check_contract(self, chain_id: int, chain_name: str, contract_address: str, provider) -> None:
        """Alert when the oldest queued commitment has waited too many blocks."""
        logger.info("check chain=%s contract=%s", chain_name, contract_address)
        try:
            address = parse_address(contract_address)
        except ValueError:
            raise ConvertContractAddressError(contract_address) from None
        try:
            queued = await provider.get_queued_commitments(address)
        except Exception as exc:
            raise ContractCallError("get_queued_commitments", str(exc)) from exc
        try:
            latest_block_number = await provider.get_block_number()
        except ProviderError:
            raise
        except Exception as exc:
            raise ProviderError(str(exc)) from exc
        if not queued:
            return
        commitment_hash = queued[0]
        try:
            commitments = await self.sequencer.get_commitments(chain_id, address, [commitment_hash])
        except SequencerClientError:
            raise
        except Exception as exc:
            raise SequencerClientError(str(exc)) from exc
        max_delay_block = self.config.get_max_rollup_delay_block(chain_id)
        if not commitments or commitments[0].block_number + max_delay_block > latest_block_number:
            return
        logger.warning(
            "commitment=%s is not included in the latest %s blocks", commitment_hash, max_delay_block
        )
        error_message = (
            "🚨 Roller Monitor Alert 🚨\n\n"
            f"chain={chain_name} contract={contract_address} commitment={commitment_hash} "
            f"is not included for {max_delay_block} blocks"
        )
        alert = MonitorAlert(error_message=error_message, topic_arn=self.config.notification.topic_arn)
        try:
            await self.notification.push(alert.into_message())
        except Exception as exc:
            raise PushMessageError(repr(exc)) from exc


async def start_monitor_with_config(config, mystiko_config, providers, notification, sequencer) -> Scheduler:
    """Set up logging, build the roller monitor and start it on a scheduler."""
    roller_monitor_trace_init(config)
    logger.info("starting roller_monitor with config: %s", to_safe_json(config))
    monitor = RollerMonitor(config, mystiko_config, sequencer, providers, notification)
    scheduler = Scheduler(
        monitor,
        config.scheduler.status_server_bind_address,
        config.scheduler.status_server_port,
    )
    await scheduler.start(None, config.scheduler.start_options(DefaultRetryPolicy()))
    return scheduler