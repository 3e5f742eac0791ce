"""Chain and pool-contract configuration that the monitors walk through."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

_HEX_DIGITS = frozenset("0123456789abcdef")
_ADDRESS_HEX_LENGTH = 40


@dataclass(frozen=True)
class PoolContract:
    """A commitment pool contract deployed on a chain."""

    address: str
    version: int
    disabled: bool = False


@dataclass(frozen=True)
class ChainConfig:
    """A chain and the pool contracts deployed on it."""

    chain_id: int
    name: str
    pool_contracts: tuple[PoolContract, ...] = ()


@dataclass
class MystikoConfig:
    """The set of chains the monitors look after."""

    chains: list[ChainConfig] = field(default_factory=list)

    def find_chain(self, chain_id: int) -> Optional[ChainConfig]:
        """Return the configuration of a chain, or None when it is unknown."""
        return next((chain for chain in self.chains if chain.chain_id == chain_id), None)


def parse_address(address: str) -> str:
    """Validate a hex contract address and return it in lower-case ``0x`` form."""
    body = address[2:] if address[:2] in ("0x", "0X") else address
    if len(body) != _ADDRESS_HEX_LENGTH or not set(body.lower()) <= _HEX_DIGITS:
        raise ValueError(f"invalid address: {address!r}")
    return "0x" + body.lower()