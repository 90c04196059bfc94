"""The interface through which executing code reaches the outside world."""

from __future__ import annotations

import abc
import enum
from dataclasses import dataclass
from typing import Sequence

from .common import Message, Output, _check_address, _check_u256

_U64_LIMIT = 1 << 64


class AccessStatus(enum.Enum):
    """State access status (EIP-2929)."""

    COLD = enum.auto()
    WARM = enum.auto()


class StorageStatus(enum.Enum):
    """Effect of a storage write."""

    UNCHANGED = enum.auto()
    """0 -> 0 or X -> X."""
    MODIFIED = enum.auto()
    """X -> Y."""
    MODIFIED_AGAIN = enum.auto()
    """X -> Y -> Z."""
    ADDED = enum.auto()
    """0 -> X."""
    DELETED = enum.auto()
    """X -> 0."""


@dataclass
class TxContext:
    """Transaction and block data for execution."""

    tx_gas_price: int = 0
    tx_origin: bytes = bytes(20)
    block_coinbase: bytes = bytes(20)
    block_number: int = 0
    block_timestamp: int = 0
    block_gas_limit: int = 0
    block_difficulty: int = 0
    chain_id: int = 0
    block_base_fee: int = 0

    def __post_init__(self) -> None:
        self.tx_origin = _check_address(self.tx_origin, "tx_origin")
        self.block_coinbase = _check_address(self.block_coinbase, "block_coinbase")
        for name in ("block_number", "block_timestamp", "block_gas_limit"):
            value = getattr(self, name)
            if not 0 <= value < _U64_LIMIT:
                raise ValueError(f"{name} does not fit in 64 bits: {value}")
        for name in ("tx_gas_price", "block_difficulty", "chain_id", "block_base_fee"):
            _check_u256(getattr(self, name), name)


class Host(abc.ABC):
    """Host context exposed to the EVM."""

    @abc.abstractmethod
    def account_exists(self, address: bytes) -> bool:
        """Tell whether an account exists."""

    @abc.abstractmethod
    def get_storage(self, address: bytes, key: bytes) -> bytes:
        """Return the 32-byte value of a storage key, zero if absent."""

    @abc.abstractmethod
    def set_storage(self, address: bytes, key: bytes, value: bytes) -> StorageStatus:
        """Write a storage key and report the kind of change."""

    @abc.abstractmethod
    def get_balance(self, address: bytes) -> int:
        """Return an account's balance, zero if it does not exist."""

    @abc.abstractmethod
    def get_code_size(self, address: bytes) -> int:
        """Return an account's code size, zero if it does not exist."""

    @abc.abstractmethod
    def get_code_hash(self, address: bytes) -> bytes:
        """Return an account's 32-byte code hash, zero if it does not exist."""

    @abc.abstractmethod
    def copy_code(self, address: bytes, offset: int, max_size: int) -> bytes:
        """Return at most ``max_size`` bytes of code from ``offset``; empty if out of range."""

    @abc.abstractmethod
    def selfdestruct(self, address: bytes, beneficiary: bytes) -> None:
        """Destroy an account, sending its funds to the beneficiary."""

    @abc.abstractmethod
    def call(self, msg: Message) -> Output:
        """Execute a message as a nested call."""

    @abc.abstractmethod
    def get_tx_context(self) -> TxContext:
        """Return the transaction context."""

    @abc.abstractmethod
    def get_block_hash(self, block_number: int) -> bytes:
        """Return a block's 32-byte hash, zero if unknown."""

    @abc.abstractmethod
    def emit_log(self, address: bytes, data: bytes, topics: Sequence[bytes]) -> None:
        """Record a log entry."""

    @abc.abstractmethod
    def access_account(self, address: bytes) -> AccessStatus:
        """Mark an account warm and return its previous status."""

    @abc.abstractmethod
    def access_storage(self, address: bytes, key: bytes) -> AccessStatus:
        """Mark a storage key warm and return its previous status."""