"""Instructions that read the message, the transaction context and account state.

Instructions that need the host are generators. They yield host requests
from :mod:`evmkit.continuation` and receive the answers through ``send``.
"""

from __future__ import annotations

from typing import Any, Callable, Generator, Tuple

from .common import EvmError, Revision, StatusCode, address_to_u256, u256_to_address
from .continuation import (
    AccessAccount,
    AccessStorage,
    AccountExists,
    EmitLog,
    GetBalance,
    GetBlockHash,
    GetCodeSize,
    GetStorage,
    GetTxContext,
    InterruptData,
    Selfdestruct,
    SetStorage,
)
from .host import AccessStatus, StorageStatus, TxContext
from .machine import ExecutionState
from .memory import verify_memory_region
from .properties import (
    ADDITIONAL_COLD_ACCOUNT_ACCESS_COST,
    COLD_ACCOUNT_ACCESS_COST,
    COLD_SLOAD_COST,
    WARM_STORAGE_READ_COST,
)

HostRequests = Generator[InterruptData, Any, None]

_WORD_SIZE = 32
_BLOCKHASH_WINDOW = 256


def _charge(state: ExecutionState, cost: int) -> None:
    state.gas_left -= cost
    if state.gas_left < 0:
        raise EvmError(StatusCode.OUT_OF_GAS)


def _word(value: int) -> bytes:
    return value.to_bytes(_WORD_SIZE, "big")


def _require_non_static(state: ExecutionState) -> None:
    if state.message.is_static:
        raise EvmError(StatusCode.STATIC_MODE_VIOLATION)


def _charge_cold_account(state: ExecutionState, address: bytes, cost: int) -> HostRequests:
    if state.evm_revision >= Revision.BERLIN:
        status = yield AccessAccount(address)
        if status is AccessStatus.COLD:
            _charge(state, cost)


def address(state: ExecutionState) -> None:
    """ADDRESS: push the address of the running account."""
    state.stack.push(address_to_u256(state.message.destination))


def caller(state: ExecutionState) -> None:
    """CALLER: push the sender of the message."""
    state.stack.push(address_to_u256(state.message.sender))


def callvalue(state: ExecutionState) -> None:
    """CALLVALUE: push the value sent with the message."""
    state.stack.push(state.message.value)


def balance(state: ExecutionState) -> HostRequests:
    """BALANCE: push the balance of the given account."""
    account = u256_to_address(state.stack.pop())
    yield from _charge_cold_account(state, account, ADDITIONAL_COLD_ACCOUNT_ACCESS_COST)
    value = yield GetBalance(account)
    state.stack.push(value)


def extcodesize(state: ExecutionState) -> HostRequests:
    """EXTCODESIZE: push the code size of the given account."""
    account = u256_to_address(state.stack.pop())
    yield from _charge_cold_account(state, account, ADDITIONAL_COLD_ACCOUNT_ACCESS_COST)
    size = yield GetCodeSize(account)
    state.stack.push(size)


def push_txcontext(state: ExecutionState, accessor: Callable[[TxContext], int]) -> HostRequests:
    """Push one field of the transaction context, chosen by ``accessor``."""
    tx_context = yield GetTxContext()
    state.stack.push(accessor(tx_context))


def origin_accessor(tx_context: TxContext) -> int:
    """ORIGIN value."""
    return address_to_u256(tx_context.tx_origin)


def coinbase_accessor(tx_context: TxContext) -> int:
    """COINBASE value."""
    return address_to_u256(tx_context.block_coinbase)


def gasprice_accessor(tx_context: TxContext) -> int:
    """GASPRICE value."""
    return tx_context.tx_gas_price


def timestamp_accessor(tx_context: TxContext) -> int:
    """TIMESTAMP value."""
    return tx_context.block_timestamp


def number_accessor(tx_context: TxContext) -> int:
    """NUMBER value."""
    return tx_context.block_number


def gaslimit_accessor(tx_context: TxContext) -> int:
    """GASLIMIT value."""
    return tx_context.block_gas_limit


def difficulty_accessor(tx_context: TxContext) -> int:
    """DIFFICULTY value."""
    return tx_context.block_difficulty


def chainid_accessor(tx_context: TxContext) -> int:
    """CHAINID value."""
    return tx_context.chain_id


def basefee_accessor(tx_context: TxContext) -> int:
    """BASEFEE value."""
    return tx_context.block_base_fee


def selfbalance(state: ExecutionState) -> HostRequests:
    """SELFBALANCE: push the balance of the running account."""
    value = yield GetBalance(state.message.destination)
    state.stack.push(value)


def blockhash(state: ExecutionState) -> HostRequests:
    """BLOCKHASH: push the hash of one of the 256 most recent blocks, zero otherwise."""
    number = state.stack.pop()

    tx_context = yield GetTxContext()
    upper_bound = tx_context.block_number
    lower_bound = max(0, upper_bound - _BLOCKHASH_WINDOW)

    header = bytes(_WORD_SIZE)
    if lower_bound <= number < upper_bound:
        header = yield GetBlockHash(number)

    state.stack.push(int.from_bytes(header, "big"))


def do_log(state: ExecutionState, num_topics: int) -> HostRequests:
    """LOGn: emit memory data with ``num_topics`` topics taken from the stack."""
    _require_non_static(state)

    offset = state.stack.pop()
    size = state.stack.pop()

    region = verify_memory_region(state, offset, size)
    if region is not None:
        # The data cost is deducted; running short is detected after the instruction.
        state.gas_left -= region.size * 8

    topics: Tuple[bytes, ...] = tuple(_word(state.stack.pop()) for _ in range(num_topics))

    data = bytes(state.memory[region.offset:region.end]) if region is not None else b""
    yield EmitLog(state.message.destination, data, topics)


def sload(state: ExecutionState) -> HostRequests:
    """SLOAD: push the value of a storage key of the running account."""
    key = _word(state.stack.pop())
    destination = state.message.destination

    if state.evm_revision >= Revision.BERLIN:
        status = yield AccessStorage(destination, key)
        if status is AccessStatus.COLD:
            # The warm read cost is already in the base cost table.
            _charge(state, COLD_SLOAD_COST - WARM_STORAGE_READ_COST)

    value = yield GetStorage(destination, key)
    state.stack.push(int.from_bytes(value, "big"))


def _sstore_cost(revision: Revision, status: StorageStatus, cold_cost: int) -> int:
    if status in (StorageStatus.UNCHANGED, StorageStatus.MODIFIED_AGAIN):
        if revision >= Revision.BERLIN:
            return cold_cost + WARM_STORAGE_READ_COST
        if revision == Revision.ISTANBUL:
            return 800
        if revision == Revision.CONSTANTINOPLE:
            return 200
        return 5000
    if status in (StorageStatus.MODIFIED, StorageStatus.DELETED):
        if revision >= Revision.BERLIN:
            return cold_cost + 5000 - COLD_SLOAD_COST
        return 5000
    return cold_cost + 20000


def sstore(state: ExecutionState) -> HostRequests:
    """SSTORE: write a storage key of the running account and charge for the change."""
    _require_non_static(state)

    if state.evm_revision >= Revision.ISTANBUL and state.gas_left <= 2300:
        raise EvmError(StatusCode.OUT_OF_GAS)

    key = _word(state.stack.pop())
    value = _word(state.stack.pop())
    destination = state.message.destination

    cold_cost = 0
    if state.evm_revision >= Revision.BERLIN:
        access = yield AccessStorage(destination, key)
        if access is AccessStatus.COLD:
            cold_cost = COLD_SLOAD_COST

    status = yield SetStorage(destination, key, value)
    _charge(state, _sstore_cost(state.evm_revision, status, cold_cost))


def selfdestruct(state: ExecutionState) -> HostRequests:
    """SELFDESTRUCT: destroy the running account in favour of a beneficiary."""
    _require_non_static(state)

    beneficiary = u256_to_address(state.stack.pop())
    destination = state.message.destination

    yield from _charge_cold_account(state, beneficiary, COLD_ACCOUNT_ACCESS_COST)

    revision = state.evm_revision
    if revision >= Revision.TANGERINE:
        sends_value = revision == Revision.TANGERINE
        if not sends_value:
            own_balance = yield GetBalance(destination)
            sends_value = own_balance != 0
        if sends_value:
            # From Tangerine Whistle on, sending value to a new account costs extra.
            exists = yield AccountExists(beneficiary)
            if not exists:
                _charge(state, 25000)

    yield Selfdestruct(destination, beneficiary)