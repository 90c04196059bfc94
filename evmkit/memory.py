"""Memory access instructions and the gas accounting for memory growth."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Generator, Optional

from Crypto.Hash import keccak

from .common import EvmError, Revision, StatusCode, u256_to_address
from .continuation import AccessAccount, CopyCode, GetCodeHash, InterruptData
from .host import AccessStatus
from .machine import ExecutionState, Stack
from .properties import ADDITIONAL_COLD_ACCOUNT_ACCESS_COST

MAX_BUFFER_SIZE = (1 << 32) - 1
"""Largest offset or size a memory region may use."""

_WORD_SIZE = 32

HostRequests = Generator[InterruptData, Any, None]


@dataclass(frozen=True)
class MemoryRegion:
    """A non-empty slice of memory that has been paid for."""

    offset: int
    size: int

    @property
    def end(self) -> int:
        """One past the last byte of the region."""
        return self.offset + self.size


def num_words(size_in_bytes: int) -> int:
    """Number of 32-byte words needed to hold ``size_in_bytes`` bytes."""
    return (size_in_bytes + _WORD_SIZE - 1) // _WORD_SIZE


def _charge(state: ExecutionState, cost: int) -> None:
    state.gas_left -= cost
    if state.gas_left < 0:
        raise EvmError(StatusCode.OUT_OF_GAS)


def verify_memory_region_u64(state: ExecutionState, offset: int, size: int) -> MemoryRegion:
    """Grow memory to cover ``size`` bytes at ``offset``, charging for the growth.

    Raises :class:`EvmError` with ``OUT_OF_GAS`` when the offset is too large
    or the growth cannot be paid for.
    """
    if size <= 0:
        raise ValueError(f"region size must be positive, got {size}")
    if offset > MAX_BUFFER_SIZE:
        raise EvmError(StatusCode.OUT_OF_GAS)

    new_size = offset + size
    current_size = len(state.memory)
    if new_size > current_size:
        new_words = num_words(new_size)
        current_words = current_size // _WORD_SIZE
        new_cost = 3 * new_words + new_words * new_words // 512
        current_cost = 3 * current_words + current_words * current_words // 512
        _charge(state, new_cost - current_cost)
        state.memory.extend(bytes(new_words * _WORD_SIZE - current_size))

    return MemoryRegion(offset, size)


def verify_memory_region(
    state: ExecutionState, offset: int, size: int
) -> Optional[MemoryRegion]:
    """Like :func:`verify_memory_region_u64`, but a zero size gives ``None`` at any offset."""
    if size == 0:
        return None
    if size > MAX_BUFFER_SIZE:
        raise EvmError(StatusCode.OUT_OF_GAS)
    return verify_memory_region_u64(state, offset, size)


def _copy_into(state: ExecutionState, region: MemoryRegion, data: bytes) -> None:
    """Write ``data`` at the start of ``region`` and zero the rest of it."""
    state.memory[region.offset:region.offset + len(data)] = data
    state.memory[region.offset + len(data):region.end] = bytes(region.size - len(data))


def mload(state: ExecutionState) -> None:
    """MLOAD: push the word stored at the given offset."""
    index = state.stack.pop()
    region = verify_memory_region_u64(state, index, _WORD_SIZE)
    state.stack.push(int.from_bytes(state.memory[region.offset:region.end], "big"))


def mstore(state: ExecutionState) -> None:
    """MSTORE: store a word at the given offset."""
    index = state.stack.pop()
    value = state.stack.pop()
    region = verify_memory_region_u64(state, index, _WORD_SIZE)
    state.memory[region.offset:region.end] = value.to_bytes(_WORD_SIZE, "big")


def mstore8(state: ExecutionState) -> None:
    """MSTORE8: store the low byte of a word at the given offset."""
    index = state.stack.pop()
    value = state.stack.pop()
    region = verify_memory_region_u64(state, index, 1)
    state.memory[region.offset] = value & 0xFF


def msize(state: ExecutionState) -> None:
    """MSIZE: push the current memory size in bytes."""
    state.stack.push(len(state.memory))


def calldatacopy(state: ExecutionState) -> None:
    """CALLDATACOPY: copy input data to memory, zero-padding past its end."""
    mem_index = state.stack.pop()
    input_index = state.stack.pop()
    size = state.stack.pop()

    region = verify_memory_region(state, mem_index, size)
    if region is None:
        return

    _charge(state, num_words(region.size) * 3)

    input_data = state.message.input_data
    src = min(len(input_data), input_index)
    copy_size = min(size, len(input_data) - src)
    _copy_into(state, region, input_data[src:src + copy_size])


def keccak256(state: ExecutionState) -> None:
    """KECCAK256: push the Keccak-256 hash of a memory region."""
    index = state.stack.pop()
    size = state.stack.pop()

    region = verify_memory_region(state, index, size)
    if region is None:
        data = b""
    else:
        _charge(state, num_words(region.size) * 6)
        data = bytes(state.memory[region.offset:region.end])

    digest = keccak.new(digest_bits=256, data=data).digest()
    state.stack.push(int.from_bytes(digest, "big"))


def codesize(stack: Stack, code: bytes) -> None:
    """CODESIZE: push the size of the running code."""
    stack.push(len(code))


def codecopy(state: ExecutionState, code: bytes) -> None:
    """CODECOPY: copy the running code to memory, zero-padding past its end."""
    mem_index = state.stack.pop()
    input_index = state.stack.pop()
    size = state.stack.pop()

    region = verify_memory_region(state, mem_index, size)
    if region is None:
        return

    src = min(len(code), input_index)
    copy_size = min(region.size, len(code) - src)
    _charge(state, num_words(region.size) * 3)
    _copy_into(state, region, bytes(code[src:src + copy_size]))


def _charge_account_access(state: ExecutionState, address: bytes) -> HostRequests:
    if state.evm_revision >= Revision.BERLIN:
        status = yield AccessAccount(address)
        if status is AccessStatus.COLD:
            _charge(state, ADDITIONAL_COLD_ACCOUNT_ACCESS_COST)


def extcodecopy(state: ExecutionState) -> HostRequests:
    """EXTCODECOPY: copy another account's code to memory, asking the host for it."""
    address = u256_to_address(state.stack.pop())
    mem_index = state.stack.pop()
    input_index = state.stack.pop()
    size = state.stack.pop()

    region = verify_memory_region(state, mem_index, size)
    if region is not None:
        _charge(state, num_words(region.size) * 3)

    yield from _charge_account_access(state, address)

    if region is not None:
        src = min(MAX_BUFFER_SIZE, input_index)
        code = yield CopyCode(address, src, region.size)
        _copy_into(state, region, bytes(code))


def returndatasize(state: ExecutionState) -> None:
    """RETURNDATASIZE: push the size of the last call's output."""
    state.stack.push(len(state.return_data))


def returndatacopy(state: ExecutionState) -> None:
    """RETURNDATACOPY: copy the last call's output to memory.

    Reading past the end of the output is an invalid memory access.
    """
    mem_index = state.stack.pop()
    input_index = state.stack.pop()
    size = state.stack.pop()

    region = verify_memory_region(state, mem_index, size)

    if input_index > len(state.return_data):
        raise EvmError(StatusCode.INVALID_MEMORY_ACCESS)
    src = input_index
    if src + (region.size if region is not None else 0) > len(state.return_data):
        raise EvmError(StatusCode.INVALID_MEMORY_ACCESS)

    if region is not None:
        _charge(state, num_words(region.size) * 3)
        state.memory[region.offset:region.end] = state.return_data[src:src + region.size]


def extcodehash(state: ExecutionState) -> HostRequests:
    """EXTCODEHASH: push another account's code hash, asking the host for it."""
    address = u256_to_address(state.stack.pop())
    yield from _charge_account_access(state, address)
    code_hash = yield GetCodeHash(address)
    state.stack.push(int.from_bytes(code_hash, "big"))