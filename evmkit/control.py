"""Control-flow instructions and call-data access."""

from __future__ import annotations

from typing import Container

from .common import EvmError, StatusCode
from .machine import ExecutionState
from .memory import verify_memory_region

_WORD_SIZE = 32


def ret(state: ExecutionState) -> None:
    """RETURN/REVERT: take the output from memory; the operands stay on the stack."""
    offset = state.stack.get(0)
    size = state.stack.get(1)

    region = verify_memory_region(state, offset, size)
    if region is not None:
        state.output_data = bytes(state.memory[region.offset:region.end])


def op_jump(state: ExecutionState, jumpdest_map: Container[int]) -> int:
    """JUMP: pop the destination and return it if it is a valid jump destination."""
    dst = state.stack.pop()
    if dst not in jumpdest_map:
        raise EvmError(StatusCode.BAD_JUMP_DESTINATION)
    return dst


def calldataload(state: ExecutionState) -> None:
    """CALLDATALOAD: push 32 bytes of input from the given index, zero-padded."""
    index = state.stack.pop()
    input_data = state.message.input_data

    if index > len(input_data):
        state.stack.push(0)
        return

    data = input_data[index:index + _WORD_SIZE]
    state.stack.push(int.from_bytes(data.ljust(_WORD_SIZE, b"\x00"), "big"))


def calldatasize(state: ExecutionState) -> None:
    """CALLDATASIZE: push the size of the input data."""
    state.stack.push(len(state.message.input_data))