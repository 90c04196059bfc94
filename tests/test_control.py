import pytest

from evmkit.common import CallKind, EvmError, Message, Revision, StatusCode
from evmkit.control import calldataload, calldatasize, op_jump, ret
from evmkit.machine import ExecutionState


def _state(gas=1_000_000, input_data=b""):
    message = Message(
        kind=CallKind.CALL,
        is_static=False,
        depth=0,
        gas=gas,
        destination=bytes(20),
        sender=bytes(20),
        input_data=input_data,
    )
    return ExecutionState(message=message, evm_revision=Revision.LONDON)


def _push(state, *values):
    """Push so that the first value ends up on top."""
    for value in reversed(values):
        state.stack.push(value)


def test_ret_copies_memory_and_keeps_operands():
    state = _state()
    state.memory.extend(bytes(range(32)))
    _push(state, 2, 3)
    ret(state)
    assert state.output_data == b"\x02\x03\x04"
    assert len(state.stack) == 2
    assert state.stack.get(0) == 2


def test_ret_empty_buffer_at_offset_zero():
    state = _state(gas=10)
    _push(state, 0, 0)
    ret(state)
    assert state.output_data == b""
    assert state.gas_left == 10


def test_ret_empty_buffer_at_high_offset():
    state = _state(gas=10)
    difficulty = int("ff" * 31 + "f1", 16)
    _push(state, difficulty, 0)
    ret(state)
    assert state.output_data == b""
    assert state.gas_left == 10


def test_ret_big_allocation():
    size = 256 * 1024 + 1
    state = _state()
    _push(state, 0, size)
    ret(state)
    assert state.output_data == bytes(size)


def test_ret_huge_size_runs_out_of_gas():
    state = _state(gas=8796294610952)
    _push(state, 0, 0x100000000)
    with pytest.raises(EvmError) as info:
        ret(state)
    assert info.value.status_code is StatusCode.OUT_OF_GAS


def test_op_jump_valid_destination():
    state = _state()
    _push(state, 4)
    assert op_jump(state, {4, 9}) == 4
    assert len(state.stack) == 0


@pytest.mark.parametrize("dst", [5, 1 << 255])
def test_op_jump_bad_destination(dst):
    state = _state()
    _push(state, dst)
    with pytest.raises(EvmError) as info:
        op_jump(state, {4})
    assert info.value.status_code is StatusCode.BAD_JUMP_DESTINATION


def test_calldataload_pads_with_zeros():
    state = _state(input_data=bytes.fromhex("0102030405"))
    _push(state, 3)
    calldataload(state)
    assert state.stack.pop() == int.from_bytes(b"\x04\x05" + bytes(30), "big")


def test_calldataload_out_of_range():
    state = _state()
    _push(state, 1)
    calldataload(state)
    assert state.stack.pop() == 0


def test_calldataload_huge_index():
    state = _state(input_data=b"\xff" * 40)
    _push(state, (1 << 256) - 1)
    calldataload(state)
    assert state.stack.pop() == 0


def test_calldataload_full_word():
    state = _state(input_data=bytes(range(1, 41)))
    _push(state, 0)
    calldataload(state)
    assert state.stack.pop() == int.from_bytes(bytes(range(1, 33)), "big")


@pytest.mark.parametrize("data, size", [(b"", 0), (b"\xee", 1), (bytes(100), 100)])
def test_calldatasize(data, size):
    state = _state(input_data=data)
    calldatasize(state)
    assert state.stack.pop() == size