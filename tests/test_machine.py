import pytest

from evmkit.common import CallKind, EvmError, Message, Revision, StatusCode
from evmkit.machine import ExecutionState, Stack, dup, load_push, pop, swap


def make_stack(*values):
    stack = Stack()
    for v in values:
        stack.push(v)
    return stack


def test_push_pop_is_lifo():
    stack = make_stack(1, 2, 3)
    assert [stack.pop(), stack.pop(), stack.pop()] == [3, 2, 1]
    assert len(stack) == 0


def test_get_indexes_from_top():
    stack = make_stack(10, 20, 30)
    assert stack.get(0) == 30
    assert stack.get(2) == 10
    assert list(stack) == [30, 20, 10]


def test_set_replaces_value():
    stack = make_stack(10, 20)
    stack.set(1, 99)
    assert list(stack) == [20, 99]


def test_pop_empty_underflows():
    with pytest.raises(EvmError) as info:
        Stack().pop()
    assert info.value.status_code is StatusCode.STACK_UNDERFLOW


def test_get_past_bottom_underflows():
    with pytest.raises(EvmError) as info:
        make_stack(1).get(1)
    assert info.value.status_code is StatusCode.STACK_UNDERFLOW


def test_push_past_limit_overflows():
    stack = make_stack(*range(1024))
    assert len(stack) == Stack.LIMIT
    with pytest.raises(EvmError) as info:
        stack.push(0)
    assert info.value.status_code is StatusCode.STACK_OVERFLOW
    assert len(stack) == Stack.LIMIT


def test_push_rejects_out_of_range():
    with pytest.raises(ValueError):
        Stack().push(1 << 256)
    with pytest.raises(ValueError):
        Stack().push(-1)


def test_swap_top_exchanges():
    stack = make_stack(1, 2, 3)
    stack.swap_top(2)
    assert list(stack) == [1, 2, 3]


def test_swap_instruction_is_involution():
    stack = make_stack(*range(1, 18))
    before = list(stack)
    swap(stack, 16)
    assert stack.get(0) == before[16]
    assert stack.get(16) == before[0]
    swap(stack, 16)
    assert list(stack) == before


def test_dup_copies_nth_item():
    stack = make_stack(5, 3, 7)
    dup(stack, 3)
    assert list(stack) == [5, 7, 3, 5]


def test_dup_underflow():
    stack = make_stack(0)
    with pytest.raises(EvmError) as info:
        dup(stack, 2)
    assert info.value.status_code is StatusCode.STACK_UNDERFLOW


def test_pop_instruction_discards():
    stack = make_stack(4, 5)
    pop(stack)
    assert list(stack) == [4]


def test_load_push_reads_big_endian():
    stack = Stack()
    consumed = load_push(stack, bytes.fromhex("0102ff"), 2)
    assert consumed == 2
    assert stack.pop() == 0x0102


def test_load_push_full_word_round_trip():
    word = bytes(range(32))
    stack = Stack()
    load_push(stack, word, 32)
    assert stack.pop().to_bytes(32, "big") == word


def test_load_push_needs_enough_code():
    with pytest.raises(ValueError):
        load_push(Stack(), b"\x01", 2)


def test_execution_state_starts_from_message():
    msg = Message(CallKind.CALL, False, 0, 1234, bytes(20), bytes(20), b"\x01")
    state = ExecutionState(msg, Revision.LONDON)
    assert state.gas_left == msg.gas
    assert len(state.stack) == 0
    assert state.memory == bytearray()
    assert state.return_data == b""
    assert state.output_data == b""
    assert state.evm_revision is Revision.LONDON


def test_execution_states_do_not_share_stacks():
    msg = Message(CallKind.CALL, False, 0, 10, bytes(20), bytes(20))
    first = ExecutionState(msg, Revision.BERLIN)
    second = ExecutionState(msg, Revision.BERLIN)
    first.stack.push(1)
    first.memory.extend(b"\x01")
    assert len(second.stack) == 0
    assert second.memory == bytearray()