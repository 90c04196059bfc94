"""The interpreter's stack, execution state and stack-manipulation instructions."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Iterator, List

from .common import EvmError, Message, Revision, StatusCode, _U256_LIMIT


class Stack:
    """The EVM operand stack; index 0 is the top."""

    LIMIT: ClassVar[int] = 1024

    def __init__(self) -> None:
        self._items: List[int] = []

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[int]:
        """Iterate from the top of the stack downwards."""
        return reversed(self._items)

    def push(self, value: int) -> None:
        """Push a 256-bit word."""
        if not 0 <= value < _U256_LIMIT:
            raise ValueError(f"stack value does not fit in 256 bits: {value}")
        if len(self._items) >= self.LIMIT:
            raise EvmError(StatusCode.STACK_OVERFLOW)
        self._items.append(value)

    def pop(self) -> int:
        """Remove and return the top word."""
        if not self._items:
            raise EvmError(StatusCode.STACK_UNDERFLOW)
        return self._items.pop()

    def _position(self, index: int) -> int:
        if not 0 <= index < len(self._items):
            raise EvmError(StatusCode.STACK_UNDERFLOW)
        return len(self._items) - 1 - index

    def get(self, index: int) -> int:
        """Return the word ``index`` places below the top."""
        return self._items[self._position(index)]

    def set(self, index: int, value: int) -> None:
        """Replace the word ``index`` places below the top."""
        if not 0 <= value < _U256_LIMIT:
            raise ValueError(f"stack value does not fit in 256 bits: {value}")
        self._items[self._position(index)] = value

    def swap_top(self, height: int) -> None:
        """Exchange the top word with the one ``height`` places below it."""
        top = self._position(0)
        other = self._position(height)
        self._items[top], self._items[other] = self._items[other], self._items[top]


@dataclass
class ExecutionState:
    """Mutable state of one running message."""

    message: Message
    evm_revision: Revision
    stack: Stack = field(default_factory=Stack)
    memory: bytearray = field(default_factory=bytearray)
    return_data: bytes = b""
    output_data: bytes = b""
    gas_left: int = field(init=False)

    def __post_init__(self) -> None:
        self.gas_left = self.message.gas


def load_push(stack: Stack, code: bytes, push_len: int) -> int:
    """Push the next ``push_len`` code bytes as a word; return the bytes consumed."""
    if len(code) < push_len:
        raise ValueError(f"push needs {push_len} bytes of data, only {len(code)} given")
    stack.push(int.from_bytes(code[:push_len], "big"))
    return push_len


def dup(stack: Stack, height: int) -> None:
    """DUPn: copy the ``height``-th word to the top."""
    stack.push(stack.get(height - 1))


def swap(stack: Stack, height: int) -> None:
    """SWAPn: exchange the top with the word ``height`` places below."""
    stack.swap_top(height)


def pop(stack: Stack) -> None:
    """POP: discard the top word."""
    stack.pop()