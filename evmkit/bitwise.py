"""Bitwise, shift and comparison instructions over 256-bit words."""

from __future__ import annotations

from .arithmetic import _MASK, _to_signed, _to_unsigned
from .machine import Stack


def byte(stack: Stack) -> None:
    """BYTE: the ``a``-th byte of ``b``, counted from the most significant."""
    a = stack.pop()
    b = stack.pop()
    stack.push((b >> (8 * (31 - a))) & 0xFF if a < 32 else 0)


def shl(stack: Stack) -> None:
    """SHL: shift left, zero once the shift reaches 256."""
    shift = stack.pop()
    value = stack.pop()
    stack.push((value << shift) & _MASK if shift < 256 else 0)


def shr(stack: Stack) -> None:
    """SHR: logical shift right, zero once the shift reaches 256."""
    shift = stack.pop()
    value = stack.pop()
    stack.push(value >> shift if shift < 256 else 0)


def sar(stack: Stack) -> None:
    """SAR: arithmetic shift right, rounding towards minus infinity."""
    shift = stack.pop()
    value = _to_signed(stack.pop())
    stack.push(_to_unsigned(value >> min(shift, 256)))


def lt(stack: Stack) -> None:
    """LT, unsigned."""
    a = stack.pop()
    b = stack.pop()
    stack.push(int(a < b))


def gt(stack: Stack) -> None:
    """GT, unsigned."""
    a = stack.pop()
    b = stack.pop()
    stack.push(int(a > b))


def slt(stack: Stack) -> None:
    """SLT, signed."""
    a = _to_signed(stack.pop())
    b = _to_signed(stack.pop())
    stack.push(int(a < b))


def sgt(stack: Stack) -> None:
    """SGT, signed."""
    a = _to_signed(stack.pop())
    b = _to_signed(stack.pop())
    stack.push(int(a > b))


def eq(stack: Stack) -> None:
    """EQ."""
    a = stack.pop()
    b = stack.pop()
    stack.push(int(a == b))


def iszero(stack: Stack) -> None:
    """ISZERO."""
    stack.push(int(stack.pop() == 0))


def and_(stack: Stack) -> None:
    """AND."""
    a = stack.pop()
    b = stack.pop()
    stack.push(a & b)


def or_(stack: Stack) -> None:
    """OR."""
    a = stack.pop()
    b = stack.pop()
    stack.push(a | b)


def xor(stack: Stack) -> None:
    """XOR."""
    a = stack.pop()
    b = stack.pop()
    stack.push(a ^ b)


def not_(stack: Stack) -> None:
    """NOT: invert the top word in place."""
    stack.set(0, stack.get(0) ^ _MASK)