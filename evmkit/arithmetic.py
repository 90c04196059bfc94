"""Arithmetic instructions over 256-bit words."""

from __future__ import annotations

from .common import EvmError, Revision, StatusCode
from .machine import ExecutionState, Stack

_MODULUS = 1 << 256
_MASK = _MODULUS - 1
_SIGN_BIT = 1 << 255


def _to_signed(value: int) -> int:
    """Read a word as two's complement."""
    return value - _MODULUS if value & _SIGN_BIT else value


def _to_unsigned(value: int) -> int:
    """Wrap a Python integer into a word."""
    return value & _MASK


def add(stack: Stack) -> None:
    """ADD, wrapping."""
    a = stack.pop()
    b = stack.pop()
    stack.push((a + b) & _MASK)


def mul(stack: Stack) -> None:
    """MUL, wrapping."""
    a = stack.pop()
    b = stack.pop()
    stack.push((a * b) & _MASK)


def sub(stack: Stack) -> None:
    """SUB, wrapping."""
    a = stack.pop()
    b = stack.pop()
    stack.push((a - b) & _MASK)


def div(stack: Stack) -> None:
    """DIV; division by zero gives zero."""
    a = stack.pop()
    b = stack.pop()
    stack.push(a // b if b else 0)


def sdiv(stack: Stack) -> None:
    """SDIV, truncating towards zero; division by zero gives zero."""
    a = _to_signed(stack.pop())
    b = _to_signed(stack.pop())
    if b == 0:
        quotient = 0
    else:
        quotient = abs(a) // abs(b)
        if (a < 0) != (b < 0):
            quotient = -quotient
    stack.push(_to_unsigned(quotient))


def modulo(stack: Stack) -> None:
    """MOD; modulo zero gives zero."""
    a = stack.pop()
    b = stack.pop()
    stack.push(a % b if b else 0)


def smod(stack: Stack) -> None:
    """SMOD; the result takes the sign of the dividend, modulo zero gives zero."""
    a = _to_signed(stack.pop())
    b = _to_signed(stack.pop())
    if b == 0:
        remainder = 0
    else:
        remainder = abs(a) % abs(b)
        if a < 0:
            remainder = -remainder
    stack.push(_to_unsigned(remainder))


def addmod(stack: Stack) -> None:
    """ADDMOD without intermediate overflow; modulo zero gives zero."""
    a = stack.pop()
    b = stack.pop()
    c = stack.pop()
    stack.push((a + b) % c if c else 0)


def mulmod(stack: Stack) -> None:
    """MULMOD without intermediate overflow; modulo zero gives zero."""
    a = stack.pop()
    b = stack.pop()
    c = stack.pop()
    stack.push((a * b) % c if c else 0)


def exp(state: ExecutionState) -> None:
    """EXP, charging the per-byte cost of the exponent."""
    base = state.stack.pop()
    power = state.stack.pop()

    if power:
        byte_cost = 50 if state.evm_revision >= Revision.SPURIOUS else 10
        exponent_bytes = (power.bit_length() - 1) // 8 + 1
        state.gas_left -= byte_cost * exponent_bytes
        if state.gas_left < 0:
            raise EvmError(StatusCode.OUT_OF_GAS)

    state.stack.push(pow(base, power, _MODULUS))


def signextend(stack: Stack) -> None:
    """SIGNEXTEND: extend the sign of the low ``a + 1`` bytes of ``b``."""
    a = stack.pop()
    b = stack.pop()

    # From 31 bytes up the whole word is kept as it is.
    if a >= 31:
        stack.push(b)
        return

    bits = 8 * (a + 1)
    low_mask = (1 << bits) - 1
    low = b & low_mask
    if low & (1 << (bits - 1)):
        low |= _MASK ^ low_mask
    stack.push(low)