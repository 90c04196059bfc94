"""Static instruction properties and per-revision base gas costs."""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Optional, Tuple

from .common import Revision

COLD_SLOAD_COST = 2100
COLD_ACCOUNT_ACCESS_COST = 2600
WARM_STORAGE_READ_COST = 100

# The warm access cost is applied unconditionally for every account access
# instruction; a cold access pays this on top.
ADDITIONAL_COLD_ACCOUNT_ACCESS_COST = COLD_ACCOUNT_ACCESS_COST - WARM_STORAGE_READ_COST


def _named_opcodes() -> Dict[str, int]:
    opcodes = {
        "STOP": 0x00,
        "ADD": 0x01,
        "MUL": 0x02,
        "SUB": 0x03,
        "DIV": 0x04,
        "SDIV": 0x05,
        "MOD": 0x06,
        "SMOD": 0x07,
        "ADDMOD": 0x08,
        "MULMOD": 0x09,
        "EXP": 0x0A,
        "SIGNEXTEND": 0x0B,
        "LT": 0x10,
        "GT": 0x11,
        "SLT": 0x12,
        "SGT": 0x13,
        "EQ": 0x14,
        "ISZERO": 0x15,
        "AND": 0x16,
        "OR": 0x17,
        "XOR": 0x18,
        "NOT": 0x19,
        "BYTE": 0x1A,
        "SHL": 0x1B,
        "SHR": 0x1C,
        "SAR": 0x1D,
        "KECCAK256": 0x20,
        "ADDRESS": 0x30,
        "BALANCE": 0x31,
        "ORIGIN": 0x32,
        "CALLER": 0x33,
        "CALLVALUE": 0x34,
        "CALLDATALOAD": 0x35,
        "CALLDATASIZE": 0x36,
        "CALLDATACOPY": 0x37,
        "CODESIZE": 0x38,
        "CODECOPY": 0x39,
        "GASPRICE": 0x3A,
        "EXTCODESIZE": 0x3B,
        "EXTCODECOPY": 0x3C,
        "RETURNDATASIZE": 0x3D,
        "RETURNDATACOPY": 0x3E,
        "EXTCODEHASH": 0x3F,
        "BLOCKHASH": 0x40,
        "COINBASE": 0x41,
        "TIMESTAMP": 0x42,
        "NUMBER": 0x43,
        "DIFFICULTY": 0x44,
        "GASLIMIT": 0x45,
        "CHAINID": 0x46,
        "SELFBALANCE": 0x47,
        "BASEFEE": 0x48,
        "POP": 0x50,
        "MLOAD": 0x51,
        "MSTORE": 0x52,
        "MSTORE8": 0x53,
        "SLOAD": 0x54,
        "SSTORE": 0x55,
        "JUMP": 0x56,
        "JUMPI": 0x57,
        "PC": 0x58,
        "MSIZE": 0x59,
        "GAS": 0x5A,
        "JUMPDEST": 0x5B,
        "CREATE": 0xF0,
        "CALL": 0xF1,
        "CALLCODE": 0xF2,
        "RETURN": 0xF3,
        "DELEGATECALL": 0xF4,
        "CREATE2": 0xF5,
        "STATICCALL": 0xFA,
        "REVERT": 0xFD,
        "INVALID": 0xFE,
        "SELFDESTRUCT": 0xFF,
    }
    opcodes.update({f"PUSH{n}": 0x60 + n - 1 for n in range(1, 33)})
    opcodes.update({f"DUP{n}": 0x80 + n - 1 for n in range(1, 17)})
    opcodes.update({f"SWAP{n}": 0x90 + n - 1 for n in range(1, 17)})
    opcodes.update({f"LOG{n}": 0xA0 + n for n in range(0, 5)})
    return opcodes


OPCODES: Mapping[str, int] = MappingProxyType(_named_opcodes())
"""Opcode byte of every defined instruction, by name."""


@dataclass(frozen=True)
class Properties:
    """EVM instruction properties."""

    name: str
    stack_height_required: int
    """Number of stack items the instruction accesses."""
    stack_height_change: int
    """Stack height change caused by the instruction; may be negative."""


def _build_properties() -> Tuple[Optional[Properties], ...]:
    specs: List[Tuple[str, int, int]] = [
        ("STOP", 0, 0),
        ("ADD", 2, -1),
        ("MUL", 2, -1),
        ("SUB", 2, -1),
        ("DIV", 2, -1),
        ("SDIV", 2, -1),
        ("MOD", 2, -1),
        ("SMOD", 2, -1),
        ("ADDMOD", 3, -2),
        ("MULMOD", 3, -2),
        ("EXP", 2, -1),
        ("SIGNEXTEND", 2, -1),
        ("LT", 2, -1),
        ("GT", 2, -1),
        ("SLT", 2, -1),
        ("SGT", 2, -1),
        ("EQ", 2, -1),
        ("ISZERO", 1, 0),
        ("AND", 2, -1),
        ("OR", 2, -1),
        ("XOR", 2, -1),
        ("NOT", 1, 0),
        ("BYTE", 2, -1),
        ("SHL", 2, -1),
        ("SHR", 2, -1),
        ("SAR", 2, -1),
        ("KECCAK256", 2, -1),
        ("ADDRESS", 0, 1),
        ("BALANCE", 1, 0),
        ("ORIGIN", 0, 1),
        ("CALLER", 0, 1),
        ("CALLVALUE", 0, 1),
        ("CALLDATALOAD", 1, 0),
        ("CALLDATASIZE", 0, 1),
        ("CALLDATACOPY", 3, -3),
        ("CODESIZE", 0, 1),
        ("CODECOPY", 3, -3),
        ("GASPRICE", 0, 1),
        ("EXTCODESIZE", 1, 0),
        ("EXTCODECOPY", 4, -4),
        ("RETURNDATASIZE", 0, 1),
        ("RETURNDATACOPY", 3, -3),
        ("EXTCODEHASH", 1, 0),
        ("BLOCKHASH", 1, 0),
        ("COINBASE", 0, 1),
        ("TIMESTAMP", 0, 1),
        ("NUMBER", 0, 1),
        ("DIFFICULTY", 0, 1),
        ("GASLIMIT", 0, 1),
        ("CHAINID", 0, 1),
        ("SELFBALANCE", 0, 1),
        ("BASEFEE", 0, 1),
        ("POP", 1, -1),
        ("MLOAD", 1, 0),
        ("MSTORE", 2, -2),
        ("MSTORE8", 2, -2),
        ("SLOAD", 1, 0),
        ("SSTORE", 2, -2),
        ("JUMP", 1, -1),
        ("JUMPI", 2, -2),
        ("PC", 0, 1),
        ("MSIZE", 0, 1),
        ("GAS", 0, 1),
        ("JUMPDEST", 0, 0),
    ]
    specs += [(f"PUSH{n}", 0, 1) for n in range(1, 33)]
    specs += [(f"DUP{n}", n, 1) for n in range(1, 17)]
    specs += [(f"SWAP{n}", n + 1, 0) for n in range(1, 17)]
    specs += [(f"LOG{n}", n + 2, -(n + 2)) for n in range(0, 5)]
    specs += [
        ("CREATE", 3, -2),
        ("CALL", 7, -6),
        ("CALLCODE", 7, -6),
        ("RETURN", 2, -2),
        ("DELEGATECALL", 6, -5),
        ("CREATE2", 4, -3),
        ("STATICCALL", 6, -5),
        ("REVERT", 2, -2),
        ("INVALID", 0, 0),
        ("SELFDESTRUCT", 1, -1),
    ]

    table: List[Optional[Properties]] = [None] * 256
    for name, required, change in specs:
        table[OPCODES[name]] = Properties(name, required, change)
    return tuple(table)


PROPERTIES: Tuple[Optional[Properties], ...] = _build_properties()
"""Properties of every opcode, ``None`` where the opcode is undefined."""

GasCostTable = Tuple[Optional[int], ...]


def _with(base: Dict[int, int], changes: Iterable[Tuple[str, int]]) -> Dict[int, int]:
    table = dict(base)
    table.update((OPCODES[name], cost) for name, cost in changes)
    return table


def _build_gas_costs() -> Dict[Revision, GasCostTable]:
    frontier = _with(
        {},
        [
            ("STOP", 0),
            ("ADD", 3),
            ("MUL", 5),
            ("SUB", 3),
            ("DIV", 5),
            ("SDIV", 5),
            ("MOD", 5),
            ("SMOD", 5),
            ("ADDMOD", 8),
            ("MULMOD", 8),
            ("EXP", 10),
            ("SIGNEXTEND", 5),
            ("LT", 3),
            ("GT", 3),
            ("SLT", 3),
            ("SGT", 3),
            ("EQ", 3),
            ("ISZERO", 3),
            ("AND", 3),
            ("OR", 3),
            ("XOR", 3),
            ("NOT", 3),
            ("BYTE", 3),
            ("KECCAK256", 30),
            ("ADDRESS", 2),
            ("BALANCE", 20),
            ("ORIGIN", 2),
            ("CALLER", 2),
            ("CALLVALUE", 2),
            ("CALLDATALOAD", 3),
            ("CALLDATASIZE", 2),
            ("CALLDATACOPY", 3),
            ("CODESIZE", 2),
            ("CODECOPY", 3),
            ("GASPRICE", 2),
            ("EXTCODESIZE", 20),
            ("EXTCODECOPY", 20),
            ("BLOCKHASH", 20),
            ("COINBASE", 2),
            ("TIMESTAMP", 2),
            ("NUMBER", 2),
            ("DIFFICULTY", 2),
            ("GASLIMIT", 2),
            ("POP", 2),
            ("MLOAD", 3),
            ("MSTORE", 3),
            ("MSTORE8", 3),
            ("SLOAD", 50),
            ("SSTORE", 0),
            ("JUMP", 8),
            ("JUMPI", 10),
            ("PC", 2),
            ("MSIZE", 2),
            ("GAS", 2),
            ("JUMPDEST", 1),
        ]
        + [(f"PUSH{n}", 3) for n in range(1, 33)]
        + [(f"DUP{n}", 3) for n in range(1, 17)]
        + [(f"SWAP{n}", 3) for n in range(1, 17)]
        + [(f"LOG{n}", (1 + n) * 375) for n in range(0, 5)]
        + [
            ("CREATE", 32000),
            ("CALL", 40),
            ("CALLCODE", 40),
            ("RETURN", 0),
            ("INVALID", 0),
            ("SELFDESTRUCT", 0),
        ],
    )
    homestead = _with(frontier, [("DELEGATECALL", 40)])
    tangerine = _with(
        homestead,
        [
            ("BALANCE", 400),
            ("EXTCODESIZE", 700),
            ("EXTCODECOPY", 700),
            ("SLOAD", 200),
            ("CALL", 700),
            ("CALLCODE", 700),
            ("DELEGATECALL", 700),
            ("SELFDESTRUCT", 5000),
        ],
    )
    spurious = dict(tangerine)
    byzantium = _with(
        spurious,
        [
            ("RETURNDATASIZE", 2),
            ("RETURNDATACOPY", 3),
            ("STATICCALL", 700),
            ("REVERT", 0),
        ],
    )
    constantinople = _with(
        byzantium,
        [
            ("SHL", 3),
            ("SHR", 3),
            ("SAR", 3),
            ("EXTCODEHASH", 400),
            ("CREATE2", 32000),
        ],
    )
    petersburg = dict(constantinople)
    istanbul = _with(
        petersburg,
        [
            ("BALANCE", 700),
            ("CHAINID", 2),
            ("EXTCODEHASH", 700),
            ("SELFBALANCE", 5),
            ("SLOAD", 800),
        ],
    )
    berlin = _with(
        istanbul,
        [
            (name, WARM_STORAGE_READ_COST)
            for name in (
                "EXTCODESIZE",
                "EXTCODECOPY",
                "EXTCODEHASH",
                "BALANCE",
                "CALL",
                "CALLCODE",
                "DELEGATECALL",
                "STATICCALL",
                "SLOAD",
            )
        ],
    )
    london = _with(berlin, [("BASEFEE", 2)])
    shanghai = dict(london)

    by_revision = {
        Revision.FRONTIER: frontier,
        Revision.HOMESTEAD: homestead,
        Revision.TANGERINE: tangerine,
        Revision.SPURIOUS: spurious,
        Revision.BYZANTIUM: byzantium,
        Revision.CONSTANTINOPLE: constantinople,
        Revision.PETERSBURG: petersburg,
        Revision.ISTANBUL: istanbul,
        Revision.BERLIN: berlin,
        Revision.LONDON: london,
        Revision.SHANGHAI: shanghai,
    }
    return {
        revision: tuple(costs.get(opcode) for opcode in range(256))
        for revision, costs in by_revision.items()
    }


_GAS_COSTS = _build_gas_costs()


def gas_costs(revision: Revision) -> GasCostTable:
    """Return the base gas cost of every opcode in ``revision``; ``None`` if undefined."""
    return _GAS_COSTS[Revision(revision)]