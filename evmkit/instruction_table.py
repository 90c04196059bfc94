"""Per-revision instruction tables combining gas costs with stack requirements."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple

from .common import Revision
from .properties import PROPERTIES, gas_costs


@dataclass(frozen=True)
class InstructionTableEntry:
    """What the interpreter checks before running an instruction."""

    gas_cost: int
    stack_height_required: int
    can_overflow_stack: bool


InstructionTable = Tuple[Optional[InstructionTableEntry], ...]


def _build_table(revision: Revision) -> InstructionTable:
    table: List[Optional[InstructionTableEntry]] = [None] * 256
    for opcode, cost in enumerate(gas_costs(revision)):
        if cost is None:
            continue
        props = PROPERTIES[opcode]
        if props is None:
            raise RuntimeError(f"opcode 0x{opcode:02x} has a gas cost but no properties")
        # Any instruction grows the stack by at most one, so overflow is only
        # possible when the stack is already at its limit.
        if props.stack_height_change > 1:
            raise RuntimeError(f"{props.name} grows the stack by more than one item")
        table[opcode] = InstructionTableEntry(
            gas_cost=cost,
            stack_height_required=props.stack_height_required,
            can_overflow_stack=props.stack_height_change > 0,
        )
    return tuple(table)


_INSTRUCTION_TABLES: Dict[Revision, InstructionTable] = {
    revision: _build_table(revision) for revision in Revision
}


def get_baseline_instruction_table(revision: Revision) -> InstructionTable:
    """Return the 256-entry instruction table of ``revision``; ``None`` marks undefined opcodes."""
    return _INSTRUCTION_TABLES[Revision(revision)]