"""Core value types shared by the interpreter: revisions, status codes and messages."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

_ADDRESS_SIZE = 20
_WORD_SIZE = 32
_U256_LIMIT = 1 << 256


def _check_address(value: bytes, what: str) -> bytes:
    value = bytes(value)
    if len(value) != _ADDRESS_SIZE:
        raise ValueError(f"{what} must be {_ADDRESS_SIZE} bytes, got {len(value)}")
    return value


def _check_word(value: bytes, what: str) -> bytes:
    value = bytes(value)
    if len(value) != _WORD_SIZE:
        raise ValueError(f"{what} must be {_WORD_SIZE} bytes, got {len(value)}")
    return value


def _check_u256(value: int, what: str) -> int:
    if not 0 <= value < _U256_LIMIT:
        raise ValueError(f"{what} does not fit in 256 bits: {value}")
    return value


class Revision(enum.IntEnum):
    """EVM revision, ordered from the oldest to the newest."""

    FRONTIER = 0
    HOMESTEAD = 1
    TANGERINE = 2
    SPURIOUS = 3
    BYZANTIUM = 4
    CONSTANTINOPLE = 5
    PETERSBURG = 6
    ISTANBUL = 7
    BERLIN = 8
    LONDON = 9
    SHANGHAI = 10

    @classmethod
    def latest(cls) -> "Revision":
        """Return the newest supported revision."""
        return cls.SHANGHAI

    def __str__(self) -> str:
        return self.name.capitalize()


class StatusCode(enum.Enum):
    """Outcome of executing a message."""

    SUCCESS = "success"
    FAILURE = "failure"
    REVERT = "revert"
    OUT_OF_GAS = "out of gas"
    INVALID_INSTRUCTION = "invalid instruction"
    UNDEFINED_INSTRUCTION = "undefined instruction"
    STACK_OVERFLOW = "stack overflow"
    STACK_UNDERFLOW = "stack underflow"
    BAD_JUMP_DESTINATION = "bad jump destination"
    INVALID_MEMORY_ACCESS = "invalid memory access"
    CALL_DEPTH_EXCEEDED = "call depth exceeded"
    STATIC_MODE_VIOLATION = "static mode violation"
    PRECOMPILE_FAILURE = "precompile failure"
    CONTRACT_VALIDATION_FAILURE = "contract validation failure"
    ARGUMENT_OUT_OF_RANGE = "argument out of range"
    INSUFFICIENT_BALANCE = "insufficient balance"
    INTERNAL_ERROR = "internal error"

    def __str__(self) -> str:
        return self.value


class EvmError(Exception):
    """Execution stopped abnormally with the given status code."""

    def __init__(self, status_code: StatusCode, detail: str = "") -> None:
        if status_code is StatusCode.SUCCESS:
            raise ValueError("success is not an error status")
        self.status_code = status_code
        self.detail = detail
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status_code}: {self.detail}"
        return str(self.status_code)


class CallKind(enum.Enum):
    """The kind of call-like instruction."""

    CALL = enum.auto()
    DELEGATECALL = enum.auto()
    CALLCODE = enum.auto()
    CREATE = enum.auto()
    CREATE2 = enum.auto()


@dataclass
class Message:
    """An EVM call, including the zero-depth call from the transaction origin.

    ``salt`` is set exactly when ``kind`` is ``CallKind.CREATE2``.
    """

    kind: CallKind
    is_static: bool
    depth: int
    gas: int
    destination: bytes
    sender: bytes
    input_data: bytes = b""
    value: int = 0
    salt: Optional[bytes] = None

    def __post_init__(self) -> None:
        self.destination = _check_address(self.destination, "destination")
        self.sender = _check_address(self.sender, "sender")
        self.input_data = bytes(self.input_data)
        _check_u256(self.value, "value")
        if self.kind is CallKind.CREATE2:
            if self.salt is None:
                raise ValueError("CREATE2 message requires a salt")
            self.salt = _check_word(self.salt, "salt")
        elif self.salt is not None:
            raise ValueError(f"{self.kind.name} message cannot carry a salt")


@dataclass
class CreateMessage:
    """Request to create a contract; a salt makes it a CREATE2."""

    salt: Optional[bytes]
    gas: int
    depth: int
    initcode: bytes
    sender: bytes
    endowment: int

    def __post_init__(self) -> None:
        if self.salt is not None:
            self.salt = _check_word(self.salt, "salt")
        self.initcode = bytes(self.initcode)
        self.sender = _check_address(self.sender, "sender")
        _check_u256(self.endowment, "endowment")

    def to_message(self) -> Message:
        """Express this creation request as a plain message."""
        return Message(
            kind=CallKind.CREATE if self.salt is None else CallKind.CREATE2,
            is_static=False,
            depth=self.depth,
            gas=self.gas,
            destination=bytes(_ADDRESS_SIZE),
            sender=self.sender,
            input_data=self.initcode,
            value=self.endowment,
            salt=self.salt,
        )


@dataclass
class Output:
    """Result of executing a message."""

    status_code: StatusCode
    gas_left: int
    output_data: bytes = b""
    create_address: Optional[bytes] = None

    def __post_init__(self) -> None:
        self.output_data = bytes(self.output_data)
        if self.create_address is not None:
            self.create_address = _check_address(self.create_address, "create_address")


@dataclass
class SuccessfulOutput:
    """Result of an execution that ran to completion, possibly by reverting."""

    reverted: bool
    gas_left: int
    output_data: bytes = b""

    def to_output(self) -> Output:
        """Convert to a general output with the matching status code."""
        return Output(
            status_code=StatusCode.REVERT if self.reverted else StatusCode.SUCCESS,
            gas_left=self.gas_left,
            output_data=self.output_data,
            create_address=None,
        )


def u256_to_address(value: int) -> bytes:
    """Take the low 20 bytes of a 256-bit word as an address."""
    _check_u256(value, "value")
    return value.to_bytes(_WORD_SIZE, "big")[_WORD_SIZE - _ADDRESS_SIZE:]


def address_to_u256(address: bytes) -> int:
    """Read an address as a big-endian 256-bit word."""
    return int.from_bytes(_check_address(address, "address"), "big")