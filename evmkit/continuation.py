"""Pausable execution: interrupts that hand host requests to the caller and resume with answers.

An executing message is a generator. Whenever it needs something from the
host it yields one of the request objects defined here and receives the answer
through ``send``. :func:`begin` starts such a generator and wraps each pause in
an :class:`Interrupt`. :func:`serve` answers every interrupt from a
:class:`~evmkit.host.Host` until execution completes.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Generator, Optional, Tuple, Union

from .common import (
    CreateMessage,
    EvmError,
    Message,
    Output,
    StatusCode,
    SuccessfulOutput,
    _check_address,
    _check_word,
)
from .host import AccessStatus, Host, StorageStatus, TxContext
from .machine import ExecutionState

_MAX_TOPICS = 4


@dataclass
class InstructionStart:
    """A new instruction is about to run; resume with a state modifier or ``None``."""

    pc: int
    opcode: int
    state: ExecutionState


@dataclass
class AccountExists:
    """Does this account exist?"""

    address: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")


@dataclass
class GetStorage:
    """Read this storage key."""

    address: bytes
    key: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")
        self.key = _check_word(self.key, "key")


@dataclass
class SetStorage:
    """Write this storage key."""

    address: bytes
    key: bytes
    value: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")
        self.key = _check_word(self.key, "key")
        self.value = _check_word(self.value, "value")


@dataclass
class GetBalance:
    """Get the balance of this account."""

    address: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")


@dataclass
class GetCodeSize:
    """Get the code size of this account."""

    address: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")


@dataclass
class GetCodeHash:
    """Get the code hash of this account."""

    address: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")


@dataclass
class CopyCode:
    """Get at most ``max_size`` bytes of this account's code from ``offset``."""

    address: bytes
    offset: int
    max_size: int

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")
        if self.offset < 0 or self.max_size < 0:
            raise ValueError("offset and max_size must not be negative")


@dataclass
class Selfdestruct:
    """Destroy this account in favour of the beneficiary."""

    address: bytes
    beneficiary: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")
        self.beneficiary = _check_address(self.beneficiary, "beneficiary")


@dataclass
class CallRequest:
    """Execute this message, or this contract creation, as a nested call."""

    message: Union[Message, CreateMessage]

    def __post_init__(self) -> None:
        if not isinstance(self.message, (Message, CreateMessage)):
            raise TypeError(f"cannot call with {type(self.message).__name__}")


@dataclass(frozen=True)
class GetTxContext:
    """Get the transaction context of this call."""


@dataclass
class GetBlockHash:
    """Get the hash of this block."""

    block_number: int


@dataclass
class EmitLog:
    """Emit a log entry with up to four topics."""

    address: bytes
    data: bytes
    topics: Tuple[bytes, ...] = ()

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")
        self.data = bytes(self.data)
        if len(self.topics) > _MAX_TOPICS:
            raise ValueError(f"a log has at most {_MAX_TOPICS} topics, got {len(self.topics)}")
        self.topics = tuple(_check_word(topic, "topic") for topic in self.topics)


@dataclass
class AccessAccount:
    """Mark this account warm; resume with its previous access status."""

    address: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")


@dataclass
class AccessStorage:
    """Mark this storage key warm; resume with its previous access status."""

    address: bytes
    key: bytes

    def __post_init__(self) -> None:
        self.address = _check_address(self.address, "address")
        self.key = _check_word(self.key, "key")


InterruptData = Union[
    InstructionStart,
    AccountExists,
    GetStorage,
    SetStorage,
    GetBalance,
    GetCodeSize,
    GetCodeHash,
    CopyCode,
    Selfdestruct,
    CallRequest,
    GetTxContext,
    GetBlockHash,
    EmitLog,
    AccessAccount,
    AccessStorage,
]

StateModifier = Optional[Callable[[ExecutionState], None]]

ExecutionCoroutine = Generator[InterruptData, Any, SuccessfulOutput]

_RESUME_TYPES: Dict[type, tuple] = {
    AccountExists: (bool,),
    GetStorage: (bytes, bytearray),
    SetStorage: (StorageStatus,),
    GetBalance: (int,),
    GetCodeSize: (int,),
    GetCodeHash: (bytes, bytearray),
    CopyCode: (bytes, bytearray),
    Selfdestruct: (type(None),),
    CallRequest: (Output,),
    GetTxContext: (TxContext,),
    GetBlockHash: (bytes, bytearray),
    EmitLog: (type(None),),
    AccessAccount: (AccessStatus,),
    AccessStorage: (AccessStatus,),
}

_WORD_ANSWERS = (GetStorage, GetCodeHash, GetBlockHash)


def _checked_resume(data: InterruptData, value: Any) -> Any:
    """Validate the answer to a request and normalise it."""
    if isinstance(data, InstructionStart):
        if value is not None and not callable(value):
            raise TypeError("an instruction start resumes with a callable or None")
        return value
    expected = _RESUME_TYPES[type(data)]
    if not isinstance(value, expected):
        names = " or ".join(t.__name__ for t in expected)
        raise TypeError(
            f"{type(data).__name__} resumes with {names}, not {type(value).__name__}"
        )
    if isinstance(data, _WORD_ANSWERS):
        return _check_word(value, "answer")
    if isinstance(data, CopyCode):
        if len(value) > data.max_size:
            raise ValueError(f"copied {len(value)} bytes, at most {data.max_size} requested")
        return bytes(value)
    return value


@dataclass
class Completed:
    """Execution has finished, either with an output or with an error."""

    output: Optional[SuccessfulOutput] = None
    error: Optional[EvmError] = None

    def __post_init__(self) -> None:
        if (self.output is None) == (self.error is None):
            raise ValueError("exactly one of output and error must be given")

    @property
    def status_code(self) -> StatusCode:
        """The status code the execution ended with."""
        if self.error is not None:
            return self.error.status_code
        return StatusCode.REVERT if self.output.reverted else StatusCode.SUCCESS


class Interrupt:
    """Paused execution waiting for the answer to :attr:`data`."""

    __slots__ = ("data", "_coroutine")

    def __init__(self, data: InterruptData, coroutine: ExecutionCoroutine) -> None:
        self.data = data
        self._coroutine: Optional[ExecutionCoroutine] = coroutine

    def __repr__(self) -> str:
        return f"Interrupt({self.data!r})"

    def resume(self, resume_data: Any = None) -> Union["Interrupt", Completed]:
        """Answer the request and run until the next interrupt or completion."""
        if self._coroutine is None:
            raise RuntimeError("interrupt has already been resumed")
        value = _checked_resume(self.data, resume_data)
        coroutine, self._coroutine = self._coroutine, None
        return _advance(coroutine, lambda: coroutine.send(value))


Step = Union[Interrupt, Completed]


def _advance(coroutine: ExecutionCoroutine, step: Callable[[], Any]) -> Step:
    try:
        yielded = step()
    except StopIteration as stop:
        if not isinstance(stop.value, SuccessfulOutput):
            raise TypeError(
                f"execution must return SuccessfulOutput, not {type(stop.value).__name__}"
            ) from None
        return Completed(output=stop.value)
    except EvmError as error:
        return Completed(error=error)
    if type(yielded) not in _RESUME_TYPES and not isinstance(yielded, InstructionStart):
        coroutine.close()
        raise TypeError(f"execution yielded {type(yielded).__name__}, not a host request")
    return Interrupt(yielded, coroutine)


def begin(coroutine: ExecutionCoroutine) -> Step:
    """Start execution and run until the first interrupt or completion."""
    return _advance(coroutine, lambda: next(coroutine))


def _call(host: Host, data: CallRequest) -> Output:
    message = data.message
    if isinstance(message, CreateMessage):
        message = message.to_message()
    return host.call(message)


_HANDLERS: Dict[type, Callable[[Host, Any], Any]] = {
    InstructionStart: lambda host, data: None,
    AccountExists: lambda host, data: host.account_exists(data.address),
    GetStorage: lambda host, data: host.get_storage(data.address, data.key),
    SetStorage: lambda host, data: host.set_storage(data.address, data.key, data.value),
    GetBalance: lambda host, data: host.get_balance(data.address),
    GetCodeSize: lambda host, data: host.get_code_size(data.address),
    GetCodeHash: lambda host, data: host.get_code_hash(data.address),
    CopyCode: lambda host, data: host.copy_code(data.address, data.offset, data.max_size),
    Selfdestruct: lambda host, data: host.selfdestruct(data.address, data.beneficiary),
    CallRequest: _call,
    GetTxContext: lambda host, data: host.get_tx_context(),
    GetBlockHash: lambda host, data: host.get_block_hash(data.block_number),
    EmitLog: lambda host, data: host.emit_log(data.address, data.data, data.topics),
    AccessAccount: lambda host, data: host.access_account(data.address),
    AccessStorage: lambda host, data: host.access_storage(data.address, data.key),
}


def serve(step: Step, host: Host) -> Completed:
    """Answer every interrupt from ``host`` until execution completes."""
    while isinstance(step, Interrupt):
        step = step.resume(_HANDLERS[type(step.data)](host, step.data))
    return step