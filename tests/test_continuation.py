import pytest

from evmkit.common import (
    CallKind,
    CreateMessage,
    EvmError,
    Message,
    Output,
    Revision,
    StatusCode,
    SuccessfulOutput,
)
from evmkit.continuation import (
    AccessAccount,
    AccessStorage,
    AccountExists,
    CallRequest,
    Completed,
    CopyCode,
    EmitLog,
    GetBalance,
    GetBlockHash,
    GetCodeHash,
    GetCodeSize,
    GetStorage,
    GetTxContext,
    InstructionStart,
    Interrupt,
    Selfdestruct,
    SetStorage,
    begin,
    serve,
)
from evmkit.host import AccessStatus, Host, StorageStatus, TxContext
from evmkit.machine import ExecutionState

ADDR = bytes.fromhex("cc" * 20)
OTHER = bytes.fromhex("dd" * 20)
KEY = bytes.fromhex("01" * 32)
VALUE = bytes.fromhex("02" * 32)


class RecordingHost(Host):
    def __init__(self):
        self.calls = []

    def account_exists(self, address):
        self.calls.append(("account_exists", address))
        return address == ADDR

    def get_storage(self, address, key):
        self.calls.append(("get_storage", address, key))
        return VALUE

    def set_storage(self, address, key, value):
        self.calls.append(("set_storage", address, key, value))
        return StorageStatus.ADDED

    def get_balance(self, address):
        self.calls.append(("get_balance", address))
        return 1234

    def get_code_size(self, address):
        self.calls.append(("get_code_size", address))
        return 77

    def get_code_hash(self, address):
        self.calls.append(("get_code_hash", address))
        return KEY

    def copy_code(self, address, offset, max_size):
        self.calls.append(("copy_code", address, offset, max_size))
        return b"\x60\x01\x60\x02"[offset:offset + max_size]

    def selfdestruct(self, address, beneficiary):
        self.calls.append(("selfdestruct", address, beneficiary))

    def call(self, msg):
        self.calls.append(("call", msg))
        return Output(StatusCode.SUCCESS, gas_left=msg.gas, output_data=b"hi")

    def get_tx_context(self):
        self.calls.append(("get_tx_context",))
        return TxContext(block_number=42)

    def get_block_hash(self, block_number):
        self.calls.append(("get_block_hash", block_number))
        return VALUE

    def emit_log(self, address, data, topics):
        self.calls.append(("emit_log", address, data, tuple(topics)))

    def access_account(self, address):
        self.calls.append(("access_account", address))
        return AccessStatus.COLD

    def access_storage(self, address, key):
        self.calls.append(("access_storage", address, key))
        return AccessStatus.WARM


def make_state(gas=100):
    msg = Message(CallKind.CALL, False, 0, gas, ADDR, OTHER)
    return ExecutionState(message=msg, evm_revision=Revision.latest())


def returns_immediately():
    return SuccessfulOutput(reverted=False, gas_left=7, output_data=b"ok")
    yield  # makes this a generator


def failing_program():
    raise EvmError(StatusCode.OUT_OF_GAS)
    yield


def reverting_program():
    return SuccessfulOutput(reverted=True, gas_left=0)
    yield


def balance_program():
    balance = yield GetBalance(ADDR)
    return SuccessfulOutput(reverted=False, gas_left=balance)


def yields_non_request():
    yield 5
    return SuccessfulOutput(False, 0)


def returns_non_output():
    return 5
    yield


def asks_everything(answers):
    answers.append((yield AccountExists(ADDR)))
    answers.append((yield GetStorage(ADDR, KEY)))
    answers.append((yield SetStorage(ADDR, KEY, VALUE)))
    answers.append((yield GetBalance(OTHER)))
    answers.append((yield GetCodeSize(OTHER)))
    answers.append((yield GetCodeHash(OTHER)))
    answers.append((yield CopyCode(OTHER, 1, 2)))
    answers.append((yield Selfdestruct(ADDR, OTHER)))
    answers.append((yield GetTxContext()))
    answers.append((yield GetBlockHash(41)))
    answers.append((yield EmitLog(ADDR, b"log", (KEY,))))
    answers.append((yield AccessAccount(OTHER)))
    answers.append((yield AccessStorage(ADDR, KEY)))
    return SuccessfulOutput(reverted=False, gas_left=len(answers))


def creates(create):
    output = yield CallRequest(create)
    return SuccessfulOutput(False, output.gas_left, output.output_data)


def applies_modifier(state):
    modifier = yield InstructionStart(pc=0, opcode=0x01, state=state)
    if modifier is not None:
        modifier(state)
    return SuccessfulOutput(False, state.gas_left)


def expects_no_modifier(state):
    modifier = yield InstructionStart(pc=0, opcode=0x01, state=state)
    if modifier is not None:
        raise AssertionError("unexpected state modifier")
    return SuccessfulOutput(False, state.gas_left)


def copies_one_byte():
    yield CopyCode(ADDR, 0, 1)
    return SuccessfulOutput(False, 0)


def test_begin_completes_without_interrupts():
    step = begin(returns_immediately())
    assert isinstance(step, Completed)
    assert step.output == SuccessfulOutput(False, 7, b"ok")
    assert step.status_code is StatusCode.SUCCESS
    assert step.error is None


def test_begin_reports_error():
    step = begin(failing_program())
    assert isinstance(step, Completed)
    assert step.status_code is StatusCode.OUT_OF_GAS
    assert step.output is None


def test_reverted_completion_has_revert_status():
    assert begin(reverting_program()).status_code is StatusCode.REVERT


def test_interrupt_exposes_data_and_resumes():
    step = begin(balance_program())
    assert isinstance(step, Interrupt)
    assert step.data == GetBalance(ADDR)
    done = step.resume(1234)
    assert isinstance(done, Completed)
    assert done.output.gas_left == 1234


def test_interrupt_cannot_be_resumed_twice():
    step = begin(balance_program())
    step.resume(5)
    with pytest.raises(RuntimeError):
        step.resume(5)


def test_wrong_resume_type_is_rejected():
    step = begin(balance_program())
    with pytest.raises(TypeError):
        step.resume("lots")
    assert step.resume(9).output.gas_left == 9


def test_yielding_non_request_is_rejected():
    with pytest.raises(TypeError):
        begin(yields_non_request())


def test_returning_non_output_is_rejected():
    with pytest.raises(TypeError):
        begin(returns_non_output())


def test_serve_answers_every_request_from_host():
    answers = []
    host = RecordingHost()
    done = serve(begin(asks_everything(answers)), host)
    assert done.output.gas_left == 13
    assert answers == [
        True,
        VALUE,
        StorageStatus.ADDED,
        1234,
        77,
        KEY,
        b"\x01\x60",
        None,
        TxContext(block_number=42),
        VALUE,
        None,
        AccessStatus.COLD,
        AccessStatus.WARM,
    ]
    assert host.calls[0] == ("account_exists", ADDR)
    assert host.calls[6] == ("copy_code", OTHER, 1, 2)
    assert host.calls[9] == ("get_block_hash", 41)
    assert host.calls[10] == ("emit_log", ADDR, b"log", (KEY,))


def test_serve_converts_create_request_to_message():
    create = CreateMessage(
        salt=None, gas=500, depth=1, initcode=b"\x00", sender=ADDR, endowment=3
    )
    host = RecordingHost()
    done = serve(begin(creates(create)), host)
    sent = host.calls[0][1]
    assert sent.kind is CallKind.CREATE
    assert sent.destination == bytes(20)
    assert sent.value == 3
    assert done.output == SuccessfulOutput(False, 500, b"hi")


def test_instruction_start_applies_modifier():
    state = make_state(gas=100)
    step = begin(applies_modifier(state))
    done = step.resume(lambda s: setattr(s, "gas_left", 5))
    assert done.output.gas_left == 5


def test_serve_does_not_modify_state_on_instruction_start():
    state = make_state(gas=100)
    assert serve(begin(expects_no_modifier(state)), RecordingHost()).output.gas_left == 100


def test_emit_log_rejects_too_many_topics():
    with pytest.raises(ValueError):
        EmitLog(ADDR, b"", (KEY,) * 5)


def test_copy_code_answer_longer_than_requested_is_rejected():
    with pytest.raises(ValueError):
        begin(copies_one_byte()).resume(b"\x01\x02")


def test_completed_needs_exactly_one_result():
    with pytest.raises(ValueError):
        Completed()
    with pytest.raises(ValueError):
        Completed(output=SuccessfulOutput(False, 0), error=EvmError(StatusCode.FAILURE))