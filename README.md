# evmkit

The instruction set of the Ethereum Virtual Machine in pure Python, built so
that execution can pause whenever it needs the outside world. Every EVM word
is a plain `int` in the range `0 .. 2**256 - 1`, and arithmetic wraps modulo
`2**256`.

Instructions never reach chain state directly. An instruction that needs to
read storage, check a balance, emit a log and so on is a generator: it yields a
request object and receives the answer through `send`. `evmkit.continuation`
wraps each pause in an `Interrupt` that you resume with the answer, and its
`serve` function answers every interrupt from a `Host` object for you.

## Installation

```
pip install evmkit
```

To run the test suite:

```
pip install "evmkit[test]"
pytest
```

## Modules

- `evmkit.common`: `Revision` (Frontier through Shanghai, an `IntEnum`, with
  `Revision.latest()`), `StatusCode`, `EvmError` (an exception carrying a
  `status_code` and optional `detail`), `CallKind`, `Message`,
  `CreateMessage` (with `to_message()`), `Output`, `SuccessfulOutput` (with
  `to_output()`), and `u256_to_address` / `address_to_u256`. Addresses are
  20-byte `bytes`, storage keys, values and hashes 32-byte `bytes`.
- `evmkit.host`: the abstract `Host` interface, `AccessStatus` (EIP-2929
  cold/warm), `StorageStatus` and `TxContext`.
- `evmkit.machine`: the 1024-item `Stack` (index 0 is the top; overflow and
  underflow raise `EvmError`), `ExecutionState`, and the `load_push`, `dup`,
  `swap` and `pop` helpers.
- `evmkit.arithmetic`: `add`, `mul`, `sub`, `div`, `sdiv`, `modulo`, `smod`,
  `addmod`, `mulmod`, `exp` (charges the per-byte exponent cost, which depends
  on the revision) and `signextend`.
- `evmkit.bitwise`: `byte`, `shl`, `shr`, `sar`, `lt`, `gt`, `slt`, `sgt`,
  `eq`, `iszero`, `and_`, `or_`, `xor`, `not_`.
- `evmkit.memory`: memory expansion and its gas cost
  (`verify_memory_region`, `verify_memory_region_u64`, `num_words`,
  `MemoryRegion`), `mload`, `mstore`, `mstore8`, `msize`, `calldatacopy`,
  `keccak256`, `codesize`, `codecopy`, `returndatasize`, `returndatacopy`,
  and the host-backed generators `extcodecopy` and `extcodehash`.
- `evmkit.control`: `ret` (output for `RETURN`/`REVERT`), `op_jump`,
  `calldataload`, `calldatasize`.
- `evmkit.external`: `address`, `caller`, `callvalue`, and the host-backed
  generators `balance`, `extcodesize`, `selfbalance`, `blockhash`,
  `push_txcontext` (with the `*_accessor` functions for `ORIGIN`,
  `COINBASE`, `GASPRICE`, `TIMESTAMP`, `NUMBER`, `GASLIMIT`, `DIFFICULTY`,
  `CHAINID`, `BASEFEE`), `do_log`, `sload`, `sstore` and `selfdestruct`,
  including the Berlin cold-access charges.
- `evmkit.continuation`: the request types (`AccountExists`, `GetStorage`,
  `SetStorage`, `GetBalance`, `GetCodeSize`, `GetCodeHash`, `CopyCode`,
  `Selfdestruct`, `CallRequest`, `GetTxContext`, `GetBlockHash`, `EmitLog`,
  `AccessAccount`, `AccessStorage`, `InstructionStart`), `Interrupt`,
  `Completed`, `begin` and `serve`. Answers are type-checked on resume.
- `evmkit.properties`: `OPCODES` (opcode byte by name), `PROPERTIES` (name and
  stack effect of every opcode), `Properties`, `gas_costs(revision)` and the
  EIP-2929 cost constants.
- `evmkit.instruction_table`: `get_baseline_instruction_table(revision)`,
  returning 256 `InstructionTableEntry` items, `None` for undefined opcodes.

## Examples

Plain instructions work on a stack or state directly:

```python
from evmkit.machine import Stack
from evmkit.arithmetic import add

stack = Stack()
stack.push(7)
stack.push(13)
add(stack)
assert stack.pop() == 20
```

A coroutine driven by `begin` must return a `SuccessfulOutput`, so wrap
host-backed instructions in a small generator:

```python
from evmkit.common import CallKind, Message, Revision, StatusCode, SuccessfulOutput
from evmkit.continuation import GetBalance, begin
from evmkit.external import selfbalance
from evmkit.machine import ExecutionState

message = Message(
    kind=CallKind.CALL, is_static=False, depth=0, gas=100_000,
    destination=bytes(20), sender=bytes(20),
)
state = ExecutionState(message, Revision.LONDON)

def run(state):
    yield from selfbalance(state)
    return SuccessfulOutput(reverted=False, gas_left=state.gas_left)

step = begin(run(state))
assert isinstance(step.data, GetBalance)
done = step.resume(1000)
assert done.status_code is StatusCode.SUCCESS
assert state.stack.pop() == 1000
```

With a `Host` implementation, `serve(begin(run(state)), host)` answers every
request and returns the `Completed` result. An `EvmError` raised during
execution ends it with `Completed(error=...)`, whose `status_code` is, for
example, `StatusCode.OUT_OF_GAS` or `StatusCode.STATIC_MODE_VIOLATION`.

## What it does not do

- There is no loop that runs bytecode: nothing decodes a program, analyses
  jump destinations, dispatches opcodes, or applies the base gas costs and
  stack checks from the instruction table. You get the instructions and the
  tables to build one.
- The `CALL`, `CALLCODE`, `DELEGATECALL`, `STATICCALL`, `CREATE` and
  `CREATE2` instructions are not implemented. The `CallRequest` type exists,
  and `serve` forwards it to `Host.call` (converting a `CreateMessage` with
  `to_message()`), but no instruction issues it.
- No `Host` implementation, state storage or precompiled contracts are
  included.