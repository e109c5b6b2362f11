"""Instructions and account metadata"""

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

from .errors import SlotAlreadySet, SlotUnset, UnknownProgram
from .keys import PublicKey


@dataclass(frozen=True)
class AccountMeta:
    """Account referenced by an instruction"""
    public_key: PublicKey
    is_signer: bool = False
    is_writable: bool = False

    def sort_rank(self) -> int:
        """0 for signer+writable through 3 for readonly non-signer"""
        return (0 if self.is_signer else 2) + (0 if self.is_writable else 1)

    def merge(self, other: 'AccountMeta') -> 'AccountMeta':
        """Combine flags of two metas for the same key, most permissive wins"""
        return AccountMeta(
            public_key=self.public_key,
            is_signer=self.is_signer or other.is_signer,
            is_writable=self.is_writable or other.is_writable,
        )


class InstructionLike(Protocol):
    """Anything the compiler can consume"""
    program_id: PublicKey
    accounts: Sequence[AccountMeta]
    data: bytes


@dataclass(frozen=True)
class Instruction:
    """Program invocation with its accounts and opaque data"""
    program_id: PublicKey
    accounts: Sequence[AccountMeta] = ()
    data: bytes = b''

    def __post_init__(self):
        # freeze caller-owned containers
        object.__setattr__(self, 'accounts', tuple(self.accounts))
        object.__setattr__(self, 'data', bytes(self.data))


class AccountMetaSlots:
    """Positional accumulator for an instruction's account list

    Builders record each account at its slot; finalize() refuses gaps so
    a missing account is caught before compilation.
    """

    def __init__(self, size: int):
        self.size = size
        self._slots: Dict[int, AccountMeta] = {}

    def set(self, slot: int, meta: AccountMeta) -> 'AccountMetaSlots':
        if slot < 0 or slot >= self.size:
            raise IndexError(f"slot {slot} out of range for {self.size} accounts")
        if slot in self._slots:
            raise SlotAlreadySet(f"account slot {slot} already set to {self._slots[slot].public_key}")
        self._slots[slot] = meta
        return self

    def finalize(self) -> List[AccountMeta]:
        missing = [slot for slot in range(self.size) if slot not in self._slots]
        if missing:
            raise SlotUnset(f"account slots not set: {missing}")
        return [self._slots[slot] for slot in range(self.size)]


InstructionDecoder = Callable[[List[AccountMeta], bytes], Any]


@dataclass
class InstructionDecoderTable:
    """Program id to decoder mapping, built and owned by the caller"""
    decoders: Dict[PublicKey, InstructionDecoder] = field(default_factory=dict)

    def register(self, program_id: PublicKey, decoder: InstructionDecoder) -> 'InstructionDecoderTable':
        self.decoders[program_id] = decoder
        return self

    def get(self, program_id: PublicKey) -> Optional[InstructionDecoder]:
        return self.decoders.get(program_id)

    def decode(self, message, compiled) -> Any:
        """Decode one compiled instruction of message"""
        instruction = message.decompile_instruction(compiled)
        decoder = self.decoders.get(instruction.program_id)
        if decoder is None:
            raise UnknownProgram(f"no decoder registered for program {instruction.program_id}")
        return decoder(list(instruction.accounts), instruction.data)

    def decode_all(self, message) -> List[Any]:
        return [self.decode(message, compiled) for compiled in message.instructions]
