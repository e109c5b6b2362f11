"""Transaction builder and utilities"""

import base64
import logging
from enum import Enum
from typing import Iterable, List, Optional, Protocol, Sequence, Union

import base58

from .codec import deserialize_transaction, serialize_transaction
from .compiler import compile_message
from .constants import SIGNATURE_LENGTH
from .errors import (
    MessageChanged,
    NotFullySigned,
    TransactionFinalized,
    UnknownSigner,
    ValidationError,
)
from .instruction import InstructionLike
from .keys import PublicKey
from .message import AddressLookupTableAccount, Message

logger = logging.getLogger(__name__)


class Signer(Protocol):
    """Anything that can sign message bytes for a public key"""
    public_key: PublicKey

    def sign(self, message: bytes) -> bytes:
        ...


class TransactionState(Enum):
    """Signing progress"""
    UNSIGNED = 'unsigned'
    PARTIALLY_SIGNED = 'partially_signed'
    FULLY_SIGNED = 'fully_signed'
    SERIALIZED = 'serialized'


class Transaction:
    """Message plus one signature slot per required signer"""

    def __init__(self, message: Message, signatures: Optional[Sequence[Optional[bytes]]] = None):
        self.message = message
        required = message.header.num_required_signatures
        if signatures is None:
            signatures = [None] * required
        if len(signatures) != required:
            raise ValidationError(f"expected {required} signature slots, got {len(signatures)}")
        self.signatures: List[Optional[bytes]] = [
            None if signature is None else bytes(signature) for signature in signatures
        ]
        self._signed_bytes: Optional[bytes] = None
        self._serialized = False
        if any(signature is not None for signature in self.signatures):
            self._signed_bytes = message.serialize()

    @classmethod
    def compile(
        cls,
        instructions: Sequence[InstructionLike],
        recent_blockhash: Union[bytes, str],
        payer: Optional[PublicKey],
        address_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
    ) -> 'Transaction':
        """Compile instructions into an unsigned transaction"""
        return cls(compile_message(instructions, recent_blockhash, payer, address_tables))

    @classmethod
    def deserialize(cls, data: bytes) -> 'Transaction':
        """Parse a wire transaction"""
        signatures, message = deserialize_transaction(data)
        return cls(message, signatures)

    @property
    def state(self) -> TransactionState:
        if self._serialized:
            return TransactionState.SERIALIZED
        if all(signature is None for signature in self.signatures):
            return TransactionState.UNSIGNED
        if any(signature is None for signature in self.signatures):
            return TransactionState.PARTIALLY_SIGNED
        return TransactionState.FULLY_SIGNED

    @property
    def signature(self) -> Optional[bytes]:
        """First signature, which identifies the transaction"""
        return self.signatures[0] if self.signatures else None

    def message_bytes(self) -> bytes:
        """Serialized message, checked against the bytes already signed"""
        current = self.message.serialize()
        if self._signed_bytes is not None and current != self._signed_bytes:
            raise MessageChanged("message was modified after signing started")
        return current

    def _slot(self, public_key: PublicKey) -> int:
        key = PublicKey(public_key)
        signer_keys = self.message.signer_keys()
        if key not in signer_keys:
            raise UnknownSigner(key)
        return signer_keys.index(key)

    def sign(self, signers: Iterable[Signer]) -> 'Transaction':
        """Sign the message with each signer, storing the signature at its slot"""
        if self._serialized:
            raise TransactionFinalized("transaction already serialized")
        signers = list(signers)
        slots = [(self._slot(signer.public_key), signer) for signer in signers]
        if not slots:
            return self

        message = self.message_bytes()
        for index, signer in slots:
            self.signatures[index] = bytes(signer.sign(message))
            logger.debug("signed slot %d with %s", index, signer.public_key)
        self._signed_bytes = message
        return self

    def add_signature(self, public_key: PublicKey, signature: bytes) -> 'Transaction':
        """Attach a signature computed elsewhere"""
        if self._serialized:
            raise TransactionFinalized("transaction already serialized")
        if len(signature) != SIGNATURE_LENGTH:
            raise ValidationError(f"signature must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")
        index = self._slot(public_key)
        self._signed_bytes = self.message_bytes()
        self.signatures[index] = bytes(signature)
        return self

    def missing_signers(self) -> List[PublicKey]:
        signer_keys = self.message.signer_keys()
        return [signer_keys[i] for i, signature in enumerate(self.signatures) if signature is None]

    def is_fully_signed(self) -> bool:
        return not self.missing_signers()

    def verify_signatures(self) -> bool:
        """Check every slot holds a valid signature over the message"""
        if not self.is_fully_signed():
            return False
        message = self.message.serialize()
        return all(
            key.verify(message, signature)
            for key, signature in zip(self.message.signer_keys(), self.signatures)
        )

    def serialize(self) -> bytes:
        """Serialize transaction to bytes"""
        message = self.message_bytes()
        missing = self.missing_signers()
        if missing:
            raise NotFullySigned(missing)
        output = serialize_transaction(self.signatures, message)
        self._serialized = True
        return output

    def to_base64(self) -> str:
        return base64.b64encode(self.serialize()).decode('ascii')

    def to_base58(self) -> str:
        return base58.b58encode(self.serialize()).decode('ascii')


class TransactionBuilder:
    """Builder for constructing transactions"""

    def __init__(self):
        self.instructions: List[InstructionLike] = []
        self.fee_payer: Optional[PublicKey] = None
        self.recent_blockhash: Optional[Union[bytes, str]] = None
        self.address_tables: Optional[List[AddressLookupTableAccount]] = None

    def add_instruction(self, instruction: InstructionLike) -> 'TransactionBuilder':
        """Add an instruction"""
        self.instructions.append(instruction)
        return self

    def set_fee_payer(self, payer: PublicKey) -> 'TransactionBuilder':
        """Set fee payer"""
        self.fee_payer = PublicKey(payer)
        return self

    def set_recent_blockhash(self, blockhash: Union[bytes, str]) -> 'TransactionBuilder':
        """Set recent blockhash"""
        self.recent_blockhash = blockhash
        return self

    def use_v0(self) -> 'TransactionBuilder':
        """Produce a versioned message even without lookup tables"""
        if self.address_tables is None:
            self.address_tables = []
        return self

    def add_address_table(self, table: AddressLookupTableAccount) -> 'TransactionBuilder':
        """Add a lookup table to draw accounts from (implies v0)"""
        self.use_v0()
        self.address_tables.append(table)
        return self

    def build(self) -> Transaction:
        """Build the transaction"""
        if self.recent_blockhash is None:
            raise ValidationError("Recent blockhash not set")
        return Transaction.compile(
            self.instructions,
            self.recent_blockhash,
            self.fee_payer,
            self.address_tables,
        )
