"""Transaction message compiler, wire codec and signer"""

from .client import LedgerRpcClient, RpcError
from .codec import deserialize_message, serialize_message
from .compiler import compile_message
from .errors import (
    AlreadyResolved,
    FormatError,
    InvalidVersion,
    LookupIndexOutOfRange,
    MalformedMessage,
    MessageChanged,
    MissingLookupTable,
    MissingPayer,
    NotFullySigned,
    SlotAlreadySet,
    SlotUnset,
    StateError,
    TooManyAccounts,
    TransactionError,
    TransactionFinalized,
    UnknownProgram,
    UnknownSigner,
    UnresolvedLookup,
    ValidationError,
)
from .instruction import AccountMeta, AccountMetaSlots, Instruction, InstructionDecoderTable
from .keys import Keypair, PublicKey
from .message import (
    AddressLookupTableAccount,
    CompiledInstruction,
    Message,
    MessageAddressTableLookup,
    MessageHeader,
    MessageVersion,
)
from .transaction import Transaction, TransactionBuilder, TransactionState

__version__ = '0.1.0'

__all__ = [
    'AccountMeta',
    'AccountMetaSlots',
    'AddressLookupTableAccount',
    'AlreadyResolved',
    'CompiledInstruction',
    'FormatError',
    'Instruction',
    'InstructionDecoderTable',
    'InvalidVersion',
    'Keypair',
    'LedgerRpcClient',
    'LookupIndexOutOfRange',
    'MalformedMessage',
    'Message',
    'MessageAddressTableLookup',
    'MessageChanged',
    'MessageHeader',
    'MessageVersion',
    'MissingLookupTable',
    'MissingPayer',
    'NotFullySigned',
    'PublicKey',
    'RpcError',
    'SlotAlreadySet',
    'SlotUnset',
    'StateError',
    'TooManyAccounts',
    'Transaction',
    'TransactionBuilder',
    'TransactionError',
    'TransactionFinalized',
    'TransactionState',
    'UnknownProgram',
    'UnknownSigner',
    'UnresolvedLookup',
    'ValidationError',
    'compile_message',
    'deserialize_message',
    'serialize_message',
]
