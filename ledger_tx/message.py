"""Transaction message model and address table lookup resolution"""

import logging
import threading
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Dict, List, Mapping, Optional, Sequence, Union

from .errors import (
    AlreadyResolved,
    InvalidVersion,
    LookupIndexOutOfRange,
    MissingLookupTable,
    UnresolvedLookup,
)
from .instruction import AccountMeta, Instruction
from .keys import PublicKey, to_hash

logger = logging.getLogger(__name__)


class MessageVersion(IntEnum):
    """Message wire format; versioned formats carry their number on the wire"""
    LEGACY = -1
    V0 = 0


@dataclass(frozen=True)
class MessageHeader:
    """Transaction message header"""
    num_required_signatures: int
    num_readonly_signed_accounts: int
    num_readonly_unsigned_accounts: int


@dataclass
class CompiledInstruction:
    """Compiled instruction"""
    program_id_index: int
    accounts: List[int]
    data: bytes

    def __post_init__(self):
        self.accounts = list(self.accounts)
        self.data = bytes(self.data)


@dataclass
class MessageAddressTableLookup:
    """Indexes into an on-chain address lookup table

    The indexes point into the table's own key list, not into the
    message's account keys.
    """
    account_key: PublicKey
    writable_indexes: List[int] = field(default_factory=list)
    readonly_indexes: List[int] = field(default_factory=list)

    def __post_init__(self):
        self.account_key = PublicKey(self.account_key)
        self.writable_indexes = list(self.writable_indexes)
        self.readonly_indexes = list(self.readonly_indexes)


@dataclass
class AddressLookupTableAccount:
    """Address lookup table contents as stored on chain"""
    key: PublicKey
    addresses: List[PublicKey]

    def __post_init__(self):
        self.key = PublicKey(self.key)
        self.addresses = [PublicKey(address) for address in self.addresses]


LookupTables = Mapping[Union[PublicKey, str], Sequence[Union[PublicKey, bytes, str]]]


@dataclass
class Message:
    """Transaction message

    ``account_keys`` holds only the static keys that go on the wire. Keys
    loaded through address table lookups become available after
    :meth:`resolve` and are appended, writable first, in
    :meth:`resolved_account_keys`.
    """
    header: MessageHeader
    account_keys: List[PublicKey]
    recent_blockhash: bytes
    instructions: List[CompiledInstruction]
    address_table_lookups: List[MessageAddressTableLookup] = field(default_factory=list)
    version: MessageVersion = MessageVersion.LEGACY
    _resolved_keys: Optional[List[PublicKey]] = field(
        default=None, init=False, repr=False, compare=False
    )

    def __post_init__(self):
        # kept off the field list: locks cannot be copied or pickled
        self._resolve_lock = threading.Lock()
        try:
            self.version = MessageVersion(self.version)
        except ValueError:
            raise InvalidVersion(f"unsupported message version: {self.version}") from None
        if self.address_table_lookups and self.version == MessageVersion.LEGACY:
            raise InvalidVersion("address table lookups require a versioned message")
        self.account_keys = [PublicKey(key) for key in self.account_keys]
        self.recent_blockhash = to_hash(self.recent_blockhash)
        self.instructions = list(self.instructions)
        self.address_table_lookups = list(self.address_table_lookups)

    def __getstate__(self):
        state = self.__dict__.copy()
        del state['_resolve_lock']
        return state

    def __setstate__(self, state):
        self.__dict__.update(state)
        self._resolve_lock = threading.Lock()

    def serialize(self) -> bytes:
        """Serialize message to wire bytes"""
        from .codec import serialize_message
        return serialize_message(self)

    @classmethod
    def deserialize(cls, data: bytes) -> 'Message':
        """Parse a legacy or versioned message"""
        from .codec import deserialize_message
        return deserialize_message(data)

    # Lookup tables

    def lookup_table_ids(self) -> List[PublicKey]:
        """Unique lookup table addresses, in lookup order"""
        ids: List[PublicKey] = []
        for lookup in self.address_table_lookups:
            if lookup.account_key not in ids:
                ids.append(lookup.account_key)
        return ids

    def num_lookups(self) -> int:
        return sum(
            len(lookup.writable_indexes) + len(lookup.readonly_indexes)
            for lookup in self.address_table_lookups
        )

    def num_writable_lookups(self) -> int:
        return sum(len(lookup.writable_indexes) for lookup in self.address_table_lookups)

    @property
    def resolved(self) -> bool:
        return self._resolved_keys is not None

    def resolve(self, tables: LookupTables) -> List[PublicKey]:
        """
        Load the accounts referenced through address table lookups

        Args:
            tables: lookup table address -> ordered key list fetched from the ledger

        Returns:
            All account keys: static, then writable lookups, then readonly lookups
        """
        contents: Dict[PublicKey, List[PublicKey]] = {
            PublicKey(address): [PublicKey(key) for key in keys]
            for address, keys in tables.items()
        }
        with self._resolve_lock:
            if self._resolved_keys is not None:
                raise AlreadyResolved("address table lookups already resolved")

            writable: List[PublicKey] = []
            readonly: List[PublicKey] = []
            for lookup in self.address_table_lookups:
                table = contents.get(lookup.account_key)
                if table is None:
                    raise MissingLookupTable(lookup.account_key)
                writable.extend(_select(lookup.account_key, table, lookup.writable_indexes))
                readonly.extend(_select(lookup.account_key, table, lookup.readonly_indexes))

            self._resolved_keys = self.account_keys + writable + readonly

        logger.debug(
            "resolved %d writable and %d readonly lookup accounts from %d tables",
            len(writable), len(readonly), len(self.lookup_table_ids()),
        )
        return list(self._resolved_keys)

    def _set_resolved(self, keys: List[PublicKey]):
        with self._resolve_lock:
            if self._resolved_keys is not None:
                raise AlreadyResolved("address table lookups already resolved")
            self._resolved_keys = list(keys)

    def resolved_account_keys(self) -> List[PublicKey]:
        """Static keys followed by any keys loaded through lookups"""
        if not self.address_table_lookups:
            return list(self.account_keys)
        if self._resolved_keys is None:
            raise UnresolvedLookup("message has address table lookups that are not resolved")
        return list(self._resolved_keys)

    # Account queries

    def signer_keys(self) -> List[PublicKey]:
        """Keys that must sign, in signature order"""
        return self.account_keys[:self.header.num_required_signatures]

    def is_signer_index(self, index: int) -> bool:
        return index < self.header.num_required_signatures

    def is_writable_index(self, index: int) -> bool:
        keys = self.resolved_account_keys()
        if index < 0 or index >= len(keys):
            return False
        h = self.header
        num_static = len(self.account_keys)
        if index >= num_static:
            # looked-up keys: writable segment comes first
            return index - num_static < self.num_writable_lookups()
        if index < h.num_required_signatures:
            return index < h.num_required_signatures - h.num_readonly_signed_accounts
        return index < num_static - h.num_readonly_unsigned_accounts

    def _index_of(self, key: PublicKey) -> Optional[int]:
        key = PublicKey(key)
        for index, account in enumerate(self.resolved_account_keys()):
            if account == key:
                return index
        return None

    def is_signer(self, key: PublicKey) -> bool:
        index = self._index_of(key)
        return index is not None and self.is_signer_index(index)

    def is_writable(self, key: PublicKey) -> bool:
        index = self._index_of(key)
        return index is not None and self.is_writable_index(index)

    def signers(self) -> List[PublicKey]:
        """All signer keys"""
        keys = self.resolved_account_keys()
        return [key for index, key in enumerate(keys) if self.is_signer_index(index)]

    def writable_accounts(self) -> List[PublicKey]:
        """All writable keys, including writable lookups"""
        keys = self.resolved_account_keys()
        return [key for index, key in enumerate(keys) if self.is_writable_index(index)]

    def account_meta(self, index: int) -> AccountMeta:
        keys = self.resolved_account_keys()
        return AccountMeta(
            public_key=keys[index],
            is_signer=self.is_signer_index(index),
            is_writable=self.is_writable_index(index),
        )

    def program_id(self, compiled: CompiledInstruction) -> PublicKey:
        return self.resolved_account_keys()[compiled.program_id_index]

    def decompile_instruction(self, compiled: CompiledInstruction) -> Instruction:
        """Rebuild an instruction from its account indexes"""
        return Instruction(
            program_id=self.program_id(compiled),
            accounts=[self.account_meta(index) for index in compiled.accounts],
            data=compiled.data,
        )

    def decompile_instructions(self) -> List[Instruction]:
        return [self.decompile_instruction(compiled) for compiled in self.instructions]


def _select(table_key: PublicKey, table: List[PublicKey], indexes: List[int]) -> List[PublicKey]:
    selected = []
    for index in indexes:
        if index >= len(table):
            raise LookupIndexOutOfRange(table_key, index, len(table))
        selected.append(table[index])
    return selected
