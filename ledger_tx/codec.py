"""Binary wire codec for messages and transactions

Legacy layout::

    header (3 bytes)
    compact-u16 key count, 32 bytes per key
    recent blockhash (32 bytes)
    compact-u16 instruction count, per instruction:
        program id index (1 byte)
        compact-u16 account count, 1 byte per account index
        compact-u16 data length, data

Versioned messages prefix this with ``0x80 | version`` and append a one
byte lookup count followed by each lookup's table address and its
compact-u16 prefixed writable and readonly index lists.
"""

from typing import List, Optional, Sequence, Tuple

from .constants import (
    HASH_LENGTH,
    MAX_MESSAGE_VERSION,
    PUBLIC_KEY_LENGTH,
    SIGNATURE_LENGTH,
    SUPPORTED_MESSAGE_VERSIONS,
    VERSION_PREFIX_MASK,
)
from .errors import InvalidVersion, MalformedMessage
from .keys import PublicKey
from .message import (
    CompiledInstruction,
    Message,
    MessageAddressTableLookup,
    MessageHeader,
    MessageVersion,
)
from .shortvec import decode_length, encode_length


class Reader:
    """Cursor over wire bytes that names the field on every short read"""

    def __init__(self, data: bytes):
        self.data = bytes(data)
        self.offset = 0

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    def peek(self, field: str) -> int:
        if self.remaining < 1:
            raise MalformedMessage(f"unable to read {field}: no data")
        return self.data[self.offset]

    def read(self, size: int, field: str) -> bytes:
        if self.remaining < size:
            raise MalformedMessage(
                f"unable to read {field}: need {size} bytes at offset {self.offset}, "
                f"{self.remaining} left"
            )
        chunk = self.data[self.offset:self.offset + size]
        self.offset += size
        return chunk

    def read_u8(self, field: str) -> int:
        return self.read(1, field)[0]

    def read_length(self, field: str) -> int:
        value, consumed = decode_length(self.data, self.offset, field)
        self.offset += consumed
        return value


def _u8(value: int, field: str) -> bytes:
    if not 0 <= value <= 0xff:
        raise MalformedMessage(f"{field} value {value} does not fit in one byte")
    return bytes([value])


def _u8_list(values: Sequence[int], field: str) -> bytes:
    return encode_length(len(values)) + b''.join(
        _u8(value, f"{field}[{i}]") for i, value in enumerate(values)
    )


def _version_prefix(version: int) -> bytes:
    if not 0 <= version <= MAX_MESSAGE_VERSION:
        raise InvalidVersion(f"message version {version} is not representable")
    if version not in SUPPORTED_MESSAGE_VERSIONS:
        raise InvalidVersion(f"unsupported message version: {version}")
    return bytes([VERSION_PREFIX_MASK | version])


def serialize_message(message: Message) -> bytes:
    """Serialize message to bytes"""
    parts = []

    if message.version == MessageVersion.LEGACY and message.address_table_lookups:
        raise InvalidVersion("address table lookups require a versioned message")
    if message.version != MessageVersion.LEGACY:
        parts.append(_version_prefix(int(message.version)))

    # Header
    header = message.header
    parts.append(_u8(header.num_required_signatures, 'header.num_required_signatures'))
    parts.append(_u8(header.num_readonly_signed_accounts, 'header.num_readonly_signed_accounts'))
    parts.append(_u8(header.num_readonly_unsigned_accounts, 'header.num_readonly_unsigned_accounts'))

    # Account keys
    parts.append(encode_length(len(message.account_keys)))
    for key in message.account_keys:
        parts.append(bytes(key))

    # Recent blockhash
    parts.append(message.recent_blockhash)

    # Instructions
    parts.append(encode_length(len(message.instructions)))
    for i, instruction in enumerate(message.instructions):
        parts.append(_u8(instruction.program_id_index, f"instructions[{i}].program_id_index"))
        parts.append(_u8_list(instruction.accounts, f"instructions[{i}].accounts"))
        parts.append(encode_length(len(instruction.data)))
        parts.append(instruction.data)

    if message.version != MessageVersion.LEGACY:
        lookups = message.address_table_lookups
        parts.append(_u8(len(lookups), 'address_table_lookups length'))
        for i, lookup in enumerate(lookups):
            parts.append(bytes(lookup.account_key))
            parts.append(_u8_list(lookup.writable_indexes, f"address_table_lookups[{i}].writable_indexes"))
            parts.append(_u8_list(lookup.readonly_indexes, f"address_table_lookups[{i}].readonly_indexes"))

    return b''.join(parts)


def read_message(reader: Reader) -> Message:
    """Parse one message starting at the reader's position"""
    version = MessageVersion.LEGACY
    first = reader.peek('message version')
    if first & VERSION_PREFIX_MASK:
        reader.read_u8('message version')
        number = first & MAX_MESSAGE_VERSION
        if number not in SUPPORTED_MESSAGE_VERSIONS:
            raise InvalidVersion(f"unsupported message version: {number}")
        version = MessageVersion(number)

    header = MessageHeader(
        num_required_signatures=reader.read_u8('header.num_required_signatures'),
        num_readonly_signed_accounts=reader.read_u8('header.num_readonly_signed_accounts'),
        num_readonly_unsigned_accounts=reader.read_u8('header.num_readonly_unsigned_accounts'),
    )

    num_keys = reader.read_length('account_keys length')
    account_keys = [
        PublicKey(reader.read(PUBLIC_KEY_LENGTH, f"account_keys[{i}]"))
        for i in range(num_keys)
    ]
    _check_header(header, num_keys)

    recent_blockhash = reader.read(HASH_LENGTH, 'recent_blockhash')

    instructions = []
    num_instructions = reader.read_length('instructions length')
    for i in range(num_instructions):
        program_id_index = reader.read_u8(f"instructions[{i}].program_id_index")
        num_accounts = reader.read_length(f"instructions[{i}].accounts length")
        accounts = list(reader.read(num_accounts, f"instructions[{i}].accounts"))
        data_len = reader.read_length(f"instructions[{i}].data length")
        data = reader.read(data_len, f"instructions[{i}].data")
        instructions.append(CompiledInstruction(program_id_index, accounts, data))

    lookups = []
    if version != MessageVersion.LEGACY:
        num_lookups = reader.read_u8('address_table_lookups length')
        for i in range(num_lookups):
            field = f"address_table_lookups[{i}]"
            account_key = PublicKey(reader.read(PUBLIC_KEY_LENGTH, f"{field}.account_key"))
            num_writable = reader.read_length(f"{field}.writable_indexes length")
            writable = list(reader.read(num_writable, f"{field}.writable_indexes"))
            num_readonly = reader.read_length(f"{field}.readonly_indexes length")
            readonly = list(reader.read(num_readonly, f"{field}.readonly_indexes"))
            lookups.append(MessageAddressTableLookup(account_key, writable, readonly))

    num_accounts = num_keys + sum(
        len(lookup.writable_indexes) + len(lookup.readonly_indexes) for lookup in lookups
    )
    _check_indexes(instructions, num_accounts)

    return Message(
        header=header,
        account_keys=account_keys,
        recent_blockhash=recent_blockhash,
        instructions=instructions,
        address_table_lookups=lookups,
        version=version,
    )


def _check_header(header: MessageHeader, num_keys: int):
    if header.num_required_signatures > num_keys:
        raise MalformedMessage(
            f"header requires {header.num_required_signatures} signatures but only {num_keys} account keys"
        )
    if header.num_readonly_signed_accounts > header.num_required_signatures:
        raise MalformedMessage("header has more readonly signed accounts than signatures")
    if header.num_readonly_unsigned_accounts > num_keys - header.num_required_signatures:
        raise MalformedMessage("header has more readonly unsigned accounts than unsigned keys")


def _check_indexes(instructions: List[CompiledInstruction], num_accounts: int):
    for i, instruction in enumerate(instructions):
        if instruction.program_id_index >= num_accounts:
            raise MalformedMessage(
                f"instructions[{i}].program_id_index {instruction.program_id_index} "
                f"out of range for {num_accounts} accounts"
            )
        for j, index in enumerate(instruction.accounts):
            if index >= num_accounts:
                raise MalformedMessage(
                    f"instructions[{i}].accounts[{j}] {index} out of range for {num_accounts} accounts"
                )


def deserialize_message(data: bytes) -> Message:
    """Parse a complete legacy or versioned message"""
    reader = Reader(data)
    message = read_message(reader)
    if reader.remaining:
        raise MalformedMessage(f"{reader.remaining} trailing bytes after message")
    return message


def serialize_transaction(signatures: Sequence[bytes], message_bytes: bytes) -> bytes:
    """Prefix message bytes with the compact-u16 signature list"""
    parts = [encode_length(len(signatures))]
    for i, signature in enumerate(signatures):
        if len(signature) != SIGNATURE_LENGTH:
            raise MalformedMessage(f"signatures[{i}] must be {SIGNATURE_LENGTH} bytes, got {len(signature)}")
        parts.append(bytes(signature))
    parts.append(message_bytes)
    return b''.join(parts)


def deserialize_transaction(data: bytes) -> Tuple[List[Optional[bytes]], Message]:
    """
    Split wire bytes into signatures and message

    All-zero signatures are returned as None (empty slots).
    """
    reader = Reader(data)
    num_signatures = reader.read_length('signatures length')
    signatures: List[Optional[bytes]] = []
    for i in range(num_signatures):
        signature = reader.read(SIGNATURE_LENGTH, f"signatures[{i}]")
        signatures.append(None if signature == bytes(SIGNATURE_LENGTH) else signature)

    message = read_message(reader)
    if reader.remaining:
        raise MalformedMessage(f"{reader.remaining} trailing bytes after transaction")
    if num_signatures != message.header.num_required_signatures:
        raise MalformedMessage(
            f"transaction has {num_signatures} signatures, message requires "
            f"{message.header.num_required_signatures}"
        )
    return signatures, message
