"""Compile instructions into a message with one ordered account table"""

import logging
from typing import Dict, List, Optional, Sequence, Set, Union

from .constants import MAX_ACCOUNTS
from .errors import MissingPayer, TooManyAccounts
from .instruction import AccountMeta, InstructionLike
from .keys import PublicKey
from .message import (
    AddressLookupTableAccount,
    CompiledInstruction,
    Message,
    MessageAddressTableLookup,
    MessageHeader,
    MessageVersion,
)

logger = logging.getLogger(__name__)


def collect_account_metas(
    instructions: Sequence[InstructionLike],
    payer: PublicKey,
) -> List[AccountMeta]:
    """
    Merge the payer and every instruction's accounts into one ordered list

    Keys keep the position of their first occurrence with the flags of all
    occurrences OR-ed together, then are stably sorted signer+writable,
    signer, writable, readonly. The payer always comes first.
    """
    metas: Dict[PublicKey, AccountMeta] = {payer: AccountMeta(payer, is_signer=True, is_writable=True)}

    def add(meta: AccountMeta):
        existing = metas.get(meta.public_key)
        metas[meta.public_key] = meta if existing is None else existing.merge(meta)

    for instruction in instructions:
        for meta in instruction.accounts:
            add(AccountMeta(PublicKey(meta.public_key), bool(meta.is_signer), bool(meta.is_writable)))
        add(AccountMeta(PublicKey(instruction.program_id)))

    others = [meta for key, meta in metas.items() if key != payer]
    return [metas[payer]] + sorted(others, key=AccountMeta.sort_rank)


def compile_message(
    instructions: Sequence[InstructionLike],
    recent_blockhash: Union[bytes, str],
    payer: Optional[PublicKey],
    address_tables: Optional[Sequence[AddressLookupTableAccount]] = None,
) -> Message:
    """
    Build a message from instructions

    Args:
        instructions: anything exposing program_id, accounts and data
        recent_blockhash: 32-byte hash, raw or base-58
        payer: fee payer, placed first as signer and writable
        address_tables: lookup tables to draw accounts from; when given
            (even empty) the result is a v0 message

    Returns:
        Message (already resolved when address tables are given)
    """
    if payer is None:
        raise MissingPayer("a fee payer is required to compile a message")
    payer = PublicKey(payer)
    instructions = list(instructions)

    ordered = collect_account_metas(instructions, payer)
    invoked: Set[PublicKey] = {PublicKey(instruction.program_id) for instruction in instructions}

    static: List[AccountMeta] = ordered
    lookups: List[MessageAddressTableLookup] = []
    looked_up_writable: List[PublicKey] = []
    looked_up_readonly: List[PublicKey] = []
    if address_tables is not None:
        static, lookups, looked_up_writable, looked_up_readonly = _split_lookups(
            ordered, invoked, list(address_tables)
        )

    all_keys = [meta.public_key for meta in static] + looked_up_writable + looked_up_readonly
    if len(all_keys) > MAX_ACCOUNTS:
        raise TooManyAccounts(len(all_keys), MAX_ACCOUNTS)

    header = MessageHeader(
        num_required_signatures=sum(1 for meta in static if meta.is_signer),
        num_readonly_signed_accounts=sum(1 for meta in static if meta.is_signer and not meta.is_writable),
        num_readonly_unsigned_accounts=sum(
            1 for meta in static if not meta.is_signer and not meta.is_writable
        ),
    )

    index_of = {key: index for index, key in enumerate(all_keys)}
    compiled = [
        CompiledInstruction(
            program_id_index=index_of[PublicKey(instruction.program_id)],
            accounts=[index_of[PublicKey(meta.public_key)] for meta in instruction.accounts],
            data=bytes(instruction.data),
        )
        for instruction in instructions
    ]

    message = Message(
        header=header,
        account_keys=[meta.public_key for meta in static],
        recent_blockhash=recent_blockhash,
        instructions=compiled,
        address_table_lookups=lookups,
        version=MessageVersion.LEGACY if address_tables is None else MessageVersion.V0,
    )
    if address_tables is not None:
        message._set_resolved(all_keys)

    logger.debug(
        "compiled %d instructions: %d static accounts, %d lookup accounts, header %s",
        len(compiled), len(static), len(looked_up_writable) + len(looked_up_readonly), header,
    )
    return message


def _split_lookups(ordered, invoked, address_tables):
    """Move non-signer, non-program accounts found in a lookup table out of the static list"""
    table_indexes: List[Dict[PublicKey, int]] = []
    for table in address_tables:
        positions: Dict[PublicKey, int] = {}
        # indexes are single bytes on the wire
        for index, address in enumerate(table.addresses[:MAX_ACCOUNTS + 1]):
            positions.setdefault(address, index)
        table_indexes.append(positions)

    writable_by_table: List[List[PublicKey]] = [[] for _ in address_tables]
    readonly_by_table: List[List[PublicKey]] = [[] for _ in address_tables]
    lookups = [MessageAddressTableLookup(table.key) for table in address_tables]
    static = []

    for meta in ordered:
        if meta.is_signer or meta.public_key in invoked:
            static.append(meta)
            continue
        for n, positions in enumerate(table_indexes):
            index = positions.get(meta.public_key)
            if index is None:
                continue
            if meta.is_writable:
                lookups[n].writable_indexes.append(index)
                writable_by_table[n].append(meta.public_key)
            else:
                lookups[n].readonly_indexes.append(index)
                readonly_by_table[n].append(meta.public_key)
            break
        else:
            static.append(meta)

    used = [n for n, lookup in enumerate(lookups) if lookup.writable_indexes or lookup.readonly_indexes]
    writable = [key for n in used for key in writable_by_table[n]]
    readonly = [key for n in used for key in readonly_by_table[n]]
    return static, [lookups[n] for n in used], writable, readonly
