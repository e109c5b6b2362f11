import dataclasses
import struct

import pytest

from ledger_tx import (
    AccountMeta,
    AccountMetaSlots,
    Instruction,
    InstructionDecoderTable,
    SlotAlreadySet,
    SlotUnset,
    Transaction,
    UnknownProgram,
)
from tests.helpers import SYSTEM_PROGRAM, TRANSFER_TAG, key, transfer


def test_instruction_is_frozen():
    accounts = [AccountMeta(key(1), is_signer=True)]
    ix = Instruction(key(9), accounts, bytearray(b'\x01'))
    accounts.append(AccountMeta(key(2)))

    assert ix.accounts == (AccountMeta(key(1), is_signer=True),)
    assert ix.data == b'\x01'
    with pytest.raises(dataclasses.FrozenInstanceError):
        ix.data = b'\x02'


def test_sort_rank():
    ranks = [
        AccountMeta(key(1), is_signer=True, is_writable=True).sort_rank(),
        AccountMeta(key(1), is_signer=True).sort_rank(),
        AccountMeta(key(1), is_writable=True).sort_rank(),
        AccountMeta(key(1)).sort_rank(),
    ]
    assert ranks == [0, 1, 2, 3]


def test_slots_fill_in_any_order():
    slots = AccountMetaSlots(2)
    slots.set(1, AccountMeta(key(2), is_writable=True)).set(0, AccountMeta(key(1), is_signer=True))

    assert [meta.public_key for meta in slots.finalize()] == [key(1), key(2)]


def test_slot_set_twice():
    slots = AccountMetaSlots(2).set(0, AccountMeta(key(1)))

    with pytest.raises(SlotAlreadySet):
        slots.set(0, AccountMeta(key(2)))


def test_unset_slot_fails_at_finalize():
    slots = AccountMetaSlots(3).set(0, AccountMeta(key(1))).set(2, AccountMeta(key(3)))

    with pytest.raises(SlotUnset, match=r'\[1\]'):
        slots.finalize()


def test_slot_out_of_range():
    with pytest.raises(IndexError):
        AccountMetaSlots(1).set(1, AccountMeta(key(1)))


def decode_transfer(accounts, data):
    tag, lamports = struct.unpack('<IQ', data)
    assert tag == TRANSFER_TAG
    return {'from': accounts[0].public_key, 'to': accounts[1].public_key, 'lamports': lamports}


def test_decoder_table_dispatches_by_program(blockhash):
    payer = key(1)
    tx = Transaction.compile([transfer(payer, key(2), 77)], blockhash, payer)
    table = InstructionDecoderTable().register(SYSTEM_PROGRAM, decode_transfer)

    decoded = table.decode_all(tx.message)

    assert decoded == [{'from': payer, 'to': key(2), 'lamports': 77}]


def test_decoder_receives_account_flags(blockhash):
    payer = key(1)
    tx = Transaction.compile([transfer(payer, key(2), 1)], blockhash, payer)
    seen = []
    table = InstructionDecoderTable({SYSTEM_PROGRAM: lambda accounts, data: seen.extend(accounts)})

    table.decode(tx.message, tx.message.instructions[0])

    assert seen == [
        AccountMeta(payer, is_signer=True, is_writable=True),
        AccountMeta(key(2), is_writable=True),
    ]


def test_decoder_tables_are_independent(blockhash):
    payer = key(1)
    tx = Transaction.compile([transfer(payer, key(2), 1)], blockhash, payer)
    InstructionDecoderTable().register(SYSTEM_PROGRAM, decode_transfer)

    with pytest.raises(UnknownProgram):
        InstructionDecoderTable().decode_all(tx.message)
