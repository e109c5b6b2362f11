import struct

from ledger_tx import AccountMeta, Instruction, PublicKey

SYSTEM_PROGRAM = PublicKey(bytes(32))
TRANSFER_TAG = 2


def key(n: int) -> PublicKey:
    """Deterministic test address"""
    return PublicKey(bytes([n]) * 32)


def transfer(source: PublicKey, destination: PublicKey, lamports: int) -> Instruction:
    return Instruction(
        program_id=SYSTEM_PROGRAM,
        accounts=[
            AccountMeta(source, is_signer=True, is_writable=True),
            AccountMeta(destination, is_writable=True),
        ],
        data=struct.pack('<IQ', TRANSFER_TAG, lamports),
    )
