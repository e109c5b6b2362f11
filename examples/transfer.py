"""Example: Build, sign and submit a transfer"""

import struct

from ledger_tx import AccountMeta, Instruction, Keypair, LedgerRpcClient, PublicKey, TransactionBuilder

SYSTEM_PROGRAM = PublicKey('11111111111111111111111111111111')


def transfer_instruction(source: PublicKey, destination: PublicKey, lamports: int) -> Instruction:
    return Instruction(
        program_id=SYSTEM_PROGRAM,
        accounts=[
            AccountMeta(source, is_signer=True, is_writable=True),
            AccountMeta(destination, is_writable=True),
        ],
        data=struct.pack('<IQ', 2, lamports),
    )


def main():
    # Initialize client
    client = LedgerRpcClient('http://localhost:8899')

    payer = Keypair.generate()
    recipient = Keypair.generate().public_key

    # Build the transaction
    tx = (
        TransactionBuilder()
        .set_fee_payer(payer.public_key)
        .set_recent_blockhash(client.get_latest_blockhash())
        .add_instruction(transfer_instruction(payer.public_key, recipient, 1000000))  # 0.001 SOL
        .build()
    )

    print(f"Account keys: {[str(k) for k in tx.message.account_keys]}")
    print(f"Header: {tx.message.header}")

    # Sign and submit
    tx.sign([payer])
    wire = tx.serialize()
    print(f"Serialized {len(wire)} bytes")

    signature = client.send_transaction(tx)
    print(f"Transaction signature: {signature}")


if __name__ == '__main__':
    main()
