"""Example: Versioned transaction drawing accounts from a lookup table

Usage: python lookup_table_transfer.py <lookup table address>
"""

import sys

from ledger_tx import (
    AccountMeta,
    AddressLookupTableAccount,
    Instruction,
    Keypair,
    LedgerRpcClient,
    Message,
    PublicKey,
    Transaction,
)

MEMO_PROGRAM = PublicKey('MemoSq4gqABAXKb96qnH8TysNcWxMyWCqXgDLGmfcHr')


def main():
    client = LedgerRpcClient('http://localhost:8899')
    payer = Keypair.generate()

    # Table contents are read from the ledger
    table_address = PublicKey(sys.argv[1])
    table = AddressLookupTableAccount(table_address, client.get_address_lookup_table(table_address))
    print(f"Lookup table holds {len(table.addresses)} addresses")

    ix = Instruction(
        program_id=MEMO_PROGRAM,
        accounts=[AccountMeta(address) for address in table.addresses[:10]],
        data=b'hello',
    )

    tx = Transaction.compile([ix], client.get_latest_blockhash(), payer.public_key, address_tables=[table])
    print(f"Static keys: {len(tx.message.account_keys)}")
    print(f"Lookup accounts: {tx.message.num_lookups()}")

    wire = tx.sign([payer]).serialize()
    print(f"Serialized {len(wire)} bytes")

    # A receiver of the raw message resolves it the same way
    received = Message.deserialize(tx.message.serialize())
    received.resolve(client.fetch_address_tables(received))
    print(f"Resolved accounts: {len(received.resolved_account_keys())}")

    print(f"Transaction signature: {client.send_transaction(tx)}")


if __name__ == '__main__':
    main()
