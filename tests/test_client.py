import base64
import json

import base58
import httpx
import pytest

from ledger_tx import (
    AccountMeta,
    AddressLookupTableAccount,
    Instruction,
    LedgerRpcClient,
    MalformedMessage,
    Message,
    MissingLookupTable,
    RpcError,
    Transaction,
    compile_message,
)
from ledger_tx.client import parse_lookup_table_addresses
from ledger_tx.constants import LOOKUP_TABLE_META_SIZE
from tests.helpers import key, transfer

RPC_URL = 'http://localhost:8899'


def lookup_table_data(addresses):
    return bytes(LOOKUP_TABLE_META_SIZE) + b''.join(bytes(address) for address in addresses)


def mock_client(responses, requests):
    def handler(request: httpx.Request) -> httpx.Response:
        body = json.loads(request.content)
        requests.append(body)
        result = responses[body['method']]
        if callable(result):
            result = result(body['params'])
        if isinstance(result, dict) and 'error' in result:
            return httpx.Response(200, json={'jsonrpc': '2.0', 'id': body['id'], 'error': result['error']})
        return httpx.Response(200, json={'jsonrpc': '2.0', 'id': body['id'], 'result': result})

    return LedgerRpcClient(RPC_URL, transport=httpx.MockTransport(handler))


def test_get_latest_blockhash(blockhash):
    requests = []
    client = mock_client({
        'getLatestBlockhash': {
            'context': {'slot': 10},
            'value': {'blockhash': base58.b58encode(blockhash).decode(), 'lastValidBlockHeight': 200},
        },
    }, requests)

    assert client.get_latest_blockhash() == blockhash
    assert requests[0]['params'] == [{'commitment': 'confirmed'}]


def test_request_ids_increment(blockhash):
    requests = []
    client = mock_client({
        'getLatestBlockhash': {'context': {'slot': 10}, 'value': {'blockhash': base58.b58encode(blockhash).decode()}},
    }, requests)

    client.get_latest_blockhash()
    client.get_latest_blockhash()

    assert [request['id'] for request in requests] == [1, 2]


def test_rpc_error_raised():
    client = mock_client({'getLatestBlockhash': {'error': {'code': -32601, 'message': 'Method not found'}}}, [])

    with pytest.raises(RpcError) as excinfo:
        client.get_latest_blockhash()

    assert excinfo.value.code == -32601


def test_http_error_raised():
    client = LedgerRpcClient(RPC_URL, transport=httpx.MockTransport(lambda request: httpx.Response(503)))

    with pytest.raises(httpx.HTTPStatusError):
        client.get_latest_blockhash()


def test_fetch_and_resolve_lookup_tables(blockhash):
    table = AddressLookupTableAccount(key(20), [key(40), key(41), key(42)])
    ix = Instruction(key(9), [AccountMeta(key(42), is_writable=True), AccountMeta(key(40))])
    compiled = compile_message([ix], blockhash, key(1), address_tables=[table])
    message = Message.deserialize(compiled.serialize())

    def account_info(params):
        assert params[0] == str(key(20))
        data = base64.b64encode(lookup_table_data(table.addresses)).decode()
        return {'context': {'slot': 1}, 'value': {'data': [data, 'base64'], 'lamports': 1}}

    client = mock_client({'getAccountInfo': account_info}, [])
    message.resolve(client.fetch_address_tables(message))

    assert message.resolved_account_keys() == compiled.resolved_account_keys()


def test_missing_lookup_table_account():
    client = mock_client({'getAccountInfo': {'context': {'slot': 1}, 'value': None}}, [])

    with pytest.raises(MissingLookupTable):
        client.get_address_lookup_table(key(20))


def test_parse_lookup_table_addresses():
    assert parse_lookup_table_addresses(lookup_table_data([key(1), key(2)])) == [key(1), key(2)]
    assert parse_lookup_table_addresses(bytes(LOOKUP_TABLE_META_SIZE)) == []
    with pytest.raises(MalformedMessage):
        parse_lookup_table_addresses(bytes(10))
    with pytest.raises(MalformedMessage):
        parse_lookup_table_addresses(bytes(LOOKUP_TABLE_META_SIZE + 5))


def test_send_transaction(payer, blockhash):
    tx = Transaction.compile([transfer(payer.public_key, key(2), 10)], blockhash, payer.public_key)
    tx.sign([payer])
    requests = []
    expected = base58.b58encode(tx.signature).decode()
    client = mock_client({'sendTransaction': expected}, requests)

    assert client.send_transaction(tx) == expected

    wire, options = requests[0]['params']
    assert base64.b64decode(wire) == tx.serialize()
    assert options['encoding'] == 'base64'
