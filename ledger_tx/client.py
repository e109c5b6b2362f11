"""RPC client used to fetch inputs for and submit compiled transactions"""

import base64
import logging
from typing import Any, Dict, List, Optional

import httpx

from .constants import LOOKUP_TABLE_META_SIZE, PUBLIC_KEY_LENGTH
from .errors import MalformedMessage, MissingLookupTable
from .keys import PublicKey, to_hash
from .message import Message
from .transaction import Transaction

logger = logging.getLogger(__name__)


class RpcError(Exception):
    """RPC Error"""
    def __init__(self, code: int, message: str):
        self.code = code
        self.message = message
        super().__init__(f"RPC Error {code}: {message}")


def parse_lookup_table_addresses(data: bytes) -> List[PublicKey]:
    """Extract the stored keys from raw address lookup table account data"""
    if len(data) < LOOKUP_TABLE_META_SIZE:
        raise MalformedMessage(f"lookup table account data too short: {len(data)} bytes")
    body = data[LOOKUP_TABLE_META_SIZE:]
    if len(body) % PUBLIC_KEY_LENGTH:
        raise MalformedMessage(f"lookup table address section is not a multiple of {PUBLIC_KEY_LENGTH} bytes")
    return [
        PublicKey(body[offset:offset + PUBLIC_KEY_LENGTH])
        for offset in range(0, len(body), PUBLIC_KEY_LENGTH)
    ]


class LedgerRpcClient:
    """Client for the ledger's JSON-RPC interface"""

    def __init__(
        self,
        rpc_url: str,
        timeout: int = 30,
        commitment: str = 'confirmed',
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.rpc_url = rpc_url
        self.timeout = timeout
        self.commitment = commitment
        self._transport = transport
        self._request_id = 1

    def _call(self, method: str, params: Optional[Any] = None) -> Any:
        """Make an RPC call"""
        request = {
            'jsonrpc': '2.0',
            'id': self._request_id,
            'method': method,
            'params': params,
        }
        self._request_id += 1
        logger.debug("rpc %s id=%d", method, request['id'])

        with httpx.Client(timeout=self.timeout, transport=self._transport) as client:
            response = client.post(self.rpc_url, json=request)
            response.raise_for_status()

            result = response.json()

            if 'error' in result:
                error = result['error']
                raise RpcError(error['code'], error['message'])

            return result.get('result')

    def get_latest_blockhash(self) -> bytes:
        """Get latest blockhash as raw bytes"""
        result = self._call('getLatestBlockhash', [{'commitment': self.commitment}])
        return to_hash(result['value']['blockhash'])

    def get_account_info(self, address: PublicKey) -> Optional[Dict[str, Any]]:
        """Get account information, None if the account does not exist"""
        result = self._call(
            'getAccountInfo',
            [str(address), {'encoding': 'base64', 'commitment': self.commitment}],
        )
        return result['value']

    def get_address_lookup_table(self, address: PublicKey) -> List[PublicKey]:
        """Get the ordered key list stored in a lookup table account"""
        info = self.get_account_info(address)
        if info is None:
            raise MissingLookupTable(address)
        data = base64.b64decode(info['data'][0])
        return parse_lookup_table_addresses(data)

    def fetch_address_tables(self, message: Message) -> Dict[PublicKey, List[PublicKey]]:
        """Fetch every table a message references, ready for Message.resolve"""
        return {
            table_id: self.get_address_lookup_table(table_id)
            for table_id in message.lookup_table_ids()
        }

    def send_transaction(self, transaction: Transaction, skip_preflight: bool = False) -> str:
        """Send a signed transaction, returns its base-58 signature"""
        params = [
            transaction.to_base64(),
            {
                'encoding': 'base64',
                'skipPreflight': skip_preflight,
                'preflightCommitment': self.commitment,
            },
        ]
        return self._call('sendTransaction', params)
