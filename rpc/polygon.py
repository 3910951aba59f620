"""Alchemy (Polygon) API client

Two surfaces are exposed under the same host:

* the NFT REST API at ``{alchemy_url}/nft/v2/{api_key}/<method>`` (GET)
* the JSON-RPC endpoint at ``{alchemy_url}/v2/{api_key}`` (POST)
"""
import logging
from typing import Any, Dict, Optional

import requests

from .lib.client import ChainClient, NodeApplicationError, RequestMethod

logger = logging.getLogger(__name__)

# Methods served by the NFT REST API, everything else goes through JSON-RPC
NFT_API_METHODS = frozenset({'getNFTSales', 'getNFTsForCollection', 'getOwnersForToken'})

class AlchemyClient(ChainClient):
    """Alchemy client for the Polygon mainnet"""

    def __init__(self, alchemy_url: str, api_key: str, contract_address: str,
                 request_timeout: float = 30, max_retries: int = 3,
                 retry_delay: float = 2, session: Optional[requests.Session] = None):
        super().__init__(request_timeout, max_retries, retry_delay, session)
        self.base_url = alchemy_url.rstrip('/')
        self.api_key = api_key
        self.contract_address = contract_address
        self.nft_url = f"{self.base_url}/nft/v2/{api_key}"
        self.rpc_url = f"{self.base_url}/v2/{api_key}"

    @classmethod
    def from_settings(cls, settings: Dict[str, Any], session: Optional[requests.Session] = None) -> 'AlchemyClient':
        return cls(
            alchemy_url=settings['alchemy_url'],
            api_key=settings['alchemy_api_key'],
            contract_address=settings['contract_address'],
            request_timeout=settings['request_timeout'],
            max_retries=settings['max_retries'],
            retry_delay=settings['retry_delay'],
            session=session
        )

    def _call_method(self, method: str, *args, **params) -> Any:
        """Call an NFT API method (keyword params) or a JSON-RPC method (positional params)

        Raises:
            NodeConnectionError: Transport failure after all retries
            NodeApplicationError: Response kept carrying an ``error`` member
        """
        if method in NFT_API_METHODS:
            query = {key: value for key, value in params.items() if value is not None}
            query.setdefault('contractAddress', self.contract_address)
            for key, value in query.items():
                if isinstance(value, bool):
                    query[key] = str(value).lower()
            return self._with_retry(self._nft_request_once, method, query)

        return self._with_retry(self._rpc_request_once, method, list(args))

    def _nft_request_once(self, method: str, query: Dict[str, Any]) -> Any:
        result = self._send(method, 'GET', f"{self.nft_url}/{method}", params=query)
        self._raise_for_error(method, result)
        return result

    def _rpc_request_once(self, method: str, params: list) -> Any:
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params,
            "id": self._get_request_id()
        }
        result = self._send(method, 'POST', self.rpc_url, payload=payload)
        self._raise_for_error(method, result)
        if not isinstance(result, dict) or 'result' not in result:
            raise NodeApplicationError("Response has no result member", -1, method)
        return result['result']

    @staticmethod
    def _raise_for_error(method: str, result: Any):
        if isinstance(result, dict) and result.get('error'):
            error = result['error']
            if isinstance(error, dict):
                raise NodeApplicationError(
                    error.get('message', 'Unknown error'),
                    error.get('code', -1),
                    method
                )
            raise NodeApplicationError(str(error), -1, method)

    # NFT API methods
    getNFTSales = RequestMethod('getNFTSales')
    getNFTsForCollection = RequestMethod('getNFTsForCollection')
    getOwnersForToken = RequestMethod('getOwnersForToken')

    # JSON-RPC methods
    alchemy_getAssetTransfers = RequestMethod('alchemy_getAssetTransfers')
    eth_getBlockByNumber = RequestMethod('eth_getBlockByNumber')
