"""Ardor node HTTP API client"""
import logging
from typing import Any, Dict, Optional

import requests

from .lib.client import ChainClient, NodeApplicationError, RequestMethod

logger = logging.getLogger(__name__)

# Request types that are not scoped to a child chain
CHAINLESS_REQUESTS = frozenset({'getAsset', 'getAssetsByIssuer', 'getBlockchainStatus'})

class ArdorClient(ChainClient):
    """Ardor node client

    Every query is a GET to ``{node_url}{api_path}?requestType=<name>&...``.
    Chain-scoped request types get ``chain=<chain_id>`` added unless the caller
    passes one explicitly.
    """

    def __init__(self, node_url: str, api_path: str = '/nxt', chain_id: int = 2,
                 request_timeout: float = 30, max_retries: int = 3,
                 retry_delay: float = 2, session: Optional[requests.Session] = None):
        super().__init__(request_timeout, max_retries, retry_delay, session)
        self.chain_id = chain_id
        self.url = f"{node_url.rstrip('/')}/{api_path.lstrip('/')}"

    @classmethod
    def from_settings(cls, settings: Dict[str, Any], session: Optional[requests.Session] = None) -> 'ArdorClient':
        return cls(
            node_url=settings['node_url'],
            api_path=settings['api_path'],
            chain_id=settings['chain_id'],
            request_timeout=settings['request_timeout'],
            max_retries=settings['max_retries'],
            retry_delay=settings['retry_delay'],
            session=session
        )

    def _call_method(self, method: str, **params) -> Any:
        """Query the node, retrying failed attempts

        Args:
            method: Ardor requestType
            **params: Query parameters

        Returns:
            Decoded JSON response

        Raises:
            NodeConnectionError: Transport failure after all retries
            NodeApplicationError: Node kept answering with errorCode/errorDescription
        """
        query = {'requestType': method}
        if method not in CHAINLESS_REQUESTS:
            query['chain'] = self.chain_id
        for key, value in params.items():
            if value is None:
                continue
            # The node expects lowercase booleans
            query[key] = str(value).lower() if isinstance(value, bool) else value

        return self._with_retry(self._request_once, method, query)

    def _request_once(self, method: str, query: Dict[str, Any]) -> Any:
        result = self._send(method, 'GET', self.url, params=query)

        if isinstance(result, dict) and (result.get('errorCode') or result.get('errorDescription')):
            raise NodeApplicationError(
                result.get('errorDescription', 'Unknown error'),
                result.get('errorCode', -1),
                method
            )

        return result

    # Asset methods
    getAsset = RequestMethod('getAsset')
    getAssetsByIssuer = RequestMethod('getAssetsByIssuer')
    getAssetTransfers = RequestMethod('getAssetTransfers')
    getTrades = RequestMethod('getTrades')

    # Transaction methods
    getTransaction = RequestMethod('getTransaction')
    getPrunableMessage = RequestMethod('getPrunableMessage')

    # Node methods
    getBlockchainStatus = RequestMethod('getBlockchainStatus')
