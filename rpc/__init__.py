"""RPC module for querying the Ardor node and the Alchemy Polygon API"""
from config import settings_conf

from .lib.client import (
    ChainAPIError,
    ChainClient,
    NodeApplicationError,
    NodeConnectionError,
    RequestMethod,
)
from .ardor import ArdorClient
from .polygon import AlchemyClient

# Create global instances
ardor = ArdorClient.from_settings(settings_conf)
polygon = AlchemyClient.from_settings(settings_conf)

# Export methods at module level
# Ardor methods
getAsset = ardor.getAsset
getAssetsByIssuer = ardor.getAssetsByIssuer
getAssetTransfers = ardor.getAssetTransfers
getTrades = ardor.getTrades
getTransaction = ardor.getTransaction
getPrunableMessage = ardor.getPrunableMessage
getBlockchainStatus = ardor.getBlockchainStatus

# Alchemy methods
getNFTSales = polygon.getNFTSales
getNFTsForCollection = polygon.getNFTsForCollection
getOwnersForToken = polygon.getOwnersForToken
alchemy_getAssetTransfers = polygon.alchemy_getAssetTransfers
eth_getBlockByNumber = polygon.eth_getBlockByNumber

__all__ = [
    # Error types
    'ChainAPIError',
    'NodeConnectionError',
    'NodeApplicationError',

    # Clients
    'ChainClient',
    'RequestMethod',
    'ArdorClient',
    'AlchemyClient',
    'ardor',
    'polygon',

    # Ardor methods
    'getAsset',
    'getAssetsByIssuer',
    'getAssetTransfers',
    'getTrades',
    'getTransaction',
    'getPrunableMessage',
    'getBlockchainStatus',

    # Alchemy methods
    'getNFTSales',
    'getNFTsForCollection',
    'getOwnersForToken',
    'alchemy_getAssetTransfers',
    'eth_getBlockByNumber'
]
