"""Shared fixtures: fake chain clients, settings and a temporary cache."""

import json
from datetime import timedelta
from typing import Any, Dict, List, Optional

import pytest

from activity.service import ActivityService
from activity.timestamps import chain_timestamp_to_iso, date_to_chain_timestamp, utcnow
from config import load_settings_conf
from rpc import NodeApplicationError, NodeConnectionError
from storage import FileCache

REGULAR_ISSUER = 'ARDOR-4V3B-TVQA-Q6LF-GMH3T'
SPECIAL_ISSUER = 'ARDOR-5NCL-DRBZ-XBWF-DDN5T'
BURN_ACCOUNT = 'ARDOR-Q9KZ-74XD-WERK-CV6GB'
GIFTZ_TOKEN = '13993107092599641878'
GIFTZ_DISTRIBUTOR = 'ARDOR-8WCM-6LBD-3AC9-9F22P'

def ardor_ts(**delta) -> int:
    """Ardor timestamp for ``now - timedelta(**delta)``"""
    return date_to_chain_timestamp(utcnow() - timedelta(**delta))

def unix_ms_ago(**delta) -> int:
    return int((utcnow() - timedelta(**delta)).timestamp() * 1000)

class FakeArdorClient:
    """In-memory stand-in for ArdorClient"""

    def __init__(self):
        self.calls: List[str] = []
        self.fail = False
        self.assets_by_issuer: Dict[str, List[Any]] = {
            REGULAR_ISSUER: [[
                {
                    'asset': '111',
                    'name': 'dragon',
                    'description': '{"name": "Fire Dragon", "rarity": "rare", "type": "Fire"}',
                    'quantityQNT': '25',
                    'decimals': 0,
                    'accountRS': REGULAR_ISSUER,
                },
                {
                    'asset': '112',
                    'name': 'retired',
                    'description': '{"name": "Retired Card"}',
                    'quantityQNT': '0',
                    'decimals': 0,
                    'accountRS': REGULAR_ISSUER,
                },
            ]],
            SPECIAL_ISSUER: [],
        }
        self.trades: Dict[str, List[Dict[str, Any]]] = {}
        self.transfers: List[Dict[str, Any]] = []
        self.messages: Dict[str, str] = {}

    def _record(self, name: str):
        self.calls.append(name)
        if self.fail:
            raise NodeConnectionError("Failed to connect to fake node", method=name)

    def getAssetsByIssuer(self, account: str, **params):
        self._record('getAssetsByIssuer')
        return {'assets': self.assets_by_issuer.get(account, [])}

    def getAsset(self, asset: str, **params):
        self._record('getAsset')
        for group in self.assets_by_issuer.values():
            for item in (group[0] if group and isinstance(group[0], list) else group):
                if item['asset'] == asset:
                    return item
        return {'asset': asset, 'name': f'asset{asset}', 'decimals': 0, 'quantityQNT': '1'}

    def getTrades(self, asset: str, **params):
        self._record('getTrades')
        return {'trades': list(self.trades.get(asset, []))}

    def getAssetTransfers(self, asset: Optional[str] = None, account: Optional[str] = None,
                          firstIndex: Optional[int] = None, lastIndex: Optional[int] = None, **params):
        self._record('getAssetTransfers')
        transfers = [
            transfer for transfer in self.transfers
            if (asset is None or transfer['asset'] == asset)
            and (account is None or account in (transfer.get('senderRS'), transfer.get('recipientRS')))
        ]
        if firstIndex is not None:
            transfers = transfers[firstIndex:lastIndex + 1]
        return {'transfers': transfers}

    def getTransaction(self, fullHash: str, **params):
        self._record('getTransaction')
        message = self.messages.get(fullHash)
        attachment = {'message': message} if message else {}
        return {'fullHash': fullHash, 'attachment': attachment}

    def getPrunableMessage(self, transaction: str, **params):
        self._record('getPrunableMessage')
        raise NodeApplicationError("Prunable message not found", 8, 'getPrunableMessage')

    def getBlockchainStatus(self, **params):
        self._record('getBlockchainStatus')
        return {'numberOfBlocks': 4200000, 'version': '2.5.0'}

class FakeAlchemyClient:
    """In-memory stand-in for AlchemyClient"""

    def __init__(self):
        self.calls: List[str] = []
        self.fail = False
        self.sales: List[Dict[str, Any]] = []
        self.block_times: Dict[int, int] = {}
        self.transfers: List[Dict[str, Any]] = []

    def _record(self, name: str):
        self.calls.append(name)
        if self.fail:
            raise NodeConnectionError("Failed to connect to fake Alchemy", method=name)

    def getNFTSales(self, **params):
        self._record('getNFTSales')
        return {'nftSales': list(self.sales), 'pageKey': None}

    def getNFTsForCollection(self, **params):
        self._record('getNFTsForCollection')
        return {'nfts': [{'id': {'tokenId': '0x7'}, 'title': 'Polygon Phoenix'}]}

    def eth_getBlockByNumber(self, block: str, full: bool = False):
        self._record('eth_getBlockByNumber')
        return {'number': block, 'timestamp': hex(self.block_times[int(block, 16)])}

    def alchemy_getAssetTransfers(self, params: Dict[str, Any]):
        self._record('alchemy_getAssetTransfers')
        return {'transfers': list(self.transfers)}

@pytest.fixture
def settings(tmp_path):
    """Default settings with a temporary storage directory and no retry delay."""
    settings = load_settings_conf(settings_path=str(tmp_path), environ={
        'STORAGE_DIR': str(tmp_path / 'storage'),
        'RETRY_DELAY': '0',
    })
    return settings

@pytest.fixture
def fake_ardor():
    return FakeArdorClient()

@pytest.fixture
def fake_polygon():
    return FakeAlchemyClient()

@pytest.fixture
def cache(settings):
    return FileCache(settings['storage_dir'])

@pytest.fixture
def service(fake_ardor, fake_polygon, cache, settings):
    """ActivityService wired to the fake clients."""
    return ActivityService(fake_ardor, fake_polygon, cache, settings)

@pytest.fixture
def seeded_cache(cache):
    """Write a burns entry with 10 burns, 3 of them within the last 24 hours."""
    hours = [1, 5, 20, 30, 50, 100, 200, 400, 800, 1500]
    burns = [
        {
            'id': f'burn-{i}',
            'blockchain': 'ardor',
            'timestamp': ardor_ts(hours=h),
            'timestamp_iso': chain_timestamp_to_iso(ardor_ts(hours=h)),
            'card_name': 'Fire Dragon',
            'asset_id': '111',
            'sender': 'ARDOR-AAAA-BBBB-CCCC-DDDDD',
            'recipient': BURN_ACCOUNT,
            'quantity': 1,
            'transaction_hash': f'hash-{i}',
            'block': 1000 + i,
        }
        for i, h in enumerate(hours)
    ]
    entry = {'burns': burns, 'count': len(burns), 'timestamp': '2024-01-01T00:00:00.000Z'}
    cache.storage_dir.mkdir(parents=True, exist_ok=True)
    cache.path_for('burns').write_text(json.dumps(entry, indent=2))
    return cache
