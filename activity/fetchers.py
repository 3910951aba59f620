"""Upstream collection for each activity type.

Fetchers are synchronous (they sit on the requests based chain clients) and are
run in worker threads by ``ActivityService``. They return normalized records.

Per-asset or per-transaction failures are logged and skipped. A fetch only
fails as a whole when every query it depends on failed.
"""
import logging
from typing import Any, Callable, Dict, Iterable, List, Optional

from rpc import ChainAPIError

from .normalizers import (
    detect_morph,
    flatten_assets,
    is_leaderboard_payout,
    normalize_ardor_trade,
    normalize_burn,
    normalize_craft,
    normalize_giftz_sale,
    normalize_morph,
    normalize_polygon_sale,
    normalize_tracked_asset,
    parse_asset_metadata,
    parse_craft_message,
)
from .timestamps import date_to_chain_timestamp, parse_iso

logger = logging.getLogger(__name__)

PAGE_SIZE = 100

def _newest_first(records: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    return sorted(records, key=lambda record: record.get('timestamp') or 0, reverse=True)

def _transfer_hash(transfer: Dict[str, Any]) -> Optional[str]:
    return transfer.get('assetTransferFullHash') or transfer.get('fullHash') or transfer.get('transaction')

def collect_per_item(items: Iterable[Any], fetch: Callable[[Any], List[Dict[str, Any]]],
                     label: str) -> List[Dict[str, Any]]:
    """Run ``fetch`` for every item, skipping the items that fail

    Raises:
        ChainAPIError: The last error, if every item failed
    """
    records = []
    last_error = None
    succeeded = 0
    items = list(items)
    for item in items:
        try:
            records.extend(fetch(item))
            succeeded += 1
        except ChainAPIError as e:
            last_error = e
            logger.warning(f"Error fetching {label} for {item}: {e}")
    if items and not succeeded and last_error is not None:
        raise last_error
    return records

class ArdorFetcher:
    """Collects trades, burns, crafts, morphs, GIFTZ sales and tracked assets from Ardor"""

    def __init__(self, client, settings: Dict[str, Any]):
        self.client = client
        self.settings = settings
        self._asset_info: Dict[str, Dict[str, Any]] = {}

    def get_asset_info(self, asset_id: str) -> Dict[str, Any]:
        """Card metadata for an asset, cached for the lifetime of the fetcher"""
        asset_id = str(asset_id)
        if asset_id not in self._asset_info:
            try:
                asset = self.client.getAsset(asset=asset_id)
            except ChainAPIError as e:
                logger.warning(f"Failed to get info for asset {asset_id}: {e}")
                return {'asset': asset_id}
            info = parse_asset_metadata(asset)
            info['asset'] = asset_id
            info['decimals'] = asset.get('decimals', 0)
            self._asset_info[asset_id] = info
        return self._asset_info[asset_id]

    def get_transaction_message(self, full_hash: str) -> Optional[str]:
        """Return the (possibly pruned) message attached to a transaction"""
        try:
            transaction = self.client.getTransaction(fullHash=full_hash, includePrunable=True)
            message = (transaction.get('attachment') or {}).get('message')
            if message:
                return message
        except ChainAPIError as e:
            logger.debug(f"getTransaction failed for {full_hash}: {e}")

        try:
            prunable = self.client.getPrunableMessage(transaction=full_hash)
            return prunable.get('message') or None
        except ChainAPIError as e:
            logger.debug(f"No prunable message for {full_hash}: {e}")
            return None

    def paginate_transfers(self, **params) -> List[Dict[str, Any]]:
        """Fetch every getAssetTransfers page of ``PAGE_SIZE`` entries"""
        transfers = []
        first_index = 0
        while True:
            response = self.client.getAssetTransfers(
                firstIndex=first_index,
                lastIndex=first_index + PAGE_SIZE - 1,
                **params
            )
            batch = response.get('transfers', [])
            transfers.extend(batch)
            if len(batch) < PAGE_SIZE:
                return transfers
            first_index += PAGE_SIZE

    def fetch_tracked_assets(self) -> List[Dict[str, Any]]:
        """Card assets issued by the regular and special card accounts"""
        assets = []
        seen = set()
        for issuer, category in ((self.settings['regular_cards_issuer'], 'regular'),
                                 (self.settings['special_cards_issuer'], 'special')):
            response = self.client.getAssetsByIssuer(account=issuer)
            for asset in flatten_assets(response):
                record = normalize_tracked_asset(asset, category)
                if record is None or record['asset'] in seen:
                    continue
                seen.add(record['asset'])
                self._asset_info.setdefault(record['asset'], record)
                assets.append(record)
        logger.info(f"Found {len(assets)} tracked assets")
        return assets

    def fetch_trades(self, tracked_assets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Trades of every tracked asset plus the GIFTZ token"""
        asset_ids = [asset['asset'] for asset in tracked_assets]
        if self.settings['giftz_token_id'] not in asset_ids:
            asset_ids.append(self.settings['giftz_token_id'])

        def trades_for(asset_id: str) -> List[Dict[str, Any]]:
            response = self.client.getTrades(
                asset=asset_id,
                firstIndex=0,
                lastIndex=PAGE_SIZE - 1,
                includeAssetInfo=True
            )
            info = self.get_asset_info(asset_id)
            return [normalize_ardor_trade(trade, info) for trade in response.get('trades', [])]

        trades = _newest_first(collect_per_item(asset_ids, trades_for, 'trades'))
        if not trades:
            logger.warning("No Ardor trades found for any tracked asset")
        return trades

    def fetch_burns(self, tracked_assets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Regular card transfers into the burn account since the burn start date"""
        burn_account = self.settings['burn_account']
        start = date_to_chain_timestamp(parse_iso(self.settings['burn_start_date']))
        asset_ids = [asset['asset'] for asset in tracked_assets if asset.get('category', 'regular') == 'regular']

        def burns_for(asset_id: str) -> List[Dict[str, Any]]:
            response = self.client.getAssetTransfers(asset=asset_id, account=burn_account)
            burns = []
            for transfer in response.get('transfers', []):
                if transfer.get('recipientRS') != burn_account:
                    continue
                if int(transfer.get('timestamp') or 0) < start:
                    continue
                burns.append(normalize_burn(transfer, self.get_asset_info(asset_id)))
            return burns

        return _newest_first(collect_per_item(asset_ids, burns_for, 'burns'))

    def fetch_crafts(self) -> List[Dict[str, Any]]:
        """Cards sent by the craft account with a CardCraft message"""
        craft_account = self.settings['craft_account']
        gem_asset = self.settings['gem_asset_id']
        crafts = []
        seen = set()
        for transfer in self.paginate_transfers(account=craft_account):
            full_hash = _transfer_hash(transfer)
            if not full_hash or full_hash in seen:
                continue
            if str(transfer.get('asset')) == gem_asset or transfer.get('senderRS') != craft_account:
                continue
            seen.add(full_hash)
            details = parse_craft_message(self.get_transaction_message(full_hash))
            if details is None:
                continue
            crafts.append(normalize_craft(transfer, details, self.get_asset_info(transfer.get('asset'))))
        logger.info(f"Found {len(crafts)} craft operations")
        return _newest_first(crafts)

    def fetch_morphs(self, tracked_assets: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        """Tracked card transfers from the morph account carrying a cardmorph message"""
        morph_account = self.settings['morph_account']
        seen = set()

        def morphs_for(asset_id: str) -> List[Dict[str, Any]]:
            response = self.client.getAssetTransfers(asset=asset_id, account=morph_account)
            morphs = []
            for transfer in response.get('transfers', []):
                full_hash = _transfer_hash(transfer)
                if not full_hash or full_hash in seen or transfer.get('senderRS') != morph_account:
                    continue
                seen.add(full_hash)
                message = detect_morph(self.get_transaction_message(full_hash))
                if message is None:
                    continue
                morphs.append(normalize_morph(transfer, message, self.get_asset_info(asset_id)))
            return morphs

        asset_ids = [asset['asset'] for asset in tracked_assets]
        return _newest_first(collect_per_item(asset_ids, morphs_for, 'morphs'))

    def fetch_giftz_sales(self) -> List[Dict[str, Any]]:
        """GIFTZ token transfers from the distributor that carry a purchase message"""
        distributor = self.settings['giftz_distributor']
        sales = []
        for transfer in self.paginate_transfers(asset=self.settings['giftz_token_id']):
            if distributor not in (transfer.get('senderRS'), transfer.get('sender')):
                continue
            full_hash = _transfer_hash(transfer)
            if not full_hash:
                continue
            message = self.get_transaction_message(full_hash)
            if not message or is_leaderboard_payout(message):
                continue
            sales.append(normalize_giftz_sale(transfer))
        logger.info(f"Found {len(sales)} GIFTZ sales")
        return _newest_first(sales)

class PolygonFetcher:
    """Collects NFT sales and ERC-1155 transfers of the card contract through Alchemy"""

    def __init__(self, client, settings: Dict[str, Any]):
        self.client = client
        self.settings = settings
        self._block_times: Dict[int, int] = {}
        self._token_names: Optional[Dict[str, str]] = None

    def block_timestamp_ms(self, block_number: Any) -> int:
        if isinstance(block_number, str) and block_number.lower().startswith('0x'):
            block_number = int(block_number, 16)
        block_number = int(block_number)
        if block_number not in self._block_times:
            block = self.client.eth_getBlockByNumber(hex(block_number), False)
            self._block_times[block_number] = int(block['timestamp'], 16) * 1000
        return self._block_times[block_number]

    def token_names(self) -> Dict[str, str]:
        """Token id to display name for the card contract, empty if unavailable"""
        if self._token_names is not None:
            return self._token_names
        names = {}
        start_token = None
        try:
            while True:
                response = self.client.getNFTsForCollection(withMetadata=True, startToken=start_token)
                for nft in response.get('nfts', []):
                    token_id = (nft.get('id') or {}).get('tokenId')
                    if token_id is None:
                        continue
                    name = nft.get('title') or (nft.get('metadata') or {}).get('name')
                    if name:
                        names[str(int(token_id, 16) if str(token_id).startswith('0x') else token_id)] = name
                start_token = response.get('nextToken')
                if not start_token:
                    break
        except ChainAPIError as e:
            logger.warning(f"Could not load Polygon token names: {e}")
        self._token_names = names
        return names

    def fetch_sales(self) -> List[Dict[str, Any]]:
        """Marketplace sales of the card contract, newest first"""
        sales = []
        page_key = None
        names = self.token_names()
        while True:
            response = self.client.getNFTSales(order='desc', pageKey=page_key)
            for sale in response.get('nftSales', []):
                timestamp_ms = self.block_timestamp_ms(sale['blockNumber'])
                sales.append(normalize_polygon_sale(sale, timestamp_ms, names))
            page_key = response.get('pageKey')
            if not page_key:
                break
        logger.info(f"Found {len(sales)} Polygon sales")
        return _newest_first(sales)

    def fetch_transfers(self) -> List[Dict[str, Any]]:
        """Raw ERC-1155 transfers of the card contract"""
        transfers = []
        params = {
            'fromBlock': '0x0',
            'toBlock': 'latest',
            'contractAddresses': [self.settings['contract_address']],
            'category': ['erc1155'],
            'withMetadata': True,
            'excludeZeroValue': True,
        }
        while True:
            result = self.client.alchemy_getAssetTransfers(params)
            transfers.extend(result.get('transfers', []))
            if not result.get('pageKey'):
                break
            params = dict(params, pageKey=result['pageKey'])
        logger.info(f"Found {len(transfers)} Polygon transfers")
        return transfers
