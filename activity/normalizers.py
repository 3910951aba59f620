"""Pure functions mapping raw Ardor and Alchemy payloads to normalized records.

Nothing here touches the network. Each ``normalize_*`` function takes the raw
upstream record plus whatever context the fetcher already resolved (asset
metadata, block timestamps, decoded messages) and returns a plain dict shaped
by the matching model in ``activity.models``.
"""
import json
import logging
import re
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

from .amounts import format_amount, format_wei, nqt_to_decimal, wei_to_decimal
from .models import (
    Blockchain,
    NormalizedBurn,
    NormalizedCraft,
    NormalizedMorph,
    NormalizedSale,
    NormalizedTrade,
    NormalizedUser,
    TrackedAsset,
)
from .timestamps import chain_timestamp_to_iso, to_datetime, to_iso, unix_ms

logger = logging.getLogger(__name__)

ZERO_ADDRESS = '0x0000000000000000000000000000000000000000'
MORPH_KEYWORD = 'cardmorph'
CRAFT_SUBMITTERS = ('CardCraftGEM', 'CardCraft')

_FIELD_PATTERNS = {
    field: re.compile(r'"%s"\s*:\s*"([^"]+)"' % field)
    for field in ('name', 'rarity', 'type')
}

def _int(value: Any, default: int = 0) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default

def _optional_int(value: Any) -> Optional[int]:
    if value is None or value == '':
        return None
    if isinstance(value, str) and value.lower().startswith('0x'):
        return int(value, 16)
    return _int(value, None)

# Asset metadata

def parse_asset_metadata(asset: Dict[str, Any]) -> Dict[str, str]:
    """Extract card name, rarity and type from an Ardor asset

    The asset description is normally a JSON document. When it does not parse,
    the fields are picked out with regular expressions. The card name falls
    back to the asset name.
    """
    asset_id = str(asset.get('asset', ''))
    metadata = {
        'card_name': asset.get('name') or f"Asset {asset_id}",
        'card_rarity': 'unknown',
        'card_type': 'unknown',
    }
    description = asset.get('description')
    if not description:
        return metadata

    try:
        data = json.loads(description)
        if not isinstance(data, dict):
            raise ValueError("description is not an object")
        values = {field: data.get(field) for field in _FIELD_PATTERNS}
    except ValueError:
        values = {}
        for field, pattern in _FIELD_PATTERNS.items():
            match = pattern.search(description)
            values[field] = match.group(1) if match else None

    if values.get('name'):
        metadata['card_name'] = str(values['name'])
    if values.get('rarity'):
        metadata['card_rarity'] = str(values['rarity'])
    if values.get('type'):
        metadata['card_type'] = str(values['type'])
    return metadata

def flatten_assets(response: Any) -> List[Dict[str, Any]]:
    """Flatten the (possibly nested) ``assets`` array of getAssetsByIssuer"""
    assets = response.get('assets', []) if isinstance(response, dict) else response
    flat = []
    for item in assets or []:
        if isinstance(item, list):
            flat.extend(flatten_assets(item))
        elif isinstance(item, dict):
            flat.append(item)
    return flat

def normalize_tracked_asset(asset: Dict[str, Any], category: str = 'regular') -> Optional[Dict[str, Any]]:
    """Return the tracked asset record, or None for assets with no supply left"""
    if _int(asset.get('quantityQNT'), 0) <= 0:
        return None
    metadata = parse_asset_metadata(asset)
    return TrackedAsset(
        asset=str(asset['asset']),
        name=asset.get('name') or metadata['card_name'],
        issuer=asset.get('accountRS'),
        quantity=str(asset.get('quantityQNT')),
        decimals=_int(asset.get('decimals'), 0),
        category=category,
        **metadata
    ).model_dump(mode='json')

# Ardor activity

def normalize_ardor_trade(trade: Dict[str, Any], asset_info: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Normalize an Ardor ``getTrades`` entry

    Prices are NQT per whole share (8 decimals).
    """
    asset_info = asset_info or {}
    asset_id = str(trade.get('asset') or asset_info.get('asset') or '')
    timestamp = _int(trade.get('timestamp'))
    tx_hash = trade.get('askOrderFullHash') or trade.get('bidOrderFullHash')
    price = trade.get('priceNQTPerShare', trade.get('priceNQT'))

    return NormalizedTrade(
        id=tx_hash or f"{timestamp}-{asset_id}",
        blockchain=Blockchain.ARDOR,
        timestamp=timestamp,
        timestamp_iso=chain_timestamp_to_iso(timestamp),
        card_name=asset_info.get('card_name') or trade.get('name') or f"Asset {asset_id}",
        asset_id=asset_id,
        buyer=trade.get('buyerRS') or trade.get('buyer'),
        seller=trade.get('sellerRS') or trade.get('seller'),
        price=nqt_to_decimal(price),
        price_display=format_amount(price),
        currency='IGNIS',
        quantity=_int(trade.get('quantityQNT'), 0) or 1,
        transaction_hash=tx_hash,
        block=_optional_int(trade.get('height', trade.get('block')))
    ).model_dump(mode='json')

def normalize_burn(transfer: Dict[str, Any], asset_info: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Normalize an asset transfer into the burn account"""
    asset_info = asset_info or {}
    asset_id = str(transfer.get('asset') or asset_info.get('asset') or '')
    timestamp = _int(transfer.get('timestamp'))
    tx_hash = transfer.get('assetTransferFullHash') or transfer.get('fullHash')

    return NormalizedBurn(
        id=tx_hash or transfer.get('transaction') or f"{timestamp}-{asset_id}",
        timestamp=timestamp,
        timestamp_iso=chain_timestamp_to_iso(timestamp),
        card_name=asset_info.get('card_name') or transfer.get('name') or f"Asset {asset_id}",
        asset_id=asset_id,
        sender=transfer.get('senderRS') or transfer.get('sender'),
        recipient=transfer.get('recipientRS') or transfer.get('recipient'),
        quantity=_int(transfer.get('quantityQNT'), 0) or 1,
        transaction_hash=tx_hash,
        block=_optional_int(transfer.get('height'))
    ).model_dump(mode='json')

def preprocess_message(message: Any) -> Any:
    """Clean up a prunable message so it has a chance to parse as JSON

    Strips whitespace and a byte order mark, decodes ``&quot;`` entities,
    unwraps double-encoded JSON strings and trims junk before the first ``{``
    and after the last ``}``.
    """
    if not message or not isinstance(message, str):
        return message

    cleaned = message.strip().lstrip('\ufeff')
    cleaned = cleaned.replace('&quot;', '"')

    if len(cleaned) > 1 and cleaned.startswith('"') and cleaned.endswith('"'):
        try:
            decoded = json.loads(cleaned)
            if isinstance(decoded, str):
                cleaned = decoded
        except ValueError:
            pass

    if not cleaned.startswith('{') and not cleaned.startswith('['):
        first_brace = cleaned.find('{')
        if first_brace > 0:
            cleaned = cleaned[first_brace:]

    last_brace = cleaned.rfind('}')
    if 0 < last_brace < len(cleaned) - 1:
        cleaned = cleaned[:last_brace + 1]

    return cleaned

def parse_message(message: Any) -> Optional[Any]:
    """Decode a preprocessed message as JSON, returning None when it does not parse"""
    cleaned = preprocess_message(message)
    if not isinstance(cleaned, str):
        return None
    try:
        return json.loads(cleaned)
    except ValueError:
        return None

def parse_craft_message(message: Any) -> Optional[Dict[str, Any]]:
    """Return craft details if the message was submitted by the crafting contract"""
    data = parse_message(message)
    if not isinstance(data, dict) or data.get('submittedBy') not in CRAFT_SUBMITTERS:
        return None
    spent = data.get('transactionSpent')
    return {
        'submitted_by': data['submittedBy'],
        'cards_used': len(spent) if isinstance(spent, list) else 1,
    }

def normalize_craft(transfer: Dict[str, Any], details: Dict[str, Any],
                    asset_info: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    asset_info = asset_info or {}
    asset_id = str(transfer.get('asset') or '')
    timestamp = _int(transfer.get('timestamp'))

    return NormalizedCraft(
        id=transfer.get('assetTransferFullHash') or transfer.get('fullHash') or f"{timestamp}-{asset_id}",
        timestamp=timestamp,
        timestamp_iso=chain_timestamp_to_iso(timestamp),
        card_name=asset_info.get('card_name') or f"Unknown ({asset_id})",
        card_rarity=asset_info.get('card_rarity') or 'unknown',
        card_type=asset_info.get('card_type') or 'unknown',
        asset_id=asset_id,
        recipient=transfer.get('recipientRS') or transfer.get('recipient'),
        cards_used=details.get('cards_used', 1),
        submitted_by=details.get('submitted_by')
    ).model_dump(mode='json')

def detect_morph(message: Any) -> Optional[Dict[str, Any]]:
    """Return the decoded morph message, or None if the message is not a morph

    A morph is recognized by ``"message": "cardmorph"``, by
    ``"contract": "cardmorph"``, or by raw text mentioning ``cardmorph`` that
    does not come from the crafting or jackpot contracts.
    """
    cleaned = preprocess_message(message)
    if not isinstance(cleaned, str) or not cleaned:
        return None

    try:
        data = json.loads(cleaned)
    except ValueError:
        data = None

    if isinstance(data, dict):
        if data.get('message') == MORPH_KEYWORD or data.get('contract') == MORPH_KEYWORD:
            return data
    if MORPH_KEYWORD in cleaned and 'CardCraftGEM' not in cleaned and 'MBJackpot' not in cleaned:
        return data if isinstance(data, dict) else {'message': MORPH_KEYWORD}
    return None

def normalize_morph(transfer: Dict[str, Any], message_data: Dict[str, Any],
                    asset_info: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Normalize a morph transfer

    The morphed card keeps its asset, so ``from_card`` and ``to_card`` both carry
    the asset's card name.
    """
    asset_info = asset_info or {}
    asset_id = str(transfer.get('asset') or '')
    timestamp = _int(transfer.get('timestamp'))
    card_name = asset_info.get('card_name') or f"Asset {asset_id}"

    return NormalizedMorph(
        id=transfer.get('assetTransferFullHash') or transfer.get('fullHash') or f"{timestamp}-{asset_id}",
        timestamp=timestamp,
        timestamp_iso=chain_timestamp_to_iso(timestamp),
        from_card=card_name,
        to_card=card_name,
        asset_id=asset_id,
        morpher=transfer.get('recipientRS') or transfer.get('recipient'),
        quantity=_int(transfer.get('quantityQNT'), 0) or 1,
        submitted_by=str(message_data.get('submittedBy') or 'unknown')
    ).model_dump(mode='json')

def is_leaderboard_payout(message: Any) -> bool:
    data = parse_message(message)
    if isinstance(data, dict):
        return bool(data.get('leaderboardEndBlock'))
    return isinstance(message, str) and 'leaderboardEndBlock' in message

def normalize_giftz_sale(transfer: Dict[str, Any]) -> Dict[str, Any]:
    timestamp = _int(transfer.get('timestamp'))
    return NormalizedSale(
        id=transfer.get('assetTransferFullHash') or transfer.get('fullHash') or transfer.get('transaction') or str(timestamp),
        timestamp=timestamp,
        timestamp_iso=chain_timestamp_to_iso(timestamp),
        item_name='GIFTZ Token',
        buyer=transfer.get('recipientRS') or transfer.get('recipient'),
        seller=transfer.get('senderRS') or transfer.get('sender'),
        quantity=_int(transfer.get('quantityQNT'), 0)
    ).model_dump(mode='json')

# Polygon activity

def normalize_polygon_sale(sale: Dict[str, Any], timestamp_ms: int,
                           token_names: Optional[Dict[str, str]] = None) -> Dict[str, Any]:
    """Normalize an Alchemy ``getNFTSales`` entry

    Args:
        sale: Raw sale
        timestamp_ms: Unix milliseconds of the sale's block
        token_names: Optional token id to display name mapping
    """
    token_id = str(sale.get('tokenId', ''))
    seller_fee = sale.get('sellerFee') or {}
    tx_hash = sale.get('transactionHash')
    log_index = sale.get('logIndex')
    name = (token_names or {}).get(token_id) or f"Token #{token_id}"

    return NormalizedTrade(
        id=f"{tx_hash}-{log_index}" if log_index is not None else str(tx_hash),
        blockchain=Blockchain.POLYGON,
        timestamp=timestamp_ms,
        timestamp_iso=to_iso(to_datetime(timestamp_ms)),
        card_name=name,
        asset_id=token_id,
        buyer=sale.get('buyerAddress'),
        seller=sale.get('sellerAddress'),
        price=wei_to_decimal(seller_fee.get('amount')),
        price_display=format_wei(seller_fee.get('amount')),
        currency=seller_fee.get('symbol') or 'MATIC',
        quantity=_int(sale.get('quantity'), 0) or 1,
        transaction_hash=tx_hash,
        block=_optional_int(sale.get('blockNumber'))
    ).model_dump(mode='json')

# Users

class _UserTally:
    def __init__(self, address: str, blockchain: Blockchain):
        self.address = address
        self.blockchain = blockchain
        self.first_seen: Optional[datetime] = None
        self.last_seen: Optional[datetime] = None
        self.trades = 0
        self.mints = 0
        self.purchases = 0

    def seen(self, date: Optional[datetime]):
        if date is None:
            return
        if self.first_seen is None or date < self.first_seen:
            self.first_seen = date
        if self.last_seen is None or date > self.last_seen:
            self.last_seen = date

    def to_record(self) -> Dict[str, Any]:
        return NormalizedUser(
            address=self.address,
            blockchain=self.blockchain,
            first_seen=to_iso(self.first_seen),
            last_seen=to_iso(self.last_seen),
            trades=self.trades,
            mints=self.mints,
            purchases=self.purchases,
            timestamp=unix_ms(self.last_seen)
        ).model_dump(mode='json')

class _UserIndex:
    def __init__(self, blockchain: Blockchain):
        self.blockchain = blockchain
        self.users: Dict[str, _UserTally] = {}

    def add(self, address: Optional[str], timestamp: Any, counter: Optional[str] = None):
        if not address:
            return
        try:
            date = to_datetime(timestamp)
        except (ValueError, OverflowError):
            date = None
        user = self.users.setdefault(address, _UserTally(address, self.blockchain))
        user.seen(date)
        if counter:
            setattr(user, counter, getattr(user, counter) + 1)

    def records(self) -> List[Dict[str, Any]]:
        users = [user for user in self.users.values() if user.last_seen is not None]
        users.sort(key=lambda user: user.last_seen, reverse=True)
        return [user.to_record() for user in users]

def derive_ardor_users(trades: Iterable[Dict[str, Any]],
                       crafts: Iterable[Dict[str, Any]] = (),
                       sales: Iterable[Dict[str, Any]] = ()) -> List[Dict[str, Any]]:
    """Build Ardor user records from normalized trades, crafts and GIFTZ sales

    Buyers and sellers count a trade, craft recipients a mint and GIFTZ buyers a
    purchase.
    """
    index = _UserIndex(Blockchain.ARDOR)
    for trade in trades:
        if trade.get('blockchain', 'ardor') != Blockchain.ARDOR.value:
            continue
        index.add(trade.get('buyer'), trade.get('timestamp'), 'trades')
        index.add(trade.get('seller'), trade.get('timestamp'), 'trades')
    for craft in crafts:
        index.add(craft.get('recipient'), craft.get('timestamp'), 'mints')
    for sale in sales:
        index.add(sale.get('buyer'), sale.get('timestamp'), 'purchases')
    return index.records()

def derive_polygon_users(transfers: Iterable[Dict[str, Any]],
                         sales: Iterable[Dict[str, Any]] = ()) -> List[Dict[str, Any]]:
    """Build Polygon user records from Alchemy ERC-1155 transfers and normalized sales

    A transfer from the zero address is a mint for its recipient. Other
    transfers only update when both sides were last seen.
    """
    index = _UserIndex(Blockchain.POLYGON)
    for transfer in transfers:
        block_time = (transfer.get('metadata') or {}).get('blockTimestamp')
        sender = (transfer.get('from') or '').lower()
        recipient = (transfer.get('to') or '').lower()
        if sender == ZERO_ADDRESS:
            index.add(recipient, block_time, 'mints')
            continue
        index.add(sender, block_time)
        if recipient != ZERO_ADDRESS:
            index.add(recipient, block_time)
    for sale in sales:
        if sale.get('blockchain') != Blockchain.POLYGON.value:
            continue
        buyer = (sale.get('buyer') or '').lower()
        seller = (sale.get('seller') or '').lower()
        index.add(buyer, sale.get('timestamp'), 'purchases')
        index.add(buyer, sale.get('timestamp'), 'trades')
        index.add(seller, sale.get('timestamp'), 'trades')
    return index.records()
