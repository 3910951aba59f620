from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel


class Blockchain(str, Enum):
    ARDOR = "ardor"
    POLYGON = "polygon"


class ResultStatus(str, Enum):
    OK = "ok"
    STALE = "stale"
    ERROR = "error"


class NormalizedTrade(BaseModel):
    id: str
    blockchain: Blockchain
    timestamp: Union[int, float]
    timestamp_iso: str
    card_name: str
    asset_id: Optional[str] = None
    buyer: Optional[str] = None
    seller: Optional[str] = None
    price: str = "0"
    price_display: str = "0"
    currency: str
    quantity: int = 1
    transaction_hash: Optional[str] = None
    block: Optional[int] = None


class NormalizedBurn(BaseModel):
    id: str
    blockchain: Blockchain = Blockchain.ARDOR
    timestamp: Union[int, float]
    timestamp_iso: str
    card_name: str
    asset_id: str
    sender: Optional[str] = None
    recipient: Optional[str] = None
    quantity: int = 1
    transaction_hash: Optional[str] = None
    block: Optional[int] = None


class NormalizedCraft(BaseModel):
    id: str
    blockchain: Blockchain = Blockchain.ARDOR
    timestamp: Union[int, float]
    timestamp_iso: str
    card_name: str
    card_rarity: str = "unknown"
    card_type: str = "unknown"
    asset_id: str
    recipient: Optional[str] = None
    cards_used: int = 1
    submitted_by: Optional[str] = None


class NormalizedMorph(BaseModel):
    id: str
    blockchain: Blockchain = Blockchain.ARDOR
    timestamp: Union[int, float]
    timestamp_iso: str
    from_card: str
    to_card: str
    asset_id: str
    morpher: Optional[str] = None
    quantity: int = 1
    submitted_by: str = "unknown"


class NormalizedSale(BaseModel):
    id: str
    blockchain: Blockchain = Blockchain.ARDOR
    timestamp: Union[int, float]
    timestamp_iso: str
    item_name: str = "GIFTZ Token"
    buyer: Optional[str] = None
    seller: Optional[str] = None
    quantity: int = 0


class NormalizedUser(BaseModel):
    address: str
    blockchain: Blockchain
    first_seen: str
    last_seen: str
    trades: int = 0
    mints: int = 0
    purchases: int = 0
    timestamp: int


class TrackedAsset(BaseModel):
    asset: str
    name: str
    card_name: str
    card_rarity: str = "unknown"
    card_type: str = "unknown"
    issuer: Optional[str] = None
    quantity: Optional[str] = None
    decimals: int = 0
    category: str = "regular"


class ActivityResult(BaseModel):
    """Envelope returned by every aggregation call.

    The record list lives under the activity's plural key (``trades``, ``burns``
    ...), so the envelope is rendered through ``to_response`` rather than dumped
    directly.
    """
    key: str
    records: List[Dict[str, Any]] = []
    period: str = "all"
    timestamp: str
    status: ResultStatus = ResultStatus.OK
    error: Optional[str] = None
    total_quantity: Optional[int] = None

    @property
    def count(self) -> int:
        return len(self.records)

    def to_response(self) -> Dict[str, Any]:
        response = {
            self.key: self.records,
            "count": self.count,
            "period": self.period,
            "timestamp": self.timestamp,
            "status": self.status.value,
            "error": self.error,
        }
        if self.total_quantity is not None:
            response["total_quantity"] = self.total_quantity
        return response


class CacheFileInfo(BaseModel):
    key: str
    file: str
    size: int
    modified: str
    records: int
    timestamp: Optional[str] = None
    date_range: Optional[Dict[str, Optional[str]]] = None


class HealthStatus(BaseModel):
    status: str
    timestamp: str
    uptime: float
    memory_mb: float
    cpu_percent: float
    node: Dict[str, Any]
    cache_files: int
