from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class ListedToken:
    """One row of the new-token listing feed."""
    mint: str
    name: Optional[str]
    symbol: Optional[str]
    created_at: Optional[str] = None
    decimals: Optional[int] = None


@dataclass(frozen=True)
class MarketSnapshot:
    """Stats of the most liquid qualifying trading pair for a token."""
    price: float
    volume_24h: float
    price_change_24h: float
    market_cap: float
    fdv: float
    buys: int = 0
    sells: int = 0

    @property
    def tx_count(self) -> int:
        return (self.buys or 0) + (self.sells or 0)


@dataclass(frozen=True)
class TokenAnalysis:
    price: float
    price_change_24h: float
    volume_24h: float
    market_cap: float
    fdv: float
    liquidity: float
    holder_count: int
    total_score: float

    @classmethod
    def zero(cls) -> 'TokenAnalysis':
        return cls(
            price=0.0,
            price_change_24h=0.0,
            volume_24h=0.0,
            market_cap=0.0,
            fdv=0.0,
            liquidity=0.0,
            holder_count=0,
            total_score=0.0,
        )

    @classmethod
    def below_threshold(cls, snapshot: MarketSnapshot) -> 'TokenAnalysis':
        return cls(
            price=snapshot.price,
            price_change_24h=snapshot.price_change_24h,
            volume_24h=snapshot.volume_24h,
            market_cap=snapshot.market_cap,
            fdv=snapshot.fdv,
            liquidity=0.0,
            holder_count=0,
            total_score=0.0,
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
