"""Core type definitions for the swap estimation modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from decimal import ROUND_DOWN, Decimal, Inexact, InvalidOperation, localcontext
from typing import Any, Optional

from .errors import ValidationError

DEFAULT_LP_FEE_RATE = Decimal("30")
DEFAULT_TREASURY_FEE_RATE = Decimal("5")
DEFAULT_COMPLIANCE_REQUIREMENT = 100_000_000_000
BPS_DENOMINATOR = 10_000
# Precision assumed for a pool coin whose record omits "dp".
DEFAULT_COIN_DP = 8

# Wide enough that scaling reserves by 10**dp never rounds.
_EXACT_PREC = 120


@dataclass(frozen=True)
class TokenAmount:
    """
    Represents a token amount with proper decimal handling.

    Internally stores raw integer (smallest units).
    Provides human-readable formatting.
    """

    raw: int
    decimals: int
    symbol: Optional[str] = None

    def __post_init__(self) -> None:
        if not isinstance(self.raw, int):
            raise TypeError("raw must be an int")
        if not isinstance(self.decimals, int) or self.decimals < 0:
            raise ValueError("decimals must be a non-negative integer")

    @classmethod
    def from_human(
        cls, amount: str | Decimal | int, decimals: int, symbol: str | None = None
    ) -> "TokenAmount":
        """Create from human-readable amount (e.g., '1.5' RUNES)."""
        decimal_amount = to_decimal(amount)
        if not decimal_amount.is_finite():
            raise ValidationError(f"amount {amount!r} is not a finite number")
        if _decimal_places(decimal_amount) > decimals:
            raise ValidationError(
                f"amount {amount} has {_decimal_places(decimal_amount)} decimal "
                f"places, exceeding allowed {decimals}"
            )
        with localcontext() as ctx:
            ctx.prec = _EXACT_PREC
            ctx.traps[Inexact] = True
            try:
                raw_decimal = decimal_amount.scaleb(decimals)
            except Inexact as exc:
                raise ValidationError(
                    f"amount {amount} cannot be represented exactly with {decimals} decimals"
                ) from exc
        if raw_decimal != raw_decimal.to_integral_value():
            raise ValidationError(
                f"amount {amount} has more than {decimals} decimal places"
            )
        return cls(raw=int(raw_decimal), decimals=decimals, symbol=symbol)

    @property
    def human(self) -> Decimal:
        """Returns human-readable decimal."""
        return to_human(self.raw, self.decimals)

    def __str__(self) -> str:
        return f"{format_amount(self.raw, self.decimals)} {self.symbol or ''}".strip()


def to_decimal(value: object) -> Decimal:
    if isinstance(value, bool):
        raise TypeError("amount must be a string, int or Decimal")
    if isinstance(value, float):
        raise TypeError("amount must be a string or Decimal, not float")
    if isinstance(value, Decimal):
        return value
    if isinstance(value, (int, str)):
        try:
            return Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValidationError(f"{value!r} is not a number") from exc
    raise TypeError(f"Unsupported amount type: {type(value).__name__}")


def _decimal_places(value: Decimal) -> int:
    # Read off the digit tuple; normalize() would round under the active context.
    _, digits, exponent = value.as_tuple()
    if not isinstance(exponent, int) or exponent >= 0 or not any(digits):
        return 0
    places = -exponent
    for digit in reversed(digits):
        if digit != 0 or places == 0:
            break
        places -= 1
    return places


def to_raw(amount: str | Decimal | int, dp: int) -> int:
    """Human amount -> smallest units. Rejects excess precision, never truncates."""
    return TokenAmount.from_human(amount, dp).raw


def to_human(raw: int, dp: int) -> Decimal:
    """Smallest units -> human amount, exact."""
    return Decimal(f"{int(raw)}E-{dp}")


def format_amount(raw: int, dp: int) -> str:
    return format_decimal(to_human(raw, dp))


def format_decimal(value: Decimal) -> str:
    """Plain notation, no exponent, no trailing zeros."""
    if value == 0:
        return "0"
    with localcontext() as ctx:
        ctx.prec = _EXACT_PREC
        text = format(value.normalize(), "f")
    return text


def round_down(value: Decimal, dp: int) -> Decimal:
    """Truncate to ``dp`` decimal places."""
    with localcontext() as ctx:
        ctx.prec = _EXACT_PREC
        return value.quantize(Decimal(1).scaleb(-dp), rounding=ROUND_DOWN)


def parse_int(value: object, name: str = "value") -> int:
    """Parse an integer carried as int or decimal string on the wire."""
    if isinstance(value, bool):
        raise ValueError(f"{name} must be an integer, got bool")
    if isinstance(value, int):
        return value
    if isinstance(value, (str, Decimal)):
        try:
            parsed = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"{name} is not a number: {value!r}") from exc
        if not parsed.is_finite() or parsed != parsed.to_integral_value():
            raise ValueError(f"{name} must be integral: {value!r}")
        return int(parsed)
    raise ValueError(f"{name} must be an integer-like value, got {value!r}")


def parse_timestamp(value: object) -> Optional[float]:
    """
    Normalize ``updatedAt`` to epoch milliseconds.

    Accepts ISO-8601 strings (naive values are UTC) and epoch milliseconds.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("timestamp must not be bool")
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        moment = datetime.fromisoformat(text)
    else:
        raise ValueError(f"Unsupported timestamp: {value!r}")
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp() * 1000.0


def _optional_int(payload: dict, key: str) -> Optional[int]:
    value = payload.get(key)
    return None if value is None else parse_int(value, key)


def _optional_decimal(payload: dict, key: str) -> Optional[Decimal]:
    value = payload.get(key)
    if value is None:
        return None
    return Decimal(str(value))


def _coin_dp(value: object) -> int:
    if value is None or value == "":
        return DEFAULT_COIN_DP
    dp = parse_int(value, "dp")
    if dp < 0:
        raise ValueError(f"dp must be non-negative, got {dp}")
    return dp


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CoinRef:
    """Coin as embedded in a pool record."""

    ticker: str
    dp: int
    id: Optional[str] = None
    project_name: Optional[str] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CoinRef":
        return cls(
            ticker=payload["ticker"],
            dp=_coin_dp(payload.get("dp")),
            id=payload.get("id"),
            project_name=payload.get("projectName"),
        )

    def to_dict(self) -> dict:
        return {"ticker": self.ticker, "dp": self.dp, "projectName": self.project_name}


@dataclass(frozen=True)
class LiquidityShare:
    id: str
    shares: int


@dataclass(frozen=True)
class Coin:
    id: str
    ticker: str
    dp: int
    status: str
    project_name: Optional[str] = None
    compliance_requirement: int = DEFAULT_COMPLIANCE_REQUIREMENT
    chains: tuple = ()
    updated_at: Optional[float] = None

    def ref(self) -> CoinRef:
        return CoinRef(
            ticker=self.ticker, dp=self.dp, id=self.id, project_name=self.project_name
        )


@dataclass(frozen=True)
class Pool:
    """
    A constant-product pool replica.

    ``coin_a``/``coin_b`` orientation is assigned by the server and must be
    kept as-is. Fee rates are basis points (30 == 0.30%).
    """

    id: str
    coin_a: CoinRef
    coin_b: CoinRef
    reserve_a: int
    reserve_b: int
    total_shares: int
    lp_fee_rate: Decimal = DEFAULT_LP_FEE_RATE
    treasury_fee_rate: Decimal = DEFAULT_TREASURY_FEE_RATE
    runes_compliant: bool = False
    active_liquidity_providers: int = 0
    liquidity_shares: tuple[LiquidityShare, ...] = ()
    updated_at: Optional[float] = None

    @property
    def total_fee_bps(self) -> Decimal:
        return self.lp_fee_rate + self.treasury_fee_rate

    @property
    def total_fee_rate(self) -> Decimal:
        """Total fee as a fraction (0.0035 for 30 + 5 bps)."""
        return self.total_fee_bps / BPS_DENOMINATOR

    @property
    def has_zero_reserve(self) -> bool:
        return self.reserve_a == 0 or self.reserve_b == 0

    def involves(self, ticker: str) -> bool:
        return ticker in (self.coin_a.ticker, self.coin_b.ticker)

    def joins(self, ticker_x: str, ticker_y: str) -> bool:
        return (self.coin_a.ticker == ticker_x and self.coin_b.ticker == ticker_y) or (
            self.coin_a.ticker == ticker_y and self.coin_b.ticker == ticker_x
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "coinA": self.coin_a.to_dict(),
            "coinB": self.coin_b.to_dict(),
            "reserveA": str(self.reserve_a),
            "reserveB": str(self.reserve_b),
            "totalShares": str(self.total_shares),
            "lpFeeRate": str(self.lp_fee_rate),
            "treasuryFeeRate": str(self.treasury_fee_rate),
            "runesCompliant": self.runes_compliant,
            "activeLiquidityProviders": self.active_liquidity_providers,
        }


@dataclass(frozen=True)
class Wallet:
    ticker: str
    available: int
    locked: int
    id: Optional[str] = None
    updated_at: Optional[float] = None

    @property
    def total(self) -> int:
        return self.available + self.locked


@dataclass(frozen=True)
class UserShare:
    pool_id: str
    shares: int
    updated_at: Optional[float] = None


# ---------------------------------------------------------------------------
# Patches: typed update records. ``None`` means the field was absent.
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PoolPatch:
    id: str
    coin_a: Optional[CoinRef] = None
    coin_b: Optional[CoinRef] = None
    reserve_a: Optional[int] = None
    reserve_b: Optional[int] = None
    total_shares: Optional[int] = None
    lp_fee_rate: Optional[Decimal] = None
    treasury_fee_rate: Optional[Decimal] = None
    runes_compliant: Optional[bool] = None
    active_liquidity_providers: Optional[int] = None
    liquidity_shares: Optional[tuple[LiquidityShare, ...]] = None
    updated_at: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "PoolPatch":
        coin_a = payload.get("coinA")
        coin_b = payload.get("coinB")
        shares = payload.get("liquidityShares")
        return cls(
            id=str(payload["id"]),
            coin_a=CoinRef.from_payload(coin_a) if coin_a else None,
            coin_b=CoinRef.from_payload(coin_b) if coin_b else None,
            reserve_a=_optional_int(payload, "reserveA"),
            reserve_b=_optional_int(payload, "reserveB"),
            total_shares=_optional_int(payload, "totalShares"),
            lp_fee_rate=_optional_decimal(payload, "lpFeeRate"),
            treasury_fee_rate=_optional_decimal(payload, "treasuryFeeRate"),
            runes_compliant=payload.get("runesCompliant"),
            active_liquidity_providers=_optional_int(
                payload, "activeLiquidityProviders"
            ),
            liquidity_shares=(
                tuple(
                    LiquidityShare(
                        id=str(item["id"]), shares=parse_int(item["shares"], "shares")
                    )
                    for item in shares
                )
                if shares is not None
                else None
            ),
            updated_at=parse_timestamp(payload.get("updatedAt")),
        )


@dataclass(frozen=True)
class CoinPatch:
    id: str
    ticker: Optional[str] = None
    dp: Optional[int] = None
    status: Optional[str] = None
    project_name: Optional[str] = None
    compliance_requirement: Optional[int] = None
    chains: Optional[tuple] = None
    updated_at: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "CoinPatch":
        chains = payload.get("CoinChains")
        requirement = payload.get("runesComplianceRequirement")
        # The server sends ``false`` when no explicit threshold is set.
        if requirement is False or requirement == "":
            requirement = None
        return cls(
            id=str(payload["id"]),
            ticker=payload.get("ticker"),
            dp=_optional_int(payload, "dp"),
            status=payload.get("status"),
            project_name=payload.get("projectName"),
            compliance_requirement=(
                parse_int(requirement, "runesComplianceRequirement")
                if requirement is not None
                else None
            ),
            chains=tuple(chains) if chains is not None else None,
            updated_at=parse_timestamp(payload.get("updatedAt")),
        )


@dataclass(frozen=True)
class WalletPatch:
    ticker: str
    available: Optional[int] = None
    locked: Optional[int] = None
    id: Optional[str] = None
    updated_at: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "WalletPatch":
        return cls(
            ticker=payload["ticker"],
            available=_optional_int(payload, "available"),
            locked=_optional_int(payload, "locked"),
            id=payload.get("id"),
            updated_at=parse_timestamp(payload.get("updatedAt")),
        )


@dataclass(frozen=True)
class UserSharePatch:
    pool_id: str
    shares: Optional[int] = None
    updated_at: Optional[float] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "UserSharePatch":
        return cls(
            pool_id=str(payload["poolId"]),
            shares=_optional_int(payload, "shares"),
            updated_at=parse_timestamp(payload.get("updatedAt")),
        )


@dataclass(frozen=True)
class Hop:
    """One traversal of a single pool."""

    from_ticker: str
    to_ticker: str
    pool_id: Optional[str] = field(default=None, compare=False)

    def to_dict(self) -> dict:
        return {"from": self.from_ticker, "to": self.to_ticker}

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> "Hop":
        return cls(
            from_ticker=payload["from"],
            to_ticker=payload["to"],
            pool_id=payload.get("poolId"),
        )
