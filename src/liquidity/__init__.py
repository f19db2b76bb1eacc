from .compliance import (
    ComplianceResult,
    ComplianceWarning,
    check_compliance,
    get_pool_ratio,
    pool_liquidity_usd,
)
from .deposit import (
    LiquidityEstimate,
    ShareAmount,
    calculate_share_amounts,
    estimate_liquidity_deposit,
    normalize_token_pair,
)

__all__ = [
    "ComplianceResult",
    "ComplianceWarning",
    "check_compliance",
    "get_pool_ratio",
    "pool_liquidity_usd",
    "LiquidityEstimate",
    "ShareAmount",
    "calculate_share_amounts",
    "estimate_liquidity_deposit",
    "normalize_token_pair",
]
