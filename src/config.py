import os
from decimal import Decimal
from pathlib import Path

from dotenv import load_dotenv

_ENV_LOADED = False


def _load_env() -> None:
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    # .env lives at the project root, next to pyproject.toml.
    load_dotenv(dotenv_path=Path(__file__).resolve().parents[1] / ".env")
    _ENV_LOADED = True


def get_env(
    name: str, default: str | None = None, required: bool = False
) -> str | None:
    _load_env()
    value = os.environ.get(name, default)
    if required and (value is None or value == ""):
        raise SystemExit(f"{name} env var is required")
    return value


def _env_decimal(name: str, default: str) -> Decimal:
    return Decimal(get_env(name, default) or default)


def _env_float(name: str, default: str) -> float:
    return float(get_env(name, default) or default)


SWAP_CONFIG = {
    "apiUrl": get_env("API_URL", "http://localhost:3010"),
    "socketUrl": get_env("SOCKET_URL", "ws://localhost:3010"),
    "apiKey": get_env("API_KEY", ""),
    "quoteTicker": get_env("QUOTE_TICKER", "RUNES"),
    "stableTicker": get_env("STABLE_TICKER", "USDC"),
    "fallbackQuotePriceUsd": _env_decimal("FALLBACK_QUOTE_PRICE_USD", "0.01"),
    "estimateTimeoutSeconds": _env_float("ESTIMATE_TIMEOUT_SECONDS", "10"),
}
