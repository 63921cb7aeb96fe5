# pricewatch/config.py
import math
import os
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Loads variables from a local .env file into environment variables (dev only).
load_dotenv()

COINBASE_WS_URL = "wss://ws-feed.exchange.coinbase.com"


@dataclass(frozen=True)
class Settings:
    # App config
    app_env: str = "local"
    log_level: str = "INFO"
    poll_interval_ms: int = 1000

    # Store config
    history_size: int = 100

    # Feed config (Coinbase)
    feed_provider: str = "COINBASE"
    feed_ws_url: str = COINBASE_WS_URL
    feed_enabled: bool = True
    reconnect_max_seconds: float = 30.0
    products: list[str] = field(default_factory=lambda: ["BTC-USD", "ETH-USD"])


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer, got {raw!r}") from None


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be a number, got {raw!r}") from None
    if not math.isfinite(value):
        raise RuntimeError(f"{name} must be a finite number, got {raw!r}")
    return value


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name, "").strip().lower()
    if not raw:
        return default
    if raw in ("1", "true", "yes", "on"):
        return True
    if raw in ("0", "false", "no", "off"):
        return False
    raise RuntimeError(f"{name} must be true/false, got {raw!r}")


def get_settings() -> Settings:
    """
    Reads env vars and returns a Settings object.
    """
    history_size = _env_int("HISTORY_SIZE", 100)
    if history_size < 1:
        raise RuntimeError(f"HISTORY_SIZE must be >= 1, got {history_size}")

    reconnect_max_seconds = _env_float("RECONNECT_MAX_SECONDS", 30.0)
    if reconnect_max_seconds < 1:
        raise RuntimeError(f"RECONNECT_MAX_SECONDS must be >= 1, got {reconnect_max_seconds}")

    products = [
        p.strip().upper() for p in os.getenv("PRODUCTS", "BTC-USD,ETH-USD").split(",") if p.strip()
    ]
    if not products:
        raise RuntimeError("PRODUCTS is empty. Set e.g. PRODUCTS=BTC-USD,ETH-USD in .env")

    return Settings(
        app_env=os.getenv("APP_ENV", "local"),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        poll_interval_ms=_env_int("POLL_INTERVAL_MS", 1000),
        history_size=history_size,
        feed_provider=os.getenv("FEED_PROVIDER", "COINBASE"),
        feed_ws_url=os.getenv("FEED_WS_URL", COINBASE_WS_URL),
        feed_enabled=_env_bool("FEED_ENABLED", True),
        reconnect_max_seconds=reconnect_max_seconds,
        products=products,
    )
