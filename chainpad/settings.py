# FILE: chainpad/settings.py
"""
Runtime configuration for ChainPad.

All values come from environment variables (main.py loads .env first).
get_settings() caches the parsed result; tests call reset_settings() after
patching the environment.
"""

import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Dict, List, Optional


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_origins(value: Optional[str]) -> List[str]:
    if not value:
        return ["http://localhost:5173", "http://localhost:5000"]
    return [o.strip() for o in value.split(",") if o.strip()]


def _rpc_urls_from_env() -> Dict[str, str]:
    """Collect CHAINPAD_RPC_URL_<NETWORK> variables keyed by lowercase network."""
    prefix = "CHAINPAD_RPC_URL_"
    urls = {}
    for key, value in os.environ.items():
        if key.startswith(prefix) and value.strip():
            urls[key[len(prefix):].lower()] = value.strip()
    return urls


@dataclass(frozen=True)
class Settings:
    database_url: str = "sqlite:///./data/chainpad.db"
    jwt_secret: str = "dev-secret"
    jwt_algorithm: str = "HS256"
    token_ttl_hours: int = 24
    allow_header_wallet: bool = True
    solc_version: str = "0.8.20"
    rpc_urls: Dict[str, str] = field(default_factory=dict)
    cors_origins: List[str] = field(default_factory=list)
    log_level: str = "INFO"
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("CHAINPAD_DATABASE_URL", "sqlite:///./data/chainpad.db"),
            jwt_secret=os.getenv("CHAINPAD_JWT_SECRET", "dev-secret"),
            token_ttl_hours=int(os.getenv("CHAINPAD_TOKEN_TTL_HOURS", "24")),
            allow_header_wallet=_env_bool("CHAINPAD_ALLOW_HEADER_WALLET", True),
            solc_version=os.getenv("CHAINPAD_SOLC_VERSION", "0.8.20"),
            rpc_urls=_rpc_urls_from_env(),
            cors_origins=_parse_origins(os.getenv("CHAINPAD_CORS_ORIGINS")),
            log_level=os.getenv("CHAINPAD_LOG_LEVEL", "INFO").upper(),
            openai_api_key=os.getenv("OPENAI_API_KEY"),
            openai_model=os.getenv("OPENAI_MODEL", "gpt-4"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()


def reset_settings() -> None:
    get_settings.cache_clear()
