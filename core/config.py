# =============================================================================
# core/config.py  —  Process Configuration (read once, never mutated)
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Collects every environment variable the server needs into one frozen
#   ServerConfig.  It is built exactly once at startup; after that the
#   gateways only ever READ it.
#
# FAIL-FAST:
#   A missing API key or blob endpoint is not a per-call error — the server
#   could never do useful work without them.  from_env() raises ConfigError
#   naming the variable, and the host turns that into a clean exit.
#
# .env SUPPORT:
#   The host calls python-dotenv's load_dotenv() before from_env(), so local
#   development can keep secrets in a .env file next to the project.
# =============================================================================

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from core.errors import ConfigError

DEFAULT_MODEL = "claude-3-haiku-20240307"
DEFAULT_COMPLETION_URL = "https://api.anthropic.com/v1/messages"
DEFAULT_CREDENTIAL_CHAIN = ("cli", "managed_identity", "client_secret")


@dataclass(frozen=True)
class ServerConfig:
    anthropic_api_key: str
    blob_endpoint: str
    model: str = DEFAULT_MODEL
    completion_url: str = DEFAULT_COMPLETION_URL
    credential_chain: tuple[str, ...] = DEFAULT_CREDENTIAL_CHAIN
    completion_timeout_s: float = 120.0

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "ServerConfig":
        env = os.environ if environ is None else environ

        chain_raw = env.get("AZURE_CREDENTIAL_CHAIN", "")
        chain = tuple(
            part.strip().lower() for part in chain_raw.split(",") if part.strip()
        ) or DEFAULT_CREDENTIAL_CHAIN

        timeout_raw = env.get("COMPLETION_TIMEOUT_S", "120")
        try:
            timeout = float(timeout_raw)
        except ValueError:
            raise ConfigError(
                f"COMPLETION_TIMEOUT_S must be a number of seconds, got {timeout_raw!r}"
            ) from None

        return cls(
            anthropic_api_key=_required(env, "ANTHROPIC_API_KEY"),
            blob_endpoint=_required(env, "AZURE_BLOB_ENDPOINT"),
            model=env.get("CLAUDE_MODEL", "").strip() or DEFAULT_MODEL,
            completion_url=env.get("ANTHROPIC_API_URL", "").strip() or DEFAULT_COMPLETION_URL,
            credential_chain=chain,
            completion_timeout_s=timeout,
        )


def _required(env: Mapping[str, str], name: str) -> str:
    value = env.get(name, "").strip()
    if not value:
        raise ConfigError(f"{name} not found. Set it in the environment or in .env.")
    return value
