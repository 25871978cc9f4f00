# =============================================================================
# core/credentials.py  —  Ordered Azure Credential Chain
# =============================================================================
#
# WHAT THIS MODULE DOES:
#   Builds the single async TokenCredential shared by the blob, log-query
#   and resource-manager clients.  Instead of a fixed "try everything"
#   default, the chain is an explicit, ordered list of named strategies:
#
#     cli               → AzureCliCredential (your `az login` session)
#     managed_identity  → ManagedIdentityCredential (inside Azure)
#     client_secret     → ClientSecretCredential (service principal)
#     environment       → EnvironmentCredential (AZURE_* variables)
#
#   ChainedTokenCredential tries them in order until one yields a token.
#
# PLUGGABILITY:
#   STRATEGIES maps a name to a builder function.  A builder may return
#   None to say "not configured here" (e.g. client_secret without a
#   secret) — that strategy is skipped rather than failing at startup.
# =============================================================================

import logging
from typing import Callable, Mapping, Optional

from azure.core.credentials_async import AsyncTokenCredential
from azure.identity.aio import (
    AzureCliCredential,
    ChainedTokenCredential,
    ClientSecretCredential,
    EnvironmentCredential,
    ManagedIdentityCredential,
)

from core.errors import ConfigError

logger = logging.getLogger(__name__)

CredentialBuilder = Callable[[Mapping[str, str]], Optional[AsyncTokenCredential]]


def _cli(env: Mapping[str, str]) -> AsyncTokenCredential:
    return AzureCliCredential()


def _managed_identity(env: Mapping[str, str]) -> AsyncTokenCredential:
    client_id = env.get("AZURE_CLIENT_ID") or None
    if client_id:
        return ManagedIdentityCredential(client_id=client_id)
    return ManagedIdentityCredential()


def _client_secret(env: Mapping[str, str]) -> Optional[AsyncTokenCredential]:
    tenant = env.get("AZURE_TENANT_ID", "")
    client = env.get("AZURE_CLIENT_ID", "")
    secret = env.get("AZURE_CLIENT_SECRET", "")
    if not (tenant and client and secret):
        logger.info("client_secret credential skipped: AZURE_TENANT_ID/CLIENT_ID/CLIENT_SECRET not all set")
        return None
    return ClientSecretCredential(tenant, client, secret)


def _environment(env: Mapping[str, str]) -> AsyncTokenCredential:
    return EnvironmentCredential()


STRATEGIES: dict[str, CredentialBuilder] = {
    "cli": _cli,
    "managed_identity": _managed_identity,
    "client_secret": _client_secret,
    "environment": _environment,
}


def build_credential_chain(
    order: tuple[str, ...],
    env: Mapping[str, str],
    strategies: Optional[Mapping[str, CredentialBuilder]] = None,
) -> list[AsyncTokenCredential]:
    """Instantiate each named strategy in order, skipping unconfigured ones."""
    available = STRATEGIES if strategies is None else strategies
    unknown = [name for name in order if name not in available]
    if unknown:
        raise ConfigError(
            f"Unknown credential strategy {', '.join(unknown)}. "
            f"Available: {', '.join(available)}"
        )

    credentials = []
    for name in order:
        credential = available[name](env)
        if credential is not None:
            credentials.append(credential)
            logger.debug("credential strategy enabled: %s", name)
    if not credentials:
        raise ConfigError(
            f"No usable Azure credential in chain: {', '.join(order)}"
        )
    return credentials


def create_credential(
    order: tuple[str, ...], env: Mapping[str, str]
) -> ChainedTokenCredential:
    return ChainedTokenCredential(*build_credential_chain(order, env))
