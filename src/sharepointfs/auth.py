"""Credentials for the SharePoint REST client.

The adapter never handles raw tokens. :func:`authorize` turns an
:class:`~sharepointfs.settings.AuthConfig` into an azure-identity credential,
and the REST context asks that credential for a token scoped to the site's
host (see :func:`spo_scope_from_url`).
"""

from __future__ import annotations

from urllib.parse import urlparse

from azure.core.credentials import TokenCredential
from azure.identity import (
    AzureCliCredential,
    CertificateCredential,
    ClientSecretCredential,
    DefaultAzureCredential,
    ManagedIdentityCredential,
    UsernamePasswordCredential,
)

from .settings import AuthConfig, Strategy


def authority_from_url(site_url: str) -> str:
    """Return ``"<scheme>://<host>"`` of an absolute site URL.

    Raises:
        ValueError: If ``site_url`` has no scheme or host.
    """
    parsed = urlparse(site_url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("site_url must be an absolute URL")
    return f"{parsed.scheme}://{parsed.netloc}"


def spo_scope_from_url(site_url: str) -> str:
    """Tokens are issued per tenant host, never per site collection."""
    return f"{authority_from_url(site_url)}/.default"


def _secret(value) -> str | None:
    return value.get_secret_value() if value is not None else None


def authorize(config: AuthConfig | None = None) -> TokenCredential:
    """Build the credential used by :class:`~sharepointfs.adapter.SharePointAdapter`.

    Args:
        config: Auth settings; read from the environment when omitted.

    Returns:
        An azure-identity credential for the configured strategy.
    """
    cfg = config or AuthConfig()
    authority = cfg.authority

    match cfg.strategy:
        case Strategy.CLI:
            return AzureCliCredential(authority=authority)
        case Strategy.MANAGED_IDENTITY:
            return ManagedIdentityCredential(client_id=cfg.client_id)
        case Strategy.CLIENT_SECRET:
            return ClientSecretCredential(
                tenant_id=cfg.tenant_id,
                client_id=cfg.client_id,
                client_secret=_secret(cfg.client_secret),
                authority=authority,
            )
        case Strategy.CLIENT_CERTIFICATE:
            return CertificateCredential(
                tenant_id=cfg.tenant_id,
                client_id=cfg.client_id,
                certificate_path=str(cfg.certificate_path),
                password=_secret(cfg.certificate_password),
                authority=authority,
            )
        case Strategy.USERNAME_PASSWORD:
            return UsernamePasswordCredential(
                client_id=cfg.client_id,
                username=cfg.username,
                password=_secret(cfg.password),
                tenant_id=cfg.tenant_id,
                authority=authority,
            )
        case _:
            return DefaultAzureCredential(authority=authority)
