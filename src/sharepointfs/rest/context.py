from time import time
from typing import TYPE_CHECKING

from office365.runtime.auth.token_response import TokenResponse
from office365.sharepoint.client_context import ClientContext

from sharepointfs.auth import spo_scope_from_url

if TYPE_CHECKING:
    from azure.core.credentials import TokenCredential


def build_client_context(site_url: str, credential: "TokenCredential") -> ClientContext:
    """Build a SharePoint ClientContext that authenticates with ``credential``.

    Args:
        site_url: The absolute SharePoint site URL (including url scheme).
        credential: Credential returned by :func:`sharepointfs.auth.authorize`.
    """
    scope = spo_scope_from_url(site_url)

    def _factory() -> TokenResponse:
        tok = credential.get_token(scope)
        return TokenResponse.from_json(
            {
                "token_type": "Bearer",
                "access_token": tok.token,
                "expires_in": max(1, int(tok.expires_on - time())),
            }
        )

    return ClientContext(site_url).with_access_token(_factory)
