from __future__ import annotations

from typing import Iterator

import pytest
from fakes import ENV_KEYS, SITE_URL, InMemoryRemoteClient

from sharepointfs.adapter import SharePointAdapter
from sharepointfs.settings import SharePointSettings


@pytest.fixture(autouse=True)
def clear_sharepoint_env(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Remove settings variables to prevent leakage from the host environment."""
    for key in ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    yield


@pytest.fixture()
def remote() -> InMemoryRemoteClient:
    return InMemoryRemoteClient()


@pytest.fixture()
def settings() -> SharePointSettings:
    return SharePointSettings(site_url=SITE_URL)


@pytest.fixture()
def adapter(
    settings: SharePointSettings, remote: InMemoryRemoteClient
) -> SharePointAdapter:
    """Adapter rooted in the ``apitest2`` library."""
    return SharePointAdapter(settings, "apitest2/", client=remote)


@pytest.fixture()
def root_adapter(
    settings: SharePointSettings, remote: InMemoryRemoteClient
) -> SharePointAdapter:
    """Adapter without prefix, where top-level directories are libraries."""
    return SharePointAdapter(settings, client=remote)
