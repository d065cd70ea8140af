"""Filesystem-style access to SharePoint document libraries.

Public API:
- SharePointAdapter (filesystem operations over a SharePoint site)
- SharePointSettings, AuthConfig, Strategy (configuration)
- authorize() → TokenCredential
- FileAttributes, DirectoryAttributes (normalized metadata)
- SharePointFSError, NotFoundError, RemoteFailure, RemoteRequestError,
  UnsupportedOperation (errors)
"""

from .adapter import SharePointAdapter
from .auth import authorize
from .errors import (
    NotFoundError,
    RemoteFailure,
    RemoteRequestError,
    SharePointFSError,
    UnsupportedOperation,
)
from .models import DirectoryAttributes, FileAttributes
from .settings import AuthConfig, SharePointSettings, Strategy

__all__ = [
    "SharePointAdapter",
    "SharePointSettings",
    "AuthConfig",
    "Strategy",
    "authorize",
    "FileAttributes",
    "DirectoryAttributes",
    "SharePointFSError",
    "NotFoundError",
    "RemoteFailure",
    "RemoteRequestError",
    "UnsupportedOperation",
]
