"""Exception taxonomy for the SharePoint filesystem adapter."""

from __future__ import annotations

# SharePoint server error codes reported for missing files and folders.
NOT_FOUND_ERROR_CODES: tuple[str, ...] = (
    "-2147024894",  # System.IO.FileNotFoundException
    "-2130575338",  # Microsoft.SharePoint.SPException (file not found)
)


class SharePointFSError(Exception):
    """Base class for all errors raised by sharepointfs."""


class RemoteRequestError(SharePointFSError):
    """A request against the SharePoint API failed.

    Raised by :class:`~sharepointfs.interfaces.RemoteClient` implementations.
    The resolution engine inspects :attr:`is_not_found` to decide whether the
    failure means the resource is absent or something else went wrong.
    """

    def __init__(
        self,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code

    @property
    def is_not_found(self) -> bool:
        if self.status_code == 404:
            return True
        if not self.code:
            return False
        return any(self.code.startswith(code) for code in NOT_FOUND_ERROR_CODES)


class NotFoundError(SharePointFSError):
    """The resource behind a logical path does not exist remotely."""

    def __init__(self, path: str, kind: str = "file") -> None:
        super().__init__(f"{kind.capitalize()} not found at path: {path}")
        self.path = path
        self.kind = kind


class RemoteFailure(SharePointFSError):
    """Any remote failure other than a missing resource.

    Authorization, network and malformed-query errors end up here. The
    original :class:`RemoteRequestError` is chained as ``__cause__``.
    """

    def __init__(
        self,
        path: str,
        message: str,
        *,
        code: str | None = None,
        status_code: int | None = None,
    ) -> None:
        super().__init__(f"Remote request for {path!r} failed: {message}")
        self.path = path
        self.code = code
        self.status_code = status_code

    @classmethod
    def from_request_error(cls, path: str, error: RemoteRequestError) -> "RemoteFailure":
        return cls(
            path, error.message, code=error.code, status_code=error.status_code
        )


class UnsupportedOperation(SharePointFSError):
    """The operation has no meaning for this storage model."""
