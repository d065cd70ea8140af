from __future__ import annotations

from typing import Protocol

from .models import FileItem, FolderItem, LibraryItem

DOCUMENT_LIBRARY_TEMPLATE = 101
CONTRIBUTOR_ROLE_TYPE = 3


class RemoteClient(Protocol):
    """Protocol for the SharePoint requests the adapter depends on.

    Implementations operate on a single site identified at construction
    time and address folders and files by server-relative URL. Every method
    raises :class:`~sharepointfs.errors.RemoteRequestError` when the
    request fails.
    """

    def get_libraries(self) -> list[LibraryItem]:
        """List the visible document libraries of the site."""
        raise NotImplementedError

    def get_lists_by_title(self, escaped_title: str) -> list[LibraryItem]:
        """Return at most one list whose title matches an escaped title."""
        raise NotImplementedError

    def create_list(
        self, title: str, template: int = DOCUMENT_LIBRARY_TEMPLATE
    ) -> LibraryItem:
        """Create a list from the given base template."""
        raise NotImplementedError

    def break_role_inheritance(
        self, title: str, copy_role_assignments: bool = True
    ) -> None:
        """Stop the list from inheriting permissions from the site."""
        raise NotImplementedError

    def recycle_list(self, title: str) -> None:
        """Move a list into the recycle bin."""
        raise NotImplementedError

    def get_folder(self, folder_url: str) -> FolderItem:
        """Fetch a folder by server-relative URL."""
        raise NotImplementedError

    def create_folder(self, parent_url: str, name: str) -> FolderItem:
        """Create a single folder below an existing folder."""
        raise NotImplementedError

    def list_files(self, folder_url: str) -> list[FileItem]:
        """List files directly inside a folder."""
        raise NotImplementedError

    def list_folders(self, folder_url: str) -> list[FolderItem]:
        """List folders directly inside a folder."""
        raise NotImplementedError

    def find_files(self, folder_url: str, escaped_name: str) -> list[FileItem]:
        """Filter a folder's files by an already escaped file name."""
        raise NotImplementedError

    def get_file(self, file_url: str) -> FileItem:
        """Fetch a file's properties by server-relative URL."""
        raise NotImplementedError

    def upload_file(self, folder_url: str, name: str, content: bytes) -> FileItem:
        """Upload content as a file in a folder, replacing any existing file."""
        raise NotImplementedError

    def download_file(self, file_url: str) -> bytes:
        """Return the binary content of a file."""
        raise NotImplementedError

    def recycle_file(self, file_url: str) -> None:
        """Move a file into the recycle bin."""
        raise NotImplementedError

    def recycle_folder(self, folder_url: str) -> None:
        """Move a folder into the recycle bin."""
        raise NotImplementedError

    def move_file(
        self, source_url: str, destination_url: str, overwrite: bool = True
    ) -> None:
        """Move a file to a new server-relative URL."""
        raise NotImplementedError

    def get_absolute_url(self, file_url: str) -> str:
        """Return the encoded absolute URL of a file."""
        raise NotImplementedError

    def ensure_user(self, login_name: str) -> int:
        """Resolve a login name to a site user and return its principal id."""
        raise NotImplementedError

    def get_role_definition_id(self, role_type: int = CONTRIBUTOR_ROLE_TYPE) -> int:
        """Return the id of the role definition with the given type kind."""
        raise NotImplementedError

    def add_role_assignment(
        self, title: str, principal_id: int, role_definition_id: int
    ) -> None:
        """Grant a role on a list to a principal."""
        raise NotImplementedError
