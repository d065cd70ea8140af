from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Mapping


@dataclass
class LibraryItem:
    """Represents a SharePoint list (document library)."""

    title: str
    parent_web_url: str
    id: str | None = None
    extra: Mapping[str, Any] | None = None

    @property
    def root_folder_url(self) -> str:
        """Server-relative URL of the library's root folder."""
        return f"{self.parent_web_url.rstrip('/')}/{self.title}"


@dataclass
class FileItem:
    """Represents a file in a SharePoint document library."""

    name: str
    server_relative_url: str
    length: int | None = None
    time_created: datetime | str | None = None
    time_last_modified: datetime | str | None = None
    linking_url: str | None = None
    extra: Mapping[str, Any] | None = None


@dataclass
class FolderItem:
    """Represents a folder in a SharePoint document library."""

    name: str
    server_relative_url: str
    time_created: datetime | str | None = None
    time_last_modified: datetime | str | None = None
    item_count: int | None = None
    extra: Mapping[str, Any] | None = None


@dataclass
class FileAttributes:
    """Normalized view of a file as seen by callers of the adapter."""

    path: str
    file_size: int | None = None
    last_modified: int | None = None
    created: int | None = None
    mime_type: str = ""
    extra: dict[str, Any] = field(default_factory=lambda: {"type": "file"})

    @property
    def type(self) -> str:
        return self.extra.get("type", "file")

    def is_file(self) -> bool:
        return True

    def is_dir(self) -> bool:
        return False


@dataclass
class DirectoryAttributes:
    """Normalized view of a folder or library as seen by callers."""

    path: str
    last_modified: int | None = None
    created: int | None = None
    extra: dict[str, Any] = field(default_factory=lambda: {"type": "dir"})

    @property
    def type(self) -> str:
        return self.extra.get("type", "dir")

    def is_file(self) -> bool:
        return False

    def is_dir(self) -> bool:
        return self.type == "dir"
