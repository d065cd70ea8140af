"""Conversion of SharePoint resources into the adapter's attribute model."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from .models import (
    DirectoryAttributes,
    FileAttributes,
    FileItem,
    FolderItem,
    LibraryItem,
)
from .paths import PathPrefixer

logger = logging.getLogger(__name__)

# Every document library carries this folder for its list forms.
RESERVED_FOLDER_NAMES: frozenset[str] = frozenset({"Forms"})


def to_epoch(value: datetime | str | None) -> int | None:
    """Convert a SharePoint timestamp into integer epoch seconds.

    Naive datetimes and strings without an offset are taken as UTC, which is
    what SharePoint reports. Returns ``None`` when there is no timestamp.
    """
    if value is None or value == "":
        return None

    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("Unparseable timestamp %r", value)
            return None

    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return int(value.timestamp())


class MetadataNormalizer:
    """Maps files, folders and lists to :class:`FileAttributes` and
    :class:`DirectoryAttributes` with caller-facing logical paths.

    Args:
        prefixer: Strips the adapter's root prefix from resolved paths.
        site_path: Server-relative path of the site, e.g. ``/sites/Team``.
    """

    def __init__(self, prefixer: PathPrefixer, site_path: str = "") -> None:
        self._prefixer = prefixer
        self._site_path = site_path.rstrip("/")

    def logical_path(self, server_relative_url: str) -> str:
        """Return the prefix-stripped logical path of a server-relative URL."""
        path = server_relative_url
        if self._site_path and (
            path == self._site_path or path.startswith(f"{self._site_path}/")
        ):
            path = path[len(self._site_path) :]
        return self._prefixer.strip(path)

    def normalize_file(self, item: FileItem) -> FileAttributes:
        extra = {"type": "file", "server_relative_url": item.server_relative_url}
        if item.linking_url:
            extra["url"] = item.linking_url

        return FileAttributes(
            path=self.logical_path(item.server_relative_url),
            file_size=int(item.length) if item.length is not None else None,
            last_modified=to_epoch(item.time_last_modified),
            created=to_epoch(item.time_created),
            mime_type="",
            extra=extra,
        )

    def normalize_folder(self, item: FolderItem) -> DirectoryAttributes:
        folder_type = "other" if item.name in RESERVED_FOLDER_NAMES else "dir"
        return DirectoryAttributes(
            path=self.logical_path(item.server_relative_url),
            last_modified=to_epoch(item.time_last_modified),
            created=to_epoch(item.time_created),
            extra={
                "type": folder_type,
                "server_relative_url": item.server_relative_url,
            },
        )

    def normalize_library(self, item: LibraryItem) -> DirectoryAttributes:
        props = item.extra or {}
        return DirectoryAttributes(
            path=self.logical_path(item.root_folder_url),
            last_modified=to_epoch(props.get("LastItemModifiedDate")),
            created=to_epoch(props.get("Created")),
            extra={"type": "dir", "server_relative_url": item.root_folder_url},
        )
