"""Resolution of logical paths into SharePoint lists, folders and files.

SharePoint has no notion of a path. Every lookup is a sequence of remote
queries: find the list by title, fetch the folder by its server-relative
URL, then filter the folder's files by name. Each step goes through the
:class:`~sharepointfs.cache.ResourceCache` so repeated lookups within one
adapter lifetime cost a single round trip.
"""

from __future__ import annotations

import logging

from . import paths
from .cache import ResourceCache
from .errors import NotFoundError, RemoteFailure, RemoteRequestError
from .interfaces import DOCUMENT_LIBRARY_TEMPLATE, RemoteClient
from .models import FileItem, FolderItem, LibraryItem

logger = logging.getLogger(__name__)


class ResourceResolver:
    """Resolves prefixed logical paths against a :class:`RemoteClient`.

    Only a remote "not found" answer becomes a :class:`NotFoundError`; any
    other :class:`RemoteRequestError` is raised as :class:`RemoteFailure`
    so callers can decide whether to retry.
    """

    def __init__(self, client: RemoteClient, cache: ResourceCache | None = None):
        self._client = client
        self.cache = cache if cache is not None else ResourceCache()

    def resolve_list(
        self, path: str, create_if_missing: bool = False, fresh: bool = False
    ) -> LibraryItem:
        """Return the list named by the first segment of ``path``.

        Args:
            path: Prefixed logical path.
            create_if_missing: Create a document library when none exists.
                New libraries get their role inheritance broken.
            fresh: Ignore any cached list.

        Returns:
            The resolved or newly created list.

        Raises:
            NotFoundError: The list does not exist and may not be created.
            RemoteFailure: Any other remote error.
        """
        title = paths.list_title_for_path(path)
        if not title:
            raise ValueError("A list title is required to resolve a path.")

        key = ("list", title)
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Using cached list %s", title)
                return cached

        escaped = paths.escape_odata_literal(title)
        try:
            found = self._client.get_lists_by_title(escaped)
        except RemoteRequestError as exc:
            raise self.translate(exc, path, "list") from exc

        if found:
            library = found[0]
        elif create_if_missing:
            library = self._create_list(path, title)
        else:
            self.cache.invalidate(key)
            raise NotFoundError(path, "list")

        self.cache.put(key, library)
        return library

    def _create_list(self, path: str, title: str) -> LibraryItem:
        logger.info("Creating document library %s", title)
        try:
            library = self._client.create_list(title, DOCUMENT_LIBRARY_TEMPLATE)
            self._client.break_role_inheritance(library.title, True)
        except RemoteRequestError as exc:
            raise self.translate(exc, path, "list") from exc
        return library

    def folder_url_for_path(
        self, path: str, library: LibraryItem, is_file: bool | None = None
    ) -> str:
        """Return the server-relative URL of the folder containing ``path``."""
        folder_path = paths.folder_path_for_path(path, is_file)
        if not folder_path:
            return library.root_folder_url
        return f"{library.root_folder_url}/{folder_path}"

    def resolve_folder(
        self,
        path: str,
        library: LibraryItem | None = None,
        create_if_missing: bool = False,
        fresh: bool = False,
        is_file: bool | None = None,
    ) -> FolderItem:
        """Return the folder addressed by ``path``.

        When ``is_file`` is true (or guessed so), the folder is the one that
        contains the final segment; otherwise the final segment is itself
        part of the folder chain.

        Args:
            path: Prefixed logical path.
            library: Already resolved list; resolved (without creation)
                from ``path`` when omitted.
            create_if_missing: Create every missing folder level.
            fresh: Ignore cached folders.
            is_file: Whether the final segment names a file.

        Returns:
            The resolved or newly created folder.

        Raises:
            NotFoundError: The folder does not exist and may not be created.
            RemoteFailure: Any other remote error.
        """
        if library is None:
            library = self.resolve_list(path, fresh=fresh)

        url = self.folder_url_for_path(path, library, is_file)
        key = ("folder", url)
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Using cached folder %s", url)
                return cached

        try:
            folder = self._client.get_folder(url)
        except RemoteRequestError as exc:
            if not exc.is_not_found:
                raise RemoteFailure.from_request_error(path, exc) from exc
            self.cache.invalidate(key)
            if not create_if_missing:
                raise NotFoundError(path, "folder") from exc
            folder = self._create_folder_chain(
                path, library, paths.folder_path_for_path(path, is_file)
            )

        self.cache.put(key, folder)
        return folder

    def _create_folder_chain(
        self, path: str, library: LibraryItem, folder_path: str
    ) -> FolderItem:
        """Create the missing levels of ``folder_path`` one at a time."""
        parent_url = library.root_folder_url
        folder: FolderItem | None = None
        for segment in paths.split_path(folder_path):
            url = f"{parent_url}/{segment}"
            key = ("folder", url)
            folder = self.cache.get(key)
            if folder is None:
                folder = self._get_or_create_folder(path, parent_url, segment)
                self.cache.put(key, folder)
            parent_url = url

        if folder is None:
            # The list root itself was reported missing.
            raise NotFoundError(path, "folder")
        return folder

    def _get_or_create_folder(
        self, path: str, parent_url: str, name: str
    ) -> FolderItem:
        url = f"{parent_url}/{name}"
        try:
            return self._client.get_folder(url)
        except RemoteRequestError as exc:
            if not exc.is_not_found:
                raise RemoteFailure.from_request_error(path, exc) from exc

        logger.info("Creating folder %s", url)
        try:
            return self._client.create_folder(parent_url, name)
        except RemoteRequestError as exc:
            raise self.translate(exc, path, "folder") from exc

    def resolve_file(self, path: str, fresh: bool = False) -> FileItem:
        """Return the file addressed by ``path``.

        Args:
            path: Prefixed logical path of the file.
            fresh: Ignore cached lists, folders and files along the way.

        Returns:
            The file with its full properties loaded.

        Raises:
            NotFoundError: The list, folder or file does not exist.
            RemoteFailure: Any other remote error.
        """
        filename = paths.filename_for_path(path)
        key = ("file", paths.escape_odata_literal(paths.normalize_path(path)))
        if not fresh:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("Using cached file %s", path)
                return cached

        if len(paths.split_path(path)) < 2:
            raise NotFoundError(path, "file")

        library = self.resolve_list(path, fresh=fresh)
        folder = self.resolve_folder(path, library, fresh=fresh, is_file=True)

        try:
            matches = self._client.find_files(folder.server_relative_url, filename)
        except RemoteRequestError as exc:
            raise self.translate(exc, path, "file") from exc

        if not matches:
            self.cache.invalidate(key)
            raise NotFoundError(path, "file")

        try:
            file = self._client.get_file(matches[0].server_relative_url)
        except RemoteRequestError as exc:
            self.cache.invalidate(key)
            raise self.translate(exc, path, "file") from exc

        self.cache.put(key, file)
        return file

    def remember_file(self, path: str, file: FileItem) -> None:
        """Cache a file obtained outside of resolution, e.g. after an upload."""
        key = ("file", paths.escape_odata_literal(paths.normalize_path(path)))
        self.cache.put(key, file)

    def forget(self, path: str) -> None:
        """Drop the cached file entry for ``path``."""
        key = ("file", paths.escape_odata_literal(paths.normalize_path(path)))
        self.cache.invalidate(key)

    @staticmethod
    def translate(
        exc: RemoteRequestError, path: str, kind: str
    ) -> NotFoundError | RemoteFailure:
        """Map a remote error to the exception raised for ``path``."""
        if exc.is_not_found:
            return NotFoundError(path, kind)
        return RemoteFailure.from_request_error(path, exc)
