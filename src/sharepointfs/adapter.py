from __future__ import annotations

import io
import logging
from contextlib import contextmanager
from typing import IO, Any, BinaryIO, Iterator, Mapping
from urllib.parse import quote, unquote

from . import paths
from .auth import authorize
from .cache import ResourceCache
from .errors import NotFoundError, RemoteRequestError, UnsupportedOperation
from .interfaces import CONTRIBUTOR_ROLE_TYPE, RemoteClient
from .models import DirectoryAttributes, FileAttributes, FolderItem
from .normalizer import RESERVED_FOLDER_NAMES, MetadataNormalizer
from .resolver import ResourceResolver
from .settings import SharePointSettings

logger = logging.getLogger(__name__)

StorageAttributes = FileAttributes | DirectoryAttributes


class SharePointAdapter:
    """Filesystem-style access to the document libraries of a SharePoint site.

    The first segment of every path names a document library, the remaining
    segments name folders and finally a file. All paths are relative to an
    optional root prefix, so with prefix ``"shared/"`` the path
    ``"reports/q1.pdf"`` lives in the ``shared`` library.

    Resolved libraries, folders and files are cached for the lifetime of the
    adapter. Existence checks and deletes always bypass the cache. The
    adapter is meant for a single caller; see :class:`ResourceCache`.
    """

    def __init__(
        self,
        settings: SharePointSettings,
        prefix: str | None = None,
        *,
        client: RemoteClient | None = None,
    ) -> None:
        """Initialize the adapter.

        Args:
            settings: Site URL, default prefix and authentication settings.
            prefix: Root prefix; overrides ``settings.prefix`` when given.
            client: Remote client to use. When omitted, a REST client is
                built from a credential obtained with ``settings.auth``.
        """
        self._settings = settings
        if client is None:
            # Imported lazily so the office365 stack is only loaded when used
            from .rest.client import RestRemoteClient

            credential = authorize(settings.auth)
            client = RestRemoteClient(settings.site_url, credential)

        self._client = client
        self._prefixer = paths.PathPrefixer(
            prefix if prefix is not None else settings.prefix
        )
        self._cache = ResourceCache()
        self._resolver = ResourceResolver(client, self._cache)
        self._normalizer = MetadataNormalizer(self._prefixer, settings.site_path)

    @property
    def prefix(self) -> str:
        return self._prefixer.prefix

    # Writing

    def write(
        self,
        path: str,
        contents: bytes | str,
        options: Mapping[str, Any] | None = None,
    ) -> FileAttributes:
        """Uploads ``contents`` to ``path``, creating the library and folders as needed.

        Args:
            path: Logical path of the file.
            contents: File content; text is encoded as UTF-8.
            options: Accepted for interface compatibility; SharePoint stores
                no per-file options.

        Returns:
            The attributes of the uploaded file.
        """
        location = self._prefixer.apply(path)
        if len(paths.split_path(location)) < 2:
            raise ValueError(
                f"Files must be stored inside a document library, got {path!r}."
            )
        if isinstance(contents, str):
            contents = contents.encode("utf-8")

        library = self._resolver.resolve_list(location, create_if_missing=True)
        folder = self._resolver.resolve_folder(
            location, library, create_if_missing=True, is_file=True
        )
        with self._remote(location, "folder"):
            item = self._client.upload_file(
                folder.server_relative_url, paths.basename(location), contents
            )
        self._resolver.remember_file(location, item)
        return self._normalizer.normalize_file(item)

    def write_stream(
        self,
        path: str,
        stream: IO[bytes] | IO[str],
        options: Mapping[str, Any] | None = None,
    ) -> FileAttributes:
        """Reads ``stream`` to the end and uploads it in one request."""
        return self.write(path, stream.read(), options)

    update = write
    update_stream = write_stream

    # Reading

    def read(self, path: str) -> bytes:
        location = self._prefixer.apply(path)
        file = self._resolver.resolve_file(location)
        try:
            with self._remote(location):
                return self._client.download_file(file.server_relative_url)
        except NotFoundError:
            # The cached entry outlived the remote file
            self._resolver.forget(location)
            raise

    def read_stream(self, path: str) -> BinaryIO:
        """Returns the file content as an in-memory stream."""
        return io.BytesIO(self.read(path))

    # Existence

    def file_exists(self, path: str) -> bool:
        """Tests for a file at ``path``; every error counts as absence."""
        location = self._prefixer.apply(path)
        try:
            self._resolver.resolve_file(location, fresh=True)
        except Exception:
            logger.debug("File check for %s failed", location, exc_info=True)
            return False
        return True

    def directory_exists(self, path: str) -> bool:
        """Tests for a library or folder at ``path``; every error counts as absence."""
        location = self._prefixer.apply(path)
        if not location:
            return True
        try:
            library = self._resolver.resolve_list(location, fresh=True)
            if len(paths.split_path(location)) > 1:
                self._resolver.resolve_folder(
                    location, library, fresh=True, is_file=False
                )
        except Exception:
            logger.debug("Directory check for %s failed", location, exc_info=True)
            return False
        return True

    def has(self, path: str) -> bool:
        return self.file_exists(path) or self.directory_exists(path)

    # Deleting

    def delete(self, path: str) -> None:
        """Recycles the file at ``path``.

        When no file exists but a directory does, the directory is recycled
        instead. Deleting something that does not exist is a no-op.
        """
        location = self._prefixer.apply(path)
        try:
            file = self._resolver.resolve_file(location, fresh=True)
        except NotFoundError:
            if self.directory_exists(path):
                self.delete_directory(path)
            else:
                logger.warning("Nothing to delete at %s", location)
            return

        try:
            with self._remote(location):
                self._client.recycle_file(file.server_relative_url)
        except NotFoundError:
            logger.warning("File %s disappeared before it was recycled", location)
            return
        finally:
            self._resolver.forget(location)
        logger.info("Recycled file %s", file.server_relative_url)

    def delete_directory(self, path: str) -> None:
        """Recycles the library or folder at ``path``; missing directories are ignored."""
        location = self._prefixer.apply(path)
        segments = paths.split_path(location)
        if not segments:
            raise UnsupportedOperation("The site root cannot be deleted.")

        try:
            library = self._resolver.resolve_list(location, fresh=True)
            if len(segments) == 1:
                with self._remote(location, "list"):
                    self._client.recycle_list(library.title)
                logger.info("Recycled library %s", library.title)
            else:
                folder = self._resolver.resolve_folder(
                    location, library, fresh=True, is_file=False
                )
                with self._remote(location, "folder"):
                    self._client.recycle_folder(folder.server_relative_url)
                logger.info("Recycled folder %s", folder.server_relative_url)
        except NotFoundError:
            logger.warning("Directory %s does not exist", location)
        finally:
            # Every cached resource below the directory is now stale
            self._cache.clear()

    # Directories

    def create_directory(
        self, path: str, options: Mapping[str, Any] | None = None
    ) -> DirectoryAttributes:
        """Creates a library for a single segment path, or folders inside a library.

        New libraries do not inherit permissions from the site.
        """
        location = self._prefixer.apply(path)
        segments = paths.split_path(location)
        if not segments:
            raise ValueError("A directory path is required.")

        library = self._resolver.resolve_list(location, create_if_missing=True)
        if len(segments) == 1:
            return self._normalizer.normalize_library(library)

        folder = self._resolver.resolve_folder(
            location, library, create_if_missing=True, is_file=False
        )
        return self._normalizer.normalize_folder(folder)

    def list_contents(
        self, path: str = "", deep: bool = False
    ) -> Iterator[StorageAttributes]:
        """Yields the files and folders inside ``path``.

        Files come first, sorted by name, followed by the folders. The
        queried directory itself and the libraries' ``Forms`` folders are
        never yielded, and a missing directory yields nothing.

        Args:
            path: Logical path of the directory; empty for the root.
            deep: Also descend into every subfolder.
        """
        location = self._prefixer.apply(path)
        if not location:
            yield from self._list_libraries(deep)
            return

        try:
            library = self._resolver.resolve_list(location, fresh=True)
            folder = self._resolver.resolve_folder(
                location, library, fresh=True, is_file=False
            )
        except NotFoundError:
            logger.info("Directory %s does not exist, nothing to list", location)
            return

        own_path = self._prefixer.strip(location)
        for entry in self._walk(folder.server_relative_url, deep):
            if entry.path != own_path:
                yield entry

    def _list_libraries(self, deep: bool) -> Iterator[StorageAttributes]:
        with self._remote("", "list"):
            libraries = self._client.get_libraries()
        for library in libraries:
            yield self._normalizer.normalize_library(library)
            if deep:
                yield from self._walk(library.root_folder_url, deep)

    def _walk(self, folder_url: str, deep: bool) -> Iterator[StorageAttributes]:
        location = self._normalizer.logical_path(folder_url)
        with self._remote(location, "folder"):
            files = sorted(self._client.list_files(folder_url), key=lambda f: f.name)
        for file in files:
            yield self._normalizer.normalize_file(file)

        with self._remote(location, "folder"):
            folders: list[FolderItem] = sorted(
                self._client.list_folders(folder_url), key=lambda f: f.name
            )
        for folder in folders:
            if folder.name in RESERVED_FOLDER_NAMES:
                continue
            yield self._normalizer.normalize_folder(folder)
            if deep:
                yield from self._walk(folder.server_relative_url, deep)

    # Moving and copying

    def move(self, source: str, destination: str) -> None:
        """Moves a file, overwriting anything at ``destination``."""
        source_location = self._prefixer.apply(source)
        destination_location = self._prefixer.apply(destination)
        if len(paths.split_path(destination_location)) < 2:
            raise ValueError(
                f"Files must be stored inside a document library, got {destination!r}."
            )

        file = self._resolver.resolve_file(source_location, fresh=True)
        library = self._resolver.resolve_list(
            destination_location, create_if_missing=True
        )
        folder = self._resolver.resolve_folder(
            destination_location, library, create_if_missing=True, is_file=True
        )
        destination_url = (
            f"{folder.server_relative_url}/{paths.basename(destination_location)}"
        )
        with self._remote(source_location):
            self._client.move_file(file.server_relative_url, destination_url, True)
        self._resolver.forget(source_location)
        self._resolver.forget(destination_location)
        logger.info("Moved %s to %s", file.server_relative_url, destination_url)

    rename = move

    def copy(self, source: str, destination: str) -> FileAttributes:
        """Copies a file by downloading it and uploading it to ``destination``."""
        return self.write(destination, self.read(source))

    # Metadata

    def get_metadata(self, path: str) -> FileAttributes:
        location = self._prefixer.apply(path)
        file = self._resolver.resolve_file(location)
        return self._normalizer.normalize_file(file)

    def file_size(self, path: str) -> FileAttributes:
        return self.get_metadata(path)

    def last_modified(self, path: str) -> FileAttributes:
        return self.get_metadata(path)

    def mime_type(self, path: str) -> FileAttributes:
        """SharePoint does not report mime types; the attribute is always empty."""
        return self.get_metadata(path)

    def visibility(self, path: str) -> str:
        raise UnsupportedOperation("SharePoint files have no visibility setting.")

    def set_visibility(self, path: str, visibility: str) -> None:
        raise UnsupportedOperation("SharePoint files have no visibility setting.")

    # SharePoint specific

    def get_url(self, path: str) -> str:
        """Returns a URL under which the file can be opened in SharePoint.

        The file's direct link is preferred. Without one, the absolute URL is
        fetched and re-encoded so non-ASCII characters are escaped properly.
        """
        location = self._prefixer.apply(path)
        file = self._resolver.resolve_file(location)
        if file.linking_url:
            return file.linking_url

        with self._remote(location):
            absolute_url = self._client.get_absolute_url(file.server_relative_url)
        return quote(unquote(absolute_url), safe=":/?&=#")

    def grant_user_access_to_path(self, login_name: str, path: str) -> None:
        """Grants ``login_name`` contributor rights on the library holding ``path``.

        The library stops inheriting permissions from the site first.
        """
        location = self._prefixer.apply(path)
        library = self._resolver.resolve_list(location)
        with self._remote(location, "list"):
            self._client.break_role_inheritance(library.title, True)
            principal_id = self._client.ensure_user(login_name)
            role_definition_id = self._client.get_role_definition_id(
                CONTRIBUTOR_ROLE_TYPE
            )
            self._client.add_role_assignment(
                library.title, principal_id, role_definition_id
            )
        logger.info("Granted %s contributor access to %s", login_name, library.title)

    @contextmanager
    def _remote(self, location: str, kind: str = "file") -> Iterator[None]:
        """Raise remote errors as :class:`NotFoundError` or :class:`RemoteFailure`."""
        try:
            yield
        except RemoteRequestError as exc:
            raise self._resolver.translate(exc, location, kind) from exc
