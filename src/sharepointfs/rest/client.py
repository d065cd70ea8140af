from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Iterator

from office365.runtime.client_request_exception import ClientRequestException
from office365.sharepoint.client_context import ClientContext
from office365.sharepoint.lists.creation_information import ListCreationInformation

from sharepointfs.errors import NOT_FOUND_ERROR_CODES, RemoteRequestError
from sharepointfs.interfaces import CONTRIBUTOR_ROLE_TYPE, DOCUMENT_LIBRARY_TEMPLATE
from sharepointfs.models import FileItem, FolderItem, LibraryItem
from sharepointfs.rest.context import build_client_context

if TYPE_CHECKING:
    from azure.core.credentials import TokenCredential
    from office365.sharepoint.files.collection import FileCollection
    from office365.sharepoint.files.file import File
    from office365.sharepoint.folders.collection import FolderCollection
    from office365.sharepoint.folders.folder import Folder
    from office365.sharepoint.lists.collection import ListCollection
    from office365.sharepoint.lists.list import List

logger = logging.getLogger(__name__)


@contextmanager
def _remote_call(description: str) -> Iterator[None]:
    """Translate office365 request exceptions into :class:`RemoteRequestError`."""
    try:
        yield
    except ClientRequestException as exc:
        response = getattr(exc, "response", None)
        status_code = getattr(response, "status_code", None)
        code = getattr(exc, "code", None)
        message = getattr(exc, "message", None) or str(exc)
        logger.debug("Request failed while %s: %s (%s)", description, message, code)
        raise RemoteRequestError(
            f"{description}: {message}", code=code, status_code=status_code
        ) from exc


class RestRemoteClient:
    """SharePoint REST implementation of :class:`~sharepointfs.interfaces.RemoteClient`."""

    def __init__(
        self,
        site_url: str,
        credential: "TokenCredential | None" = None,
        *,
        context: ClientContext | None = None,
    ):
        """Initialize the REST client.

        Args:
            site_url: The absolute URL of the SharePoint site.
            credential: Credential used to obtain SharePoint access tokens.
            context: A ready ClientContext; takes precedence over ``credential``.
        """
        self._site_url = site_url
        if context is None:
            if credential is None:
                raise ValueError("Either a credential or a context is required.")
            context = build_client_context(site_url=site_url, credential=credential)
        self.context: ClientContext = context

    @staticmethod
    def _map_list_properties(sp_list: "List") -> LibraryItem:
        props = sp_list.properties
        return LibraryItem(
            title=props.get("Title"),
            parent_web_url=props.get("ParentWebUrl", ""),
            id=props.get("Id"),
            extra=props,
        )

    @staticmethod
    def _map_file_properties(sp_file: "File") -> FileItem:
        props = sp_file.properties
        length = props.get("Length")
        return FileItem(
            name=props.get("Name"),
            server_relative_url=props.get("ServerRelativeUrl"),
            length=int(length) if length is not None else None,
            time_created=props.get("TimeCreated"),
            time_last_modified=props.get("TimeLastModified"),
            linking_url=props.get("LinkingUrl") or None,
            extra=props,
        )

    @staticmethod
    def _map_folder_properties(sp_folder: "Folder") -> FolderItem:
        props = sp_folder.properties
        return FolderItem(
            name=props.get("Name"),
            server_relative_url=props.get("ServerRelativeUrl"),
            time_created=props.get("TimeCreated"),
            time_last_modified=props.get("TimeLastModified"),
            item_count=props.get("ItemCount"),
            extra=props,
        )

    def get_libraries(self) -> list[LibraryItem]:
        lists: "ListCollection" = self.context.web.lists.filter(
            f"BaseTemplate eq {DOCUMENT_LIBRARY_TEMPLATE} and Hidden eq false"
        )
        with _remote_call("listing document libraries"):
            self.context.load(lists)
            self.context.execute_query_with_incremental_retry()
        return [self._map_list_properties(sp_list) for sp_list in lists]

    def get_lists_by_title(self, escaped_title: str) -> list[LibraryItem]:
        lists: "ListCollection" = self.context.web.lists.filter(
            f"Title eq '{escaped_title}'"
        ).top(1)
        with _remote_call(f"looking up list {escaped_title}"):
            self.context.load(lists)
            self.context.execute_query_with_incremental_retry()
        return [self._map_list_properties(sp_list) for sp_list in lists]

    def create_list(
        self, title: str, template: int = DOCUMENT_LIBRARY_TEMPLATE
    ) -> LibraryItem:
        info = ListCreationInformation(title, None, template)
        with _remote_call(f"creating list {title}"):
            sp_list: "List" = self.context.web.lists.add(info)
            self.context.execute_query()
        logger.info("Created list %s", title)
        return self._map_list_properties(sp_list)

    def break_role_inheritance(
        self, title: str, copy_role_assignments: bool = True
    ) -> None:
        sp_list: "List" = self.context.web.lists.get_by_title(title)
        with _remote_call(f"breaking role inheritance of {title}"):
            sp_list.break_role_inheritance(copy_role_assignments)
            self.context.execute_query()

    def recycle_list(self, title: str) -> None:
        sp_list: "List" = self.context.web.lists.get_by_title(title)
        with _remote_call(f"recycling list {title}"):
            sp_list.recycle()
            self.context.execute_query()

    def get_folder(self, folder_url: str) -> FolderItem:
        folder: "Folder" = self.context.web.get_folder_by_server_relative_path(
            folder_url
        )
        with _remote_call(f"fetching folder {folder_url}"):
            folder.get().execute_query_with_incremental_retry()

        # Some farms answer missing folders with Exists=false instead of a 404
        if folder.properties.get("Exists") is False:
            raise RemoteRequestError(
                f"fetching folder {folder_url}: folder does not exist",
                code=NOT_FOUND_ERROR_CODES[0],
                status_code=404,
            )
        return self._map_folder_properties(folder)

    def create_folder(self, parent_url: str, name: str) -> FolderItem:
        parent: "Folder" = self.context.web.get_folder_by_server_relative_path(
            parent_url
        )
        with _remote_call(f"creating folder {name} in {parent_url}"):
            folder: "Folder" = parent.folders.add(name)
            self.context.execute_query()
        return self._map_folder_properties(folder)

    def list_files(self, folder_url: str) -> list[FileItem]:
        folder: "Folder" = self.context.web.get_folder_by_server_relative_path(
            folder_url
        )
        files: "FileCollection" = folder.files
        with _remote_call(f"listing files of {folder_url}"):
            self.context.load(files)
            self.context.execute_query_with_incremental_retry()
        return [self._map_file_properties(sp_file) for sp_file in files]

    def list_folders(self, folder_url: str) -> list[FolderItem]:
        folder: "Folder" = self.context.web.get_folder_by_server_relative_path(
            folder_url
        )
        folders: "FolderCollection" = folder.folders
        with _remote_call(f"listing folders of {folder_url}"):
            self.context.load(folders)
            self.context.execute_query_with_incremental_retry()
        return [self._map_folder_properties(sp_folder) for sp_folder in folders]

    def find_files(self, folder_url: str, escaped_name: str) -> list[FileItem]:
        folder: "Folder" = self.context.web.get_folder_by_server_relative_path(
            folder_url
        )
        files: "FileCollection" = folder.files.filter(
            f"Name eq '{escaped_name}'"
        ).top(1)
        with _remote_call(f"searching {escaped_name} in {folder_url}"):
            self.context.load(files)
            self.context.execute_query_with_incremental_retry()
        return [self._map_file_properties(sp_file) for sp_file in files]

    def get_file(self, file_url: str) -> FileItem:
        file: "File" = self.context.web.get_file_by_server_relative_path(file_url)
        with _remote_call(f"fetching file {file_url}"):
            file.get().execute_query_with_incremental_retry()
        return self._map_file_properties(file)

    def upload_file(self, folder_url: str, name: str, content: bytes) -> FileItem:
        """Uploads content in a single request; no chunked upload session is used."""
        folder: "Folder" = self.context.web.get_folder_by_server_relative_path(
            folder_url
        )
        with _remote_call(f"uploading {name} to {folder_url}"):
            file: "File" = folder.upload_file(name, content)
            self.context.execute_query()
            file.get().execute_query()
        logger.info("Uploaded %s to %s", name, folder_url)
        return self._map_file_properties(file)

    def download_file(self, file_url: str) -> bytes:
        file: "File" = self.context.web.get_file_by_server_relative_path(file_url)
        with _remote_call(f"downloading {file_url}"):
            result = file.get_content().execute_query_with_incremental_retry()
        return result.value

    def recycle_file(self, file_url: str) -> None:
        file: "File" = self.context.web.get_file_by_server_relative_path(file_url)
        with _remote_call(f"recycling file {file_url}"):
            file.recycle()
            self.context.execute_query()

    def recycle_folder(self, folder_url: str) -> None:
        folder: "Folder" = self.context.web.get_folder_by_server_relative_path(
            folder_url
        )
        with _remote_call(f"recycling folder {folder_url}"):
            folder.recycle()
            self.context.execute_query()

    def move_file(
        self, source_url: str, destination_url: str, overwrite: bool = True
    ) -> None:
        """Moves a file, renaming it when the destination name differs.

        MoveTo only takes the destination folder, so a differing file name is
        applied with a rename once the file has arrived.
        """
        source_name = source_url.rsplit("/", 1)[-1]
        destination_folder, destination_name = destination_url.rsplit("/", 1)

        file: "File" = self.context.web.get_file_by_server_relative_path(source_url)
        with _remote_call(f"moving {source_url} to {destination_url}"):
            file.moveto(destination_folder, int(overwrite))
            self.context.execute_query()

        if destination_name != source_name:
            moved: "File" = self.context.web.get_file_by_server_relative_path(
                f"{destination_folder}/{source_name}"
            )
            with _remote_call(f"renaming {source_name} to {destination_name}"):
                moved.rename(destination_name)
                self.context.execute_query()

    def get_absolute_url(self, file_url: str) -> str:
        file: "File" = self.context.web.get_file_by_server_relative_path(file_url)
        item = file.listItemAllFields.select(["EncodedAbsUrl"])
        with _remote_call(f"fetching absolute url of {file_url}"):
            item.get().execute_query()
        return item.properties.get("EncodedAbsUrl", "")

    def ensure_user(self, login_name: str) -> int:
        with _remote_call(f"ensuring user {login_name}"):
            user = self.context.web.ensure_user(login_name).execute_query()
        return user.properties.get("Id")

    def get_role_definition_id(self, role_type: int = CONTRIBUTOR_ROLE_TYPE) -> int:
        definitions = self.context.web.role_definitions.filter(
            f"RoleTypeKind eq {role_type}"
        ).top(1)
        with _remote_call(f"looking up role definition {role_type}"):
            self.context.load(definitions)
            self.context.execute_query()
        for definition in definitions:
            return definition.properties.get("Id")
        raise RemoteRequestError(
            f"No role definition with type {role_type}",
            code=NOT_FOUND_ERROR_CODES[0],
            status_code=404,
        )

    def add_role_assignment(
        self, title: str, principal_id: int, role_definition_id: int
    ) -> None:
        sp_list: "List" = self.context.web.lists.get_by_title(title)
        with _remote_call(f"assigning role on {title}"):
            sp_list.role_assignments.add_role_assignment(
                principal_id, role_definition_id
            )
            self.context.execute_query()
        logger.info(
            "Granted role %s on %s to principal %s",
            role_definition_id,
            title,
            principal_id,
        )
