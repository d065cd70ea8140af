from __future__ import annotations

import io

import pytest
from fakes import CONTRIBUTOR_ROLE_ID, WEB_URL, InMemoryRemoteClient

from sharepointfs.adapter import SharePointAdapter
from sharepointfs.errors import (
    NotFoundError,
    RemoteFailure,
    RemoteRequestError,
    UnsupportedOperation,
)

ACCESS_DENIED = RemoteRequestError("Access denied", code="-2147024891", status_code=403)


def test_write_then_read__round_trip(adapter: SharePointAdapter) -> None:
    attrs = adapter.write("a/b.txt", "hello")

    assert attrs.path == "a/b.txt"
    assert attrs.file_size == 5
    assert adapter.file_exists("a/b.txt") is True
    assert adapter.read("a/b.txt") == b"hello"

    listing = list(adapter.list_contents("a", False))
    assert [entry.path for entry in listing] == ["a/b.txt"]
    assert listing[0].is_file()


def test_write__creates_library_with_broken_inheritance(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("a/b.txt", b"hello")

    assert "apitest2" in remote.libraries
    assert remote.broken_inheritance == [("apitest2", True)]
    assert f"{WEB_URL}/apitest2/a/b.txt" in remote.files


def test_write__rejects_file_at_library_level(root_adapter: SharePointAdapter) -> None:
    with pytest.raises(ValueError):
        root_adapter.write("b.txt", b"hello")


def test_write_stream__buffers_content(adapter: SharePointAdapter) -> None:
    adapter.write_stream("stream.txt", io.BytesIO(b"testing"))

    assert adapter.read_stream("stream.txt").read() == b"testing"


def test_read__missing_file_raises(adapter: SharePointAdapter) -> None:
    with pytest.raises(NotFoundError):
        adapter.read("missing.txt")


def test_delete__file_no_longer_exists(adapter: SharePointAdapter) -> None:
    adapter.write("testDelete.txt", "testing")
    assert adapter.file_exists("testDelete.txt")

    adapter.delete("testDelete.txt")

    assert adapter.file_exists("testDelete.txt") is False


def test_delete__missing_file_is_noop(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("keep.txt", "x")

    adapter.delete("missing.txt")
    adapter.delete("nodir/missing.txt")

    assert "recycle_file" not in remote.calls


def test_delete__directory_path_recycles_folder(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.create_directory("delete-dir")
    assert adapter.directory_exists("delete-dir")

    adapter.delete("delete-dir")

    assert adapter.directory_exists("delete-dir") is False
    assert "recycle_folder" in remote.calls


def test_delete_directory__library_and_missing(
    root_adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    root_adapter.write("lib/dir/a.txt", "x")

    root_adapter.delete_directory("lib/dir")
    assert root_adapter.directory_exists("lib/dir") is False
    assert root_adapter.file_exists("lib/dir/a.txt") is False

    root_adapter.delete_directory("lib")
    assert "lib" not in remote.libraries

    # already gone
    root_adapter.delete_directory("lib")


def test_delete_directory__root_is_unsupported(root_adapter: SharePointAdapter) -> None:
    with pytest.raises(UnsupportedOperation):
        root_adapter.delete_directory("")


def test_create_directory__single_segment_creates_isolated_library(
    root_adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    attrs = root_adapter.create_directory("empty-dir")

    assert attrs.path == "empty-dir"
    assert attrs.is_dir()
    assert remote.libraries["empty-dir"].extra["BaseTemplate"] == 101
    assert ("empty-dir", True) in remote.broken_inheritance


def test_create_directory__listed_without_children(adapter: SharePointAdapter) -> None:
    adapter.create_directory("empty-dir")

    listing = list(adapter.list_contents(".", True))

    assert [(e.path, e.type) for e in listing] == [("empty-dir", "dir")]


def test_create_directory__nested(adapter: SharePointAdapter) -> None:
    attrs = adapter.create_directory("x/y/z")

    assert attrs.path == "x/y/z"
    assert adapter.directory_exists("x/y")
    assert adapter.directory_exists("x/y/z")


def test_list_contents__two_files_sorted(adapter: SharePointAdapter) -> None:
    adapter.write("dir/file2.txt", "2")
    adapter.write("dir/file1.txt", "1")

    listing = list(adapter.list_contents("dir", False))

    assert [e.path for e in listing] == ["dir/file1.txt", "dir/file2.txt"]
    assert all(e.is_file() for e in listing)


def test_list_contents__files_then_directories(adapter: SharePointAdapter) -> None:
    adapter.write("file.txt", "x")
    adapter.write("test-list-contents-contains-directory/in-folder.txt", "x")

    shallow = [e.path for e in adapter.list_contents("")]
    deep = [e.path for e in adapter.list_contents("", deep=True)]

    assert shallow == ["file.txt", "test-list-contents-contains-directory"]
    assert deep == [
        "file.txt",
        "test-list-contents-contains-directory",
        "test-list-contents-contains-directory/in-folder.txt",
    ]


def test_list_contents__never_includes_queried_directory_or_forms(
    adapter: SharePointAdapter,
) -> None:
    adapter.write("dir/sub/a.txt", "x")

    for path in ("", "dir", "dir/sub"):
        entries = [e.path for e in adapter.list_contents(path, deep=True)]
        assert path not in entries
        assert not any(p.endswith("Forms") for p in entries)


def test_list_contents__missing_directory_is_empty(adapter: SharePointAdapter) -> None:
    assert list(adapter.list_contents("nope")) == []
    assert list(adapter.list_contents("nope/deeper", deep=True)) == []


def test_list_contents__site_root_lists_libraries(root_adapter: SharePointAdapter) -> None:
    root_adapter.write("alpha/a.txt", "x")
    root_adapter.create_directory("beta")

    assert [e.path for e in root_adapter.list_contents("")] == ["alpha", "beta"]
    assert "alpha/a.txt" in [e.path for e in root_adapter.list_contents("", deep=True)]


def test_list_contents__is_lazy(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("dir/a.txt", "x")
    remote.calls.clear()

    entries = adapter.list_contents("dir")
    assert remote.calls == []

    next(entries)
    assert "list_files" in remote.calls


def test_exists__never_raise_on_remote_failure(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("a.txt", "x")
    remote.fail_with = RemoteRequestError("Unauthorized", status_code=401)

    assert adapter.file_exists("a.txt") is False
    assert adapter.directory_exists("dir") is False
    assert adapter.has("a.txt") is False


def test_file_exists__ignores_cache(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("a.txt", "x")
    remote.recycle_file(f"{WEB_URL}/apitest2/a.txt")

    assert adapter.file_exists("a.txt") is False


def test_directory_exists(
    adapter: SharePointAdapter, root_adapter: SharePointAdapter
) -> None:
    assert root_adapter.directory_exists("") is True
    # the prefix library has not been created yet
    assert adapter.directory_exists("") is False
    assert adapter.directory_exists("dir") is False

    adapter.write("dir/a.txt", "x")
    assert adapter.directory_exists("dir") is True
    assert adapter.has("dir") is True


def test_remote_failure_propagates_from_operations(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    remote.fail_with = RemoteRequestError("Unauthorized", status_code=401)

    with pytest.raises(RemoteFailure):
        adapter.read("a.txt")
    with pytest.raises(RemoteFailure):
        list(adapter.list_contents("dir"))


def test_move__renames_and_creates_destination(adapter: SharePointAdapter) -> None:
    adapter.write("source.txt", "moved")

    adapter.move("source.txt", "target/renamed.txt")

    assert adapter.file_exists("source.txt") is False
    assert adapter.read("target/renamed.txt") == b"moved"


def test_move__overwrites_destination(adapter: SharePointAdapter) -> None:
    adapter.write("a.txt", "new")
    adapter.write("b.txt", "old")

    adapter.rename("a.txt", "b.txt")

    assert adapter.read("b.txt") == b"new"


def test_copy__keeps_source(adapter: SharePointAdapter) -> None:
    adapter.write("a.txt", "copied")

    attrs = adapter.copy("a.txt", "copies/a.txt")

    assert attrs.path == "copies/a.txt"
    assert adapter.read("a.txt") == b"copied"
    assert adapter.read("copies/a.txt") == b"copied"


def test_metadata(adapter: SharePointAdapter) -> None:
    adapter.write("testMetadata.txt", "testing metadata functionality")

    metadata = adapter.get_metadata("testMetadata.txt")

    assert metadata.path == "testMetadata.txt"
    assert adapter.file_size("testMetadata.txt").file_size == 30
    assert isinstance(adapter.last_modified("testMetadata.txt").last_modified, int)
    assert adapter.mime_type("testMetadata.txt").mime_type == ""


def test_visibility_is_unsupported(adapter: SharePointAdapter) -> None:
    with pytest.raises(UnsupportedOperation):
        adapter.visibility("a.txt")
    with pytest.raises(UnsupportedOperation):
        adapter.set_visibility("a.txt", "public")


def test_get_url__contains_file_name(adapter: SharePointAdapter) -> None:
    adapter.write("testGetUrl.txt", "x")

    url = adapter.get_url("testGetUrl.txt")

    assert url
    assert "testGetUrl.txt" in url


def test_get_url__reencodes_non_ascii(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient, monkeypatch: pytest.MonkeyPatch
) -> None:
    adapter.write("résumé.txt", "x")
    monkeypatch.setattr(
        remote,
        "get_absolute_url",
        lambda url: "https://contoso.sharepoint.com/sites/Test/apitest2/résumé.txt",
    )

    url = adapter.get_url("résumé.txt")

    assert url == (
        "https://contoso.sharepoint.com/sites/Test/apitest2/r%C3%A9sum%C3%A9.txt"
    )


def test_get_url__prefers_direct_link(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("linked.txt", "x")
    remote.files[f"{WEB_URL}/apitest2/linked.txt"][0].linking_url = "https://link/linked.txt"

    assert adapter.get_url("linked.txt") == "https://link/linked.txt"
    assert "get_absolute_url" not in remote.calls


def test_grant_user_access_to_path(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("shared.txt", "x")
    remote.broken_inheritance.clear()

    adapter.grant_user_access_to_path("user@contoso.com", "shared.txt")

    assert remote.broken_inheritance == [("apitest2", True)]
    principal_id = remote.users["user@contoso.com"]
    assert remote.role_assignments == [("apitest2", principal_id, CONTRIBUTOR_ROLE_ID)]


def test_grant_user_access_to_missing_library(root_adapter: SharePointAdapter) -> None:
    with pytest.raises(NotFoundError):
        root_adapter.grant_user_access_to_path("user@contoso.com", "nolib/a.txt")


@pytest.mark.parametrize(
    "method, operation",
    [
        ("upload_file", lambda a: a.write("a.txt", "again")),
        ("download_file", lambda a: a.read("a.txt")),
        ("recycle_file", lambda a: a.delete("a.txt")),
        ("move_file", lambda a: a.move("a.txt", "b.txt")),
        ("get_absolute_url", lambda a: a.get_url("a.txt")),
        ("add_role_assignment", lambda a: a.grant_user_access_to_path("u", "a.txt")),
    ],
)
def test_remote_errors_after_resolution_are_failures(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient, method, operation
) -> None:
    adapter.write("a.txt", "x")
    remote.failures[method] = ACCESS_DENIED

    with pytest.raises(RemoteFailure) as excinfo:
        operation(adapter)
    assert excinfo.value.status_code == 403
    assert excinfo.value.__cause__ is ACCESS_DENIED


def test_list_contents__listing_failure_is_remote_failure(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("dir/a.txt", "x")
    remote.failures["list_folders"] = ACCESS_DENIED

    with pytest.raises(RemoteFailure):
        list(adapter.list_contents("dir"))


def test_read__file_removed_after_caching(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("a.txt", "x")
    remote.files.pop(f"{WEB_URL}/apitest2/a.txt")

    with pytest.raises(NotFoundError):
        adapter.read("a.txt")
    # the stale entry is dropped, so the next lookup asks the remote again
    remote.calls.clear()
    with pytest.raises(NotFoundError):
        adapter.read("a.txt")
    assert "find_files" in remote.calls


def test_delete__file_gone_before_recycle_is_noop(
    adapter: SharePointAdapter, remote: InMemoryRemoteClient
) -> None:
    adapter.write("a.txt", "x")
    remote.failures["recycle_file"] = InMemoryRemoteClient._missing("a.txt")

    adapter.delete("a.txt")

    assert remote.calls.count("recycle_file") == 1


@pytest.mark.parametrize(
    "path, method", [("lib", "recycle_list"), ("lib/dir", "recycle_folder")]
)
def test_delete_directory__gone_before_recycle_is_noop(
    root_adapter: SharePointAdapter, remote: InMemoryRemoteClient, path, method
) -> None:
    root_adapter.write("lib/dir/a.txt", "x")
    remote.failures[method] = InMemoryRemoteClient._missing(path)

    root_adapter.delete_directory(path)

    assert method in remote.calls
