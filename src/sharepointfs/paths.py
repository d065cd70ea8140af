"""Pure helpers translating logical paths into SharePoint addressing parts.

A logical path looks like ``"library/folder/sub/file.ext"``: the first
segment names a list (document library), the last segment is either a
file name or a folder, and everything in between is the folder chain.
None of the functions in this module perform I/O or raise.
"""

from __future__ import annotations


def split_path(path: str) -> list[str]:
    """Split a logical path into its non-empty segments.

    Empty segments and ``"."`` segments are dropped, so ``"/a//b/./c"``
    becomes ``["a", "b", "c"]`` and ``"."`` becomes ``[]``.
    """
    return [segment for segment in path.split("/") if segment and segment != "."]


def normalize_path(path: str) -> str:
    """Return the canonical form of a logical path (no leading/trailing slash)."""
    return "/".join(split_path(path))


def escape_odata_literal(value: str) -> str:
    """Double single quotes so ``value`` can be embedded in an OData filter."""
    return value.replace("'", "''")


def is_folder_segment(segment: str) -> bool:
    """Guess whether a path segment names a folder.

    SharePoint paths carry no type information, so a segment without a dot
    is treated as a folder. Callers that know whether they address a file
    should pass an explicit hint to :func:`folder_path_for_path` instead.
    """
    return "." not in segment


def list_title_for_path(path: str) -> str:
    """Return the list title, i.e. the first segment of the path."""
    segments = split_path(path)
    return segments[0] if segments else ""


def basename(path: str) -> str:
    """Return the last segment of the path, unescaped."""
    segments = split_path(path)
    return segments[-1] if segments else ""


def filename_for_path(path: str) -> str:
    """Return the last segment of the path, escaped for OData filters."""
    return escape_odata_literal(basename(path))


def folder_path_for_path(path: str, is_file: bool | None = None) -> str:
    """Return the folder chain between the list title and the final segment.

    Args:
        path: The logical path.
        is_file: Whether the final segment names a file. ``None`` falls back
            to :func:`is_folder_segment`.

    Returns:
        The folder segments joined with ``/``; empty for the list root.
    """
    segments = split_path(path)[1:]
    if not segments:
        return ""

    if is_file is None:
        is_file = not is_folder_segment(segments[-1])

    if is_file:
        segments = segments[:-1]
    return "/".join(segments)


def parent_path(path: str) -> str:
    """Return the logical path of the containing directory."""
    return "/".join(split_path(path)[:-1])


class PathPrefixer:
    """Applies and strips a root prefix shared by every path of an adapter.

    A non-empty prefix is stored with exactly one trailing slash. Both
    directions normalize their input, so ``apply(strip(p))`` is the
    normalized form of ``p``.
    """

    def __init__(self, prefix: str | None = None) -> None:
        normalized = normalize_path(prefix or "")
        self.prefix = f"{normalized}/" if normalized else ""

    def apply(self, path: str) -> str:
        relative = normalize_path(path)
        if not self.prefix:
            return relative
        if not relative:
            return self.prefix[:-1]
        return f"{self.prefix}{relative}"

    def strip(self, path: str) -> str:
        path = normalize_path(path)
        if not self.prefix:
            return path
        if path == self.prefix[:-1]:
            return ""
        if path.startswith(self.prefix):
            return path[len(self.prefix) :]
        return path
