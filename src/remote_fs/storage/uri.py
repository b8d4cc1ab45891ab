"""
URI parsing utilities for backend selection.

Provides consistent parsing and validation of ``scheme://root/path`` locators
across backends (file, s3).
"""
from __future__ import annotations

import posixpath
from dataclasses import dataclass
from urllib.parse import urlsplit

__all__ = ["ParsedURI", "parse_fs_uri", "get_root", "build_url", "clean_key"]


@dataclass(frozen=True)
class ParsedURI:
    """
    Parsed components of a storage URI.

    Attributes:
        scheme: Backend scheme (file, s3, ...)
        root: Host part; the bucket for s3, usually empty for file
        path: Path part, including its leading "/" when present
        original: Original URI string for error messages
    """
    scheme: str
    root: str
    path: str
    original: str


def parse_fs_uri(uri: str) -> ParsedURI:
    """
    Parse and validate a storage URI.

    Accepts URIs in the form: scheme://root/path

    Validation:
    - Rejects empty URIs and URIs without a scheme
    - Rejects URIs containing ".." path components (path traversal)
    - Rejects URIs with backslashes (non-POSIX paths)

    Args:
        uri: Storage URI to parse

    Returns:
        ParsedURI with validated components

    Raises:
        ValueError: If URI format is invalid or contains unsafe patterns

    Examples:
        >>> parse_fs_uri("s3://my-bucket/my/file/path")
        ParsedURI(scheme='s3', root='my-bucket', path='/my/file/path', original='...')

        >>> parse_fs_uri("file:///tmp/my/file/path")
        ParsedURI(scheme='file', root='', path='/tmp/my/file/path', original='...')
    """
    if not uri:
        raise ValueError("URI cannot be empty")

    if "\\" in uri:
        raise ValueError(f"URI contains backslashes (use forward slashes): {uri}")

    parts = urlsplit(uri)
    if not parts.scheme or "://" not in uri:
        raise ValueError(f"Invalid URI format, expected scheme://root/path: {uri}")

    if ".." in parts.path.split("/"):
        raise ValueError(f"URI contains path traversal: {uri}")

    return ParsedURI(
        scheme=parts.scheme.lower(),
        root=parts.netloc,
        path=parts.path,
        original=uri,
    )


def get_root(path: str) -> str:
    """
    Return the first component of ``path``, keeping a leading "/".

    Examples:
        >>> get_root("/tmp/data/file.csv")
        '/tmp'
        >>> get_root("bucket/key")
        'bucket'
    """
    path = posixpath.normpath(path)
    i = path.find("/")
    if i == -1:
        return path
    if i == 0:
        j = path.find("/", 1)
        if j == -1:
            return path
        i = j
    return path[:i]


def clean_key(path: str) -> str:
    """Strip the leading "/" so a URI path can be used as an object key."""
    return path[1:] if path.startswith("/") else path


def build_url(scheme: str, root: str, path: str) -> str:
    """Build the locator string for a stream, e.g. s3://bucket/key."""
    if root:
        return f"{scheme}://{root}/{clean_key(path)}"
    return f"{scheme}://{path}"
