"""Request key construction and multipart file extraction.

A GET request is identified by ``path?query``. A POST request also carries
the content of its multipart ``file`` field: ``path?query content``.
"""

import logging
from typing import Optional

from werkzeug.datastructures import FileStorage
from werkzeug.wrappers import Request

from ..core.errors import MultipartFileError

logger = logging.getLogger(__name__)

FILE_FIELD = "file"
MULTIPART_MIMETYPE = "multipart/form-data"


def raw_query(request: Request) -> str:
    """Return the query string exactly as it was sent, as text.

    The development server reads the request line as latin-1, so raw UTF-8
    bytes arrive as latin-1 characters. Those are turned back into the text
    the client sent; anything that is not such a sequence is kept as is.
    """
    query = request.query_string.decode("utf-8", errors="replace")
    try:
        return query.encode("latin-1").decode("utf-8")
    except UnicodeError:
        return query


def get_request_key(path: str, query: str) -> str:
    """Build the lookup key for a GET request.

    Args:
        path: Decoded URL path.
        query: Raw query string, without the leading ``?``.

    Returns:
        ``path?query``. The ``?`` is present even when the query is empty.
    """
    return f"{path}?{query}"


def post_request_key(path: str, query: str, content: str) -> str:
    """Build the lookup key for a POST request.

    Args:
        path: Decoded URL path.
        query: Raw query string, without the leading ``?``.
        content: Text of the uploaded ``file`` field.

    Returns:
        ``path?query content``.
    """
    return f"{get_request_key(path, query)} {content}"


def decode_content(content: bytes) -> str:
    """Decode uploaded file bytes for use in a key."""
    return content.decode("utf-8", errors="replace")


def extract_file(request: Request, field_name: str = FILE_FIELD) -> tuple[Optional[str], bytes]:
    """Read a multipart file field from a request.

    Args:
        request: Inbound request.
        field_name: Multipart field holding the file.

    Returns:
        Tuple of (client file name, full file content).

    Raises:
        MultipartFileError: If the body is not multipart or has no such file.
    """
    if request.mimetype != MULTIPART_MIMETYPE:
        raise MultipartFileError(
            f"request Content-Type isn't {MULTIPART_MIMETYPE}",
            field_name=field_name,
        )

    storage: Optional[FileStorage] = request.files.get(field_name)
    if storage is None:
        raise MultipartFileError(
            f"no such file: multipart field '{field_name}' is missing",
            field_name=field_name,
        )

    content = storage.read()
    logger.debug(f"Read {len(content)} bytes from multipart field '{field_name}'")
    return storage.filename, content
