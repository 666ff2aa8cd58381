"""Byte-range relay for remote media objects.

Per request:
1. Validate inputs: object id, provider access token, Range header
2. Fetch {size, mimeType} from the object API
3. Parse a single ``bytes=<start>-[<end>]`` range; an open end is capped
   at start + chunk_bytes - 1 so one response never exceeds the chunk size
4. Reject unsatisfiable windows with 416 and ``Content-Range: bytes */<size>``
5. Open the upstream range request, then relay its bytes lazily

The upstream request is opened before any response headers are produced, so
an upstream failure at that point is still a clean 500. A failure after
headers are committed can only end the connection early; clients must treat
a short body as a failed read.
"""

import re
from collections.abc import AsyncIterator
from dataclasses import dataclass

import httpx

from petfeeder.errors import (
    ApiErrorCode,
    InvalidRequestError,
    RangeNotSatisfiableError,
)
from petfeeder.logging import get_logger
from petfeeder.services.drive import DriveClient
from petfeeder.services.redact import hash_text, safe_kv

logger = get_logger(__name__)

DEFAULT_CHUNK_BYTES = 512 * 1024

_RANGE_RE = re.compile(r"^bytes=(\d+)-(\d*)$")


@dataclass(frozen=True)
class RangeWindow:
    """Inclusive byte window. Always 0 <= start <= end <= total_size - 1."""

    start: int
    end: int
    total_size: int

    @property
    def content_length(self) -> int:
        return self.end - self.start + 1

    @property
    def content_range(self) -> str:
        return f"bytes {self.start}-{self.end}/{self.total_size}"


def parse_range_header(
    header: str, total_size: int, chunk_bytes: int = DEFAULT_CHUNK_BYTES
) -> RangeWindow:
    """Resolve a Range header against an object of total_size bytes.

    Only the single-range form is served. Suffix ranges (``bytes=-500``),
    multi-range requests and malformed headers are unsatisfiable, as are
    windows that start at or past the end of the object or whose explicit
    end is before start or past the last byte.

    Raises:
        RangeNotSatisfiableError: carrying total_size for the Content-Range header.
    """
    match = _RANGE_RE.match(header.strip())
    if match is None:
        raise RangeNotSatisfiableError("Unsupported Range header", total_size=total_size)

    start = int(match.group(1))
    if start >= total_size:
        raise RangeNotSatisfiableError(total_size=total_size)

    if match.group(2):
        end = int(match.group(2))
        if end < start or end >= total_size:
            raise RangeNotSatisfiableError(total_size=total_size)
    else:
        end = min(start + chunk_bytes - 1, total_size - 1)

    return RangeWindow(start=start, end=end, total_size=total_size)


@dataclass
class RelayedMedia:
    """An opened relay: response metadata plus the lazy body."""

    window: RangeWindow
    mime_type: str
    upstream: httpx.Response

    @property
    def headers(self) -> dict[str, str]:
        return {
            "Content-Range": self.window.content_range,
            "Accept-Ranges": "bytes",
            "Content-Length": str(self.window.content_length),
            "Content-Type": self.mime_type,
        }

    async def iter_bytes(self) -> AsyncIterator[bytes]:
        """Yield upstream chunks as they arrive, never more than content_length bytes.

        Finite and non-restartable. The upstream response is closed on exit,
        including when the client disconnects and the generator is closed.
        """
        remaining = self.window.content_length
        try:
            async for chunk in self.upstream.aiter_bytes():
                if len(chunk) > remaining:
                    chunk = chunk[:remaining]
                remaining -= len(chunk)
                if chunk:
                    yield chunk
                if remaining <= 0:
                    break
        except httpx.HTTPError as e:
            logger.warning(
                "media_relay_aborted",
                bytes_missing=remaining,
                error=str(e),
            )
            raise
        finally:
            await self.aclose()

        if remaining > 0:
            logger.warning("media_relay_short_read", bytes_missing=remaining)

    async def aclose(self) -> None:
        await self.upstream.aclose()


class MediaRangeRelay:
    """Serves one byte window of a remote object per call."""

    def __init__(self, drive: DriveClient, chunk_bytes: int = DEFAULT_CHUNK_BYTES):
        self._drive = drive
        self.chunk_bytes = chunk_bytes

    async def open(
        self, file_id: str, access_token: str | None, range_header: str | None
    ) -> RelayedMedia:
        """Validate, resolve the window, and open the upstream byte stream.

        Raises:
            InvalidRequestError: Missing object id or access token (400).
            RangeNotSatisfiableError: Missing Range header (416, no size known)
                or unsatisfiable window (416 with ``bytes */<size>``).
            UpstreamError: Metadata or media request failed (500).
        """
        if not file_id:
            raise InvalidRequestError(message="Object id must be provided")
        if not access_token:
            raise InvalidRequestError(ApiErrorCode.E_MISSING_ACCESS_TOKEN, "Missing access token")
        if not range_header:
            raise RangeNotSatisfiableError(
                "Requires Range header", code=ApiErrorCode.E_RANGE_REQUIRED
            )

        metadata = await self._drive.get_metadata(file_id, access_token)
        window = parse_range_header(range_header, metadata.size, self.chunk_bytes)

        upstream = await self._drive.open_range(
            file_id, access_token, window.start, window.end, window.total_size
        )
        logger.info(
            "media_relay_opened",
            **safe_kv(
                file_id=file_id,
                access_token_sha256=hash_text(access_token),
                start=window.start,
                end=window.end,
                total_size=window.total_size,
            ),
        )
        return RelayedMedia(window=window, mime_type=metadata.mime_type, upstream=upstream)
