"""Tests for range parsing, the Drive client and MediaRangeRelay.

Note: These tests are pure unit tests that do NOT require the app.
They use respx to mock the object API.
"""

import httpx
import pytest
import respx

from petfeeder.errors import (
    ApiErrorCode,
    InvalidRequestError,
    RangeNotSatisfiableError,
    UpstreamError,
)
from petfeeder.services.drive import DriveClient, FolderNotFoundError
from petfeeder.services.media_relay import (
    DEFAULT_CHUNK_BYTES,
    MediaRangeRelay,
    RangeWindow,
    RelayedMedia,
    parse_range_header,
)
from tests.helpers import DRIVE_BASE_URL

FILE_URL = f"{DRIVE_BASE_URL}/files/video-1"


@pytest.fixture
def httpx_client():
    """Create an httpx AsyncClient for testing."""
    return httpx.AsyncClient()


@pytest.fixture
def drive(httpx_client) -> DriveClient:
    return DriveClient(httpx_client, DRIVE_BASE_URL)


def mock_metadata(router, size="2000000", mime_type="video/mp4", status=200):
    body = {}
    if size is not None:
        body["size"] = size
    if mime_type is not None:
        body["mimeType"] = mime_type
    return router.get(FILE_URL, params={"fields": "size,mimeType"}).mock(
        return_value=httpx.Response(status, json=body)
    )


def mock_media(router, content: bytes, status=206):
    return router.get(FILE_URL, params={"alt": "media"}).mock(
        return_value=httpx.Response(status, content=content)
    )


async def collect(media) -> bytes:
    return b"".join([chunk async for chunk in media.iter_bytes()])


class InterruptedStream(httpx.AsyncByteStream):
    """Yields the given chunks, then fails like a dropped upstream connection."""

    def __init__(self, chunks: list[bytes], fail: bool = True):
        self.chunks = chunks
        self.fail = fail
        self.closed = False

    async def __aiter__(self):
        for chunk in self.chunks:
            yield chunk
        if self.fail:
            raise httpx.ReadError("connection reset")

    async def aclose(self) -> None:
        self.closed = True


def relayed(stream: InterruptedStream) -> RelayedMedia:
    return RelayedMedia(
        window=RangeWindow(start=0, end=9, total_size=10),
        mime_type="video/mp4",
        upstream=httpx.Response(206, stream=stream),
    )


class TestParseRangeHeader:
    def test_open_ended_range_uses_chunk_size(self):
        window = parse_range_header("bytes=100-", 2_000_000, 524_288)

        assert window == RangeWindow(start=100, end=524_387, total_size=2_000_000)

    def test_open_ended_range_clamped_to_last_byte(self):
        window = parse_range_header("bytes=1999000-", 2_000_000, 524_288)

        assert window.end == 1_999_999
        assert window.content_length == 1000

    def test_explicit_end(self):
        window = parse_range_header("bytes=0-1023", 2_000_000)

        assert window.content_length == 1024
        assert window.content_range == "bytes 0-1023/2000000"

    @pytest.mark.parametrize(
        "start,end,size",
        [(0, 0, 1), (0, 9, 10), (5, 5, 10), (3, 7, 10), (123, 4567, 10_000)],
    )
    def test_headers_reproduce_window(self, start, end, size):
        window = parse_range_header(f"bytes={start}-{end}", size)

        assert window.content_length == end - start + 1
        assert window.content_range == f"bytes {start}-{end}/{size}"

    def test_default_chunk_constant(self):
        assert DEFAULT_CHUNK_BYTES == 512 * 1024

    @pytest.mark.parametrize("header", ["bytes=2000000-", "bytes=2500000-2600000"])
    def test_start_past_end_of_object(self, header):
        with pytest.raises(RangeNotSatisfiableError) as exc_info:
            parse_range_header(header, 2_000_000)

        assert exc_info.value.total_size == 2_000_000
        assert exc_info.value.status_code == 416

    def test_empty_object_is_unsatisfiable(self):
        with pytest.raises(RangeNotSatisfiableError):
            parse_range_header("bytes=0-", 0)

    @pytest.mark.parametrize(
        "header",
        [
            "bytes=10-5",  # end before start
            "bytes=0-2000000",  # end past last byte
            "bytes=-500",  # suffix range
            "bytes=0-10,20-30",  # multi-range
            "items=0-10",  # unknown unit
            "bytes=abc-",
            "bytes=",
        ],
    )
    def test_unsatisfiable_or_malformed(self, header):
        with pytest.raises(RangeNotSatisfiableError) as exc_info:
            parse_range_header(header, 2_000_000)

        assert exc_info.value.total_size == 2_000_000


class TestDriveMetadata:
    @pytest.mark.asyncio
    @respx.mock
    async def test_metadata(self, drive):
        route = mock_metadata(respx)

        metadata = await drive.get_metadata("video-1", "ya29.token")

        assert metadata.size == 2_000_000
        assert metadata.mime_type == "video/mp4"
        assert route.calls.last.request.headers["Authorization"] == "Bearer ya29.token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_missing_mime_type_defaults(self, drive):
        mock_metadata(respx, mime_type=None)

        metadata = await drive.get_metadata("video-1", "ya29.token")

        assert metadata.mime_type == "application/octet-stream"

    @pytest.mark.asyncio
    @pytest.mark.parametrize("size", [None, "not-a-number"])
    @respx.mock
    async def test_unreadable_size(self, drive, size):
        mock_metadata(respx, size=size)

        with pytest.raises(UpstreamError):
            await drive.get_metadata("video-1", "ya29.token")

    @pytest.mark.asyncio
    @pytest.mark.parametrize("status", [401, 404, 500])
    @respx.mock
    async def test_error_status(self, drive, status):
        mock_metadata(respx, status=status)

        with pytest.raises(UpstreamError) as exc_info:
            await drive.get_metadata("video-1", "ya29.token")

        assert exc_info.value.status_code == 500

    @pytest.mark.asyncio
    @respx.mock
    async def test_file_id_is_path_escaped(self, drive):
        route = respx.get(url__startswith=f"{DRIVE_BASE_URL}/files/").mock(
            return_value=httpx.Response(200, json={"size": "10", "mimeType": "video/mp4"})
        )

        await drive.get_metadata("a/../about", "ya29.token")

        assert route.calls.last.request.url.raw_path.startswith(
            b"/drive/v3/files/a%2F..%2Fabout?"
        )

    @pytest.mark.asyncio
    @pytest.mark.parametrize("file_id", [".", ".."])
    @respx.mock
    async def test_dot_segment_id_rejected(self, drive, file_id):
        with pytest.raises(InvalidRequestError):
            await drive.get_metadata(file_id, "ya29.token")

        assert not respx.calls


class TestDriveFolderLookup:
    @pytest.mark.asyncio
    @respx.mock
    async def test_first_match_returned(self, drive):
        route = respx.get(f"{DRIVE_BASE_URL}/files").mock(
            return_value=httpx.Response(
                200,
                json={"files": [{"id": "folder-1", "name": "Cams"}, {"id": "folder-2"}]},
            )
        )

        assert await drive.find_folder_id("Cams", "ya29.token") == "folder-1"

        params = route.calls.last.request.url.params
        assert params["q"] == (
            "name='Cams' and mimeType='application/vnd.google-apps.folder'"
        )
        assert params["fields"] == "files(id,name)"

    @pytest.mark.asyncio
    @respx.mock
    async def test_quotes_escaped(self, drive):
        route = respx.get(f"{DRIVE_BASE_URL}/files").mock(
            return_value=httpx.Response(200, json={"files": [{"id": "f"}]})
        )

        await drive.find_folder_id("Rex's cam", "ya29.token")

        assert route.calls.last.request.url.params["q"].startswith("name='Rex\\'s cam'")

    @pytest.mark.asyncio
    @respx.mock
    async def test_no_match(self, drive):
        respx.get(f"{DRIVE_BASE_URL}/files").mock(
            return_value=httpx.Response(200, json={"files": []})
        )

        with pytest.raises(FolderNotFoundError) as exc_info:
            await drive.find_folder_id("Missing", "ya29.token")

        assert exc_info.value.code == ApiErrorCode.E_FOLDER_NOT_FOUND
        assert exc_info.value.status_code == 404

    @pytest.mark.asyncio
    @respx.mock
    async def test_upstream_failure(self, drive):
        respx.get(f"{DRIVE_BASE_URL}/files").mock(side_effect=httpx.ConnectTimeout("timeout"))

        with pytest.raises(UpstreamError):
            await drive.find_folder_id("Cams", "ya29.token")


class TestMediaRangeRelay:
    @pytest.mark.asyncio
    async def test_missing_access_token(self, drive):
        relay = MediaRangeRelay(drive)

        with pytest.raises(InvalidRequestError) as exc_info:
            await relay.open("video-1", None, "bytes=0-")

        assert exc_info.value.code == ApiErrorCode.E_MISSING_ACCESS_TOKEN
        assert exc_info.value.status_code == 400

    @pytest.mark.asyncio
    async def test_missing_range_header(self, drive):
        relay = MediaRangeRelay(drive)

        with pytest.raises(RangeNotSatisfiableError) as exc_info:
            await relay.open("video-1", "ya29.token", None)

        assert exc_info.value.code == ApiErrorCode.E_RANGE_REQUIRED
        assert exc_info.value.total_size is None

    @pytest.mark.asyncio
    @respx.mock
    async def test_relays_requested_window(self, drive):
        mock_metadata(respx, size="1000")
        media_route = mock_media(respx, content=bytes(range(100)))
        relay = MediaRangeRelay(drive)

        media = await relay.open("video-1", "ya29.token", "bytes=100-199")

        assert media.headers == {
            "Content-Range": "bytes 100-199/1000",
            "Accept-Ranges": "bytes",
            "Content-Length": "100",
            "Content-Type": "video/mp4",
        }
        assert await collect(media) == bytes(range(100))

        upstream_request = media_route.calls.last.request
        assert upstream_request.headers["Range"] == "bytes=100-199"
        assert upstream_request.headers["Authorization"] == "Bearer ya29.token"

    @pytest.mark.asyncio
    @respx.mock
    async def test_open_ended_window_uses_chunk_bytes(self, drive):
        mock_metadata(respx, size="1000")
        media_route = mock_media(respx, content=b"x" * 64)
        relay = MediaRangeRelay(drive, chunk_bytes=64)

        media = await relay.open("video-1", "ya29.token", "bytes=10-")

        assert media.window.end == 73
        assert media_route.calls.last.request.headers["Range"] == "bytes=10-73"
        await media.aclose()

    @pytest.mark.asyncio
    @respx.mock
    async def test_body_capped_at_content_length(self, drive):
        mock_metadata(respx, size="1000")
        mock_media(respx, content=b"y" * 500)
        relay = MediaRangeRelay(drive)

        media = await relay.open("video-1", "ya29.token", "bytes=0-9")

        assert await collect(media) == b"y" * 10

    @pytest.mark.asyncio
    @respx.mock
    async def test_start_past_size_makes_no_media_call(self, drive):
        mock_metadata(respx, size="1000")
        media_route = mock_media(respx, content=b"")
        relay = MediaRangeRelay(drive)

        with pytest.raises(RangeNotSatisfiableError) as exc_info:
            await relay.open("video-1", "ya29.token", "bytes=1000-")

        assert exc_info.value.total_size == 1000
        assert not media_route.called

    @pytest.mark.asyncio
    @respx.mock
    async def test_metadata_failure(self, drive):
        mock_metadata(respx, status=403)
        relay = MediaRangeRelay(drive)

        with pytest.raises(UpstreamError):
            await relay.open("video-1", "ya29.token", "bytes=0-")

    @pytest.mark.asyncio
    @respx.mock
    async def test_media_failure_before_headers(self, drive):
        mock_metadata(respx, size="1000")
        mock_media(respx, content=b"quota exceeded", status=403)
        relay = MediaRangeRelay(drive)

        with pytest.raises(UpstreamError):
            await relay.open("video-1", "ya29.token", "bytes=0-9")

    @pytest.mark.asyncio
    @respx.mock
    async def test_full_body_accepted_only_for_whole_object(self, drive):
        mock_metadata(respx, size="10")
        mock_media(respx, content=b"0123456789", status=200)
        relay = MediaRangeRelay(drive)

        media = await relay.open("video-1", "ya29.token", "bytes=0-9")
        assert await collect(media) == b"0123456789"

        with pytest.raises(UpstreamError):
            await relay.open("video-1", "ya29.token", "bytes=2-5")

    @pytest.mark.asyncio
    async def test_upstream_failure_mid_body_ends_stream(self):
        stream = InterruptedStream([b"abc"])
        media = relayed(stream)
        received = []

        with pytest.raises(httpx.ReadError):
            async for chunk in media.iter_bytes():
                received.append(chunk)

        assert received == [b"abc"]
        assert stream.closed

    @pytest.mark.asyncio
    async def test_client_disconnect_releases_upstream(self):
        stream = InterruptedStream([b"abc", b"def"], fail=False)
        body = relayed(stream).iter_bytes()

        assert await anext(body) == b"abc"
        await body.aclose()

        assert stream.closed
