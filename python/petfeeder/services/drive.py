"""Client for the remote object API (Google Drive v3).

All calls authenticate with the caller's provider access token as a
bearer credential. The token is passed per call and never stored.
Any transport failure, non-2xx status, or unreadable body is an
UpstreamError; raw upstream bodies are logged (truncated), never returned.
"""

from dataclasses import dataclass
from urllib.parse import quote

import httpx

from petfeeder.errors import ApiErrorCode, InvalidRequestError, NotFoundError, UpstreamError
from petfeeder.logging import get_logger

logger = get_logger(__name__)

FOLDER_MIME_TYPE = "application/vnd.google-apps.folder"
DEFAULT_MIME_TYPE = "application/octet-stream"

# Max chars of an upstream error body kept in logs
UPSTREAM_BODY_LOG_CHARS = 500


@dataclass(frozen=True)
class ObjectMetadata:
    size: int
    mime_type: str


class FolderNotFoundError(NotFoundError):
    def __init__(self):
        super().__init__(ApiErrorCode.E_FOLDER_NOT_FOUND, "Folder not found")


def _auth_headers(access_token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {access_token}"}


def _quote_query_literal(value: str) -> str:
    """Escape a value for use inside a single-quoted Drive query literal."""
    return value.replace("\\", "\\\\").replace("'", "\\'")


class DriveClient:
    """Thin async wrapper over the files endpoints the gateway needs."""

    def __init__(self, client: httpx.AsyncClient, base_url: str):
        self._client = client
        self._base_url = base_url.rstrip("/")

    def _file_url(self, file_id: str) -> str:
        # Dot segments would be collapsed by URL normalization
        if file_id in (".", ".."):
            raise InvalidRequestError(message="Invalid object id")
        encoded = quote(file_id, safe="")
        return f"{self._base_url}/files/{encoded}"

    async def _get_json(self, url: str, access_token: str, params: dict, operation: str) -> dict:
        try:
            response = await self._client.get(
                url, params=params, headers=_auth_headers(access_token)
            )
        except httpx.HTTPError as e:
            logger.warning("drive_request_failed", operation=operation, error=str(e))
            raise UpstreamError() from e

        if response.status_code >= 400:
            logger.warning(
                "drive_request_failed",
                operation=operation,
                upstream_status=response.status_code,
                upstream_body=response.text[:UPSTREAM_BODY_LOG_CHARS],
            )
            raise UpstreamError()

        try:
            data = response.json()
        except ValueError as e:
            logger.warning("drive_request_failed", operation=operation, reason="non_json_body")
            raise UpstreamError() from e

        if not isinstance(data, dict):
            raise UpstreamError()
        return data

    async def get_metadata(self, file_id: str, access_token: str) -> ObjectMetadata:
        """Fetch the object's size and MIME type.

        Raises:
            UpstreamError: Request failed or size is missing / not an integer.
        """
        data = await self._get_json(
            self._file_url(file_id),
            access_token,
            params={"fields": "size,mimeType"},
            operation="metadata",
        )

        # Drive reports size as a decimal string
        raw_size = data.get("size")
        try:
            size = int(raw_size)
        except (TypeError, ValueError) as e:
            logger.warning("drive_metadata_malformed", has_size=raw_size is not None)
            raise UpstreamError(message="Upstream object has no readable size") from e
        if size < 0:
            raise UpstreamError(message="Upstream object has no readable size")

        mime_type = data.get("mimeType")
        if not isinstance(mime_type, str) or not mime_type:
            mime_type = DEFAULT_MIME_TYPE
        return ObjectMetadata(size=size, mime_type=mime_type)

    async def open_range(
        self, file_id: str, access_token: str, start: int, end: int, total_size: int
    ) -> httpx.Response:
        """Open a streamed GET for bytes start..end (inclusive).

        The caller owns the returned response and must ``aclose()`` it.
        A 200 is accepted only when the window is the whole object, since
        the upstream then ignored the Range header but the bytes still match.

        Raises:
            UpstreamError: Transport failure or unexpected status.
        """
        request = self._client.build_request(
            "GET",
            self._file_url(file_id),
            params={"alt": "media"},
            headers={**_auth_headers(access_token), "Range": f"bytes={start}-{end}"},
        )
        try:
            response = await self._client.send(request, stream=True)
        except httpx.HTTPError as e:
            logger.warning("drive_request_failed", operation="media", error=str(e))
            raise UpstreamError() from e

        whole_object = start == 0 and end == total_size - 1
        if response.status_code == 206 or (response.status_code == 200 and whole_object):
            return response

        try:
            body = (await response.aread()).decode("utf-8", errors="replace")
        finally:
            await response.aclose()
        logger.warning(
            "drive_request_failed",
            operation="media",
            upstream_status=response.status_code,
            upstream_body=body[:UPSTREAM_BODY_LOG_CHARS],
        )
        raise UpstreamError()

    async def find_folder_id(self, folder_name: str, access_token: str) -> str:
        """Return the id of the first folder named folder_name.

        Raises:
            FolderNotFoundError: No folder matches.
            UpstreamError: Request failed.
        """
        query = (
            f"name='{_quote_query_literal(folder_name)}' and mimeType='{FOLDER_MIME_TYPE}'"
        )
        data = await self._get_json(
            f"{self._base_url}/files",
            access_token,
            params={"q": query, "fields": "files(id,name)"},
            operation="folder_lookup",
        )

        files = data.get("files")
        if not isinstance(files, list):
            raise UpstreamError()
        for entry in files:
            if isinstance(entry, dict) and isinstance(entry.get("id"), str):
                return entry["id"]
        raise FolderNotFoundError()
