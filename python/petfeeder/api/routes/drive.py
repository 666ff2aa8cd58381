"""Remote object routes: folder lookup and ranged media relay.

Both take the provider access token from the caller. It is forwarded to
the object API as a bearer credential and never stored or logged.
"""

from typing import Annotated

from fastapi import APIRouter, Depends, Header, Query
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from petfeeder.api.deps import get_drive_client, get_media_relay
from petfeeder.errors import ApiErrorCode, InvalidRequestError
from petfeeder.schemas.auth import FolderLookupRequest
from petfeeder.services.drive import DriveClient
from petfeeder.services.media_relay import MediaRangeRelay

router = APIRouter(prefix="/api")


@router.post("/getFolderID")
async def get_folder_id(
    body: FolderLookupRequest,
    drive: Annotated[DriveClient, Depends(get_drive_client)],
) -> dict:
    if not body.access_token:
        raise InvalidRequestError(ApiErrorCode.E_MISSING_ACCESS_TOKEN, "Missing access token")
    folder_id = await drive.find_folder_id(body.folder_name, body.access_token)
    return {"folderId": folder_id}


@router.get("/video/{file_id}")
async def relay_video(
    file_id: str,
    relay: Annotated[MediaRangeRelay, Depends(get_media_relay)],
    access_token: Annotated[str | None, Query(alias="accessToken")] = None,
    range_header: Annotated[str | None, Header(alias="range")] = None,
) -> StreamingResponse:
    """Serve one byte window of a remote video as 206 Partial Content.

    416 if Range is missing or unsatisfiable, 400 without an access token,
    500 if the object API fails before headers are sent.
    """
    media = await relay.open(file_id, access_token, range_header)
    headers = media.headers
    return StreamingResponse(
        media.iter_bytes(),
        status_code=206,
        headers=headers,
        media_type=headers["Content-Type"],
        background=BackgroundTask(media.aclose),
    )
