"""Stored video object endpoints (list, download, delete)."""

import base64
import binascii
from pathlib import PurePosixPath
from typing import Annotated

from fastapi import APIRouter, Query
from fastapi.responses import StreamingResponse

from src.api.dependencies import AdminDep, ObjectStoreDep
from src.application.dtos.ingestion import (
    DeleteObjectResponse,
    StoredObjectListResponse,
    StoredObjectResponse,
)
from src.domain.exceptions import StoredObjectNotFoundException

router = APIRouter()


def resolve_key(key: str) -> str:
    """Accept an object key either raw or url-safe base64 encoded.

    Raw keys always contain the folder separator; an encoded key does not,
    and decodes to one that does.
    """
    if "/" in key:
        return key
    try:
        padded = key + "=" * (-len(key) % 4)
        decoded = base64.urlsafe_b64decode(padded).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return key
    return decoded if "/" in decoded else key


@router.get(
    "/videos/list",
    response_model=StoredObjectListResponse,
    summary="List stored videos",
    description="List objects in the upload folder of the storage bucket.",
)
async def list_videos(
    store: ObjectStoreDep,
    _admin: AdminDep,
    prefix: Annotated[str | None, Query(description="Key prefix filter")] = None,
) -> StoredObjectListResponse:
    """List stored video objects."""
    objects = await store.list(prefix)
    items = [
        StoredObjectResponse(
            key=obj.key,
            size=obj.size,
            last_modified=obj.last_modified,
            url=obj.url,
        )
        for obj in objects
    ]
    return StoredObjectListResponse(objects=items, count=len(items))


@router.get(
    "/videos/download",
    summary="Download a stored video",
    description="Stream a stored video. The key may be raw or url-safe base64.",
    responses={404: {"description": "No object with this key"}},
)
async def download_video(
    store: ObjectStoreDep,
    key: Annotated[str, Query(min_length=1, description="Object key")],
) -> StreamingResponse:
    """Stream object bytes to the client."""
    object_key = resolve_key(key)
    stream = await store.get(object_key)
    filename = PurePosixPath(object_key).name
    return StreamingResponse(
        stream.chunks,
        media_type=stream.content_type,
        headers={
            "Content-Length": str(stream.length),
            "Content-Disposition": f'inline; filename="{filename}"',
        },
    )


@router.delete(
    "/videos/delete",
    response_model=DeleteObjectResponse,
    summary="Delete a stored video",
    responses={404: {"description": "No object with this key"}},
)
async def delete_video(
    store: ObjectStoreDep,
    _admin: AdminDep,
    key: Annotated[str, Query(min_length=1, description="Object key")],
) -> DeleteObjectResponse:
    """Delete a stored object by key."""
    object_key = resolve_key(key)
    if not await store.delete(object_key):
        raise StoredObjectNotFoundException(object_key)
    return DeleteObjectResponse(key=object_key)
