"""Video upload and verification status endpoints."""

from typing import Annotated

from fastapi import APIRouter, File, Form, UploadFile, status

from src.api.dependencies import AdminDep, CurrentUserDep, IngestionServiceDep
from src.application.dtos.ingestion import (
    RetryAccepted,
    UploadAccepted,
    UploadStatusResponse,
)
from src.domain.exceptions import InvalidUploadException

router = APIRouter()


@router.post(
    "/videos/upload",
    response_model=UploadAccepted,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a video",
    description=(
        "Store a video and schedule its copyright verification. Returns as "
        "soon as the file is stored; verification runs in the background."
    ),
    responses={
        400: {"description": "Missing, empty or unsupported file"},
        409: {"description": "The same video is already pending or approved"},
        413: {"description": "File exceeds the size limit"},
        500: {"description": "Object storage failure"},
    },
)
async def upload_video(
    service: IngestionServiceDep,
    user: CurrentUserDep,
    video: Annotated[UploadFile | None, File(description="Video file")] = None,
    title: Annotated[str | None, Form(description="Optional display title")] = None,
) -> UploadAccepted:
    """Accept a multipart video upload."""
    if video is None:
        raise InvalidUploadException("No video file provided")
    if video.size is not None and video.size > service.max_upload_bytes:
        raise InvalidUploadException(
            f"Video exceeds the {service.max_upload_bytes // (1024 * 1024)} MB limit",
            too_large=True,
        )

    data = await video.read()
    return await service.submit(
        data=data,
        content_type=video.content_type,
        filename=video.filename,
        title=title,
        owner_user_id=user.user_id,
    )


@router.get(
    "/videos/upload/{upload_id}/status",
    response_model=UploadStatusResponse,
    summary="Get verification status",
    description="Current copyright verification state of an upload.",
)
async def get_upload_status(
    upload_id: str,
    service: IngestionServiceDep,
) -> UploadStatusResponse:
    """Get the verification status of an upload."""
    record = await service.get_status(upload_id)
    return UploadStatusResponse.from_record(record)


@router.post(
    "/videos/upload/{upload_id}/retry",
    response_model=RetryAccepted,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Retry verification",
    description=(
        "Re-schedule verification of an upload stuck in PENDING. "
        "Finalized uploads are refused with 409."
    ),
)
async def retry_verification(
    upload_id: str,
    service: IngestionServiceDep,
    _admin: AdminDep,
) -> RetryAccepted:
    """Re-trigger verification of a pending upload."""
    return await service.retry(upload_id)
