"""YouTube Data API v3 implementation of the video platform client."""

import asyncio
import io
import time
from typing import Any

import httpx
from google.auth.exceptions import GoogleAuthError
from google.oauth2.credentials import Credentials
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError
from googleapiclient.http import MediaIoBaseUpload

from src.commons.infrastructure.blob.base import HealthStatus
from src.commons.telemetry import get_logger, timed
from src.domain.exceptions import (
    ContentConflictError,
    PlatformTechnicalError,
    PlatformVideoNotFoundError,
)
from src.infrastructure.video_platform.base import (
    PlatformUpload,
    PlatformVerdict,
    ProcessingState,
    VideoPlatformBase,
)

UPLOAD_SCOPES = ["https://www.googleapis.com/auth/youtube.upload"]

_UPLOAD_STATUS: dict[str, ProcessingState] = {
    "uploaded": ProcessingState.PROCESSING,
    "processed": ProcessingState.PROCESSED,
    "rejected": ProcessingState.REJECTED,
    "failed": ProcessingState.FAILED,
}

# Rejection reasons that mean the platform matched the content elsewhere
_CONFLICT_REASONS = frozenset(
    {"claim", "copyright", "duplicate", "trademark", "uploaderAccountSuspended"}
)

_RETRYABLE_STATUS = frozenset({403, 429, 500, 502, 503, 504})


def _is_retryable(status_code: int | None) -> bool:
    return status_code is None or status_code in _RETRYABLE_STATUS


class YouTubePlatformClient(VideoPlatformBase):
    """Uploads videos as unlisted and reads their copyright signals.

    Uploads go through ``google-api-python-client`` with OAuth refresh-token
    credentials; the library is blocking, so each resumable chunk runs in
    the default executor. Verdicts are read with a plain API key over
    ``httpx`` and cost a single quota unit.
    """

    YOUTUBE_API_SERVICE_NAME = "youtube"
    YOUTUBE_API_VERSION = "v3"

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        refresh_token: str,
        api_key: str,
        token_uri: str = "https://oauth2.googleapis.com/token",
        api_base_url: str = "https://www.googleapis.com/youtube/v3",
        privacy_status: str = "unlisted",
        upload_chunk_size: int = 8 * 1024 * 1024,
        timeout_seconds: float = 60.0,
        service: Any | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        """Initialize the YouTube client.

        Args:
            client_id: OAuth client id used for uploads.
            client_secret: OAuth client secret.
            refresh_token: Long-lived refresh token of the uploading channel.
            api_key: Data API key used for verdict reads.
            token_uri: OAuth token endpoint.
            api_base_url: Base URL of the Data API.
            privacy_status: Visibility of uploaded videos.
            upload_chunk_size: Resumable upload chunk size in bytes.
            timeout_seconds: Timeout for each HTTP request or upload chunk.
            service: Pre-built API resource (tests).
            http_client: Pre-built httpx client (tests).
        """
        self._client_id = client_id
        self._client_secret = client_secret
        self._refresh_token = refresh_token
        self._api_key = api_key
        self._token_uri = token_uri
        self._api_base_url = api_base_url.rstrip("/")
        self._privacy_status = privacy_status
        self._chunk_size = upload_chunk_size
        self._timeout = timeout_seconds
        self._service = service
        self._http = http_client or httpx.AsyncClient(
            timeout=httpx.Timeout(timeout_seconds),
        )
        self._logger = get_logger(__name__)

    @property
    def can_upload(self) -> bool:
        """Whether OAuth upload credentials are configured."""
        return bool(self._client_id and self._client_secret and self._refresh_token)

    def _get_service(self) -> Any:
        """Build the API resource on first use. Runs in the executor."""
        if self._service is None:
            credentials = Credentials(
                token=None,
                refresh_token=self._refresh_token,
                client_id=self._client_id,
                client_secret=self._client_secret,
                token_uri=self._token_uri,
                scopes=UPLOAD_SCOPES,
            )
            self._service = build(
                self.YOUTUBE_API_SERVICE_NAME,
                self.YOUTUBE_API_VERSION,
                credentials=credentials,
                cache_discovery=False,
            )
        return self._service

    @timed(threshold_ms=1000)
    async def upload(
        self,
        data: bytes,
        mime_type: str,
        title: str,
        description: str,
    ) -> PlatformUpload:
        """Upload a video to YouTube with restricted visibility."""
        if not self.can_upload:
            raise PlatformTechnicalError("YouTube upload credentials are not configured")

        loop = asyncio.get_running_loop()
        body = {
            "snippet": {"title": title[:100], "description": description},
            "status": {
                "privacyStatus": self._privacy_status,
                "selfDeclaredMadeForKids": False,
            },
        }

        try:
            service = await loop.run_in_executor(None, self._get_service)
            media = MediaIoBaseUpload(
                io.BytesIO(data),
                mimetype=mime_type,
                chunksize=self._chunk_size,
                resumable=True,
            )
            request = service.videos().insert(
                part="snippet,status",
                body=body,
                media_body=media,
                notifySubscribers=False,
            )

            response: dict[str, Any] | None = None
            while response is None:
                _, response = await asyncio.wait_for(
                    loop.run_in_executor(None, request.next_chunk),
                    timeout=self._timeout,
                )
        except HttpError as e:
            status_code = e.resp.status if e.resp is not None else None
            raise PlatformTechnicalError(
                str(e),
                status_code=status_code,
                retryable=_is_retryable(status_code),
            ) from e
        except TimeoutError as e:
            raise PlatformTechnicalError(
                f"YouTube upload timed out after {self._timeout:g}s",
                retryable=True,
            ) from e
        except (GoogleAuthError, OSError) as e:
            raise PlatformTechnicalError(f"YouTube upload failed: {e}") from e

        video_id = response.get("id")
        if not video_id:
            raise PlatformTechnicalError("YouTube upload returned no video id")

        status = response.get("status", {})
        state = _UPLOAD_STATUS.get(
            status.get("uploadStatus", "uploaded"), ProcessingState.PROCESSING
        )
        reason = status.get("rejectionReason")
        if state is ProcessingState.REJECTED and reason in _CONFLICT_REASONS:
            raise ContentConflictError(
                f"YouTube rejected the upload: {reason}", video_id=video_id
            )

        self._logger.info(
            "Uploaded video to YouTube",
            extra={"platform_video_id": video_id, "upload_status": state.value},
        )
        return PlatformUpload(video_id=video_id, processing_state=state)

    @timed(threshold_ms=1000)
    async def get_verdict(self, video_id: str) -> PlatformVerdict:
        """Read licensing, region-block and processing status for a video."""
        if not self._api_key:
            raise PlatformTechnicalError(
                "YouTube API key is not configured", video_id=video_id
            )

        try:
            response = await self._http.get(
                f"{self._api_base_url}/videos",
                params={
                    "part": "contentDetails,status",
                    "id": video_id,
                    "key": self._api_key,
                },
            )
        except httpx.TimeoutException as e:
            raise PlatformTechnicalError(
                f"YouTube verdict request timed out after {self._timeout:g}s",
                video_id=video_id,
                retryable=True,
            ) from e
        except httpx.HTTPError as e:
            raise PlatformTechnicalError(
                f"YouTube verdict request failed: {e}",
                video_id=video_id,
                retryable=True,
            ) from e

        if response.status_code == 404:
            raise PlatformVideoNotFoundError(video_id)
        if response.status_code >= 400:
            raise PlatformTechnicalError(
                f"YouTube API returned {response.status_code}: {_error_message(response)}",
                video_id=video_id,
                status_code=response.status_code,
                retryable=_is_retryable(response.status_code),
            )

        items = response.json().get("items") or []
        if not items:
            raise PlatformVideoNotFoundError(video_id)

        return parse_verdict(video_id, items[0])

    async def health_check(self) -> HealthStatus:
        """Report whether upload and read credentials are configured."""
        start = time.perf_counter()
        missing = [
            name
            for name, value in (
                ("client_id", self._client_id),
                ("client_secret", self._client_secret),
                ("refresh_token", self._refresh_token),
                ("api_key", self._api_key),
            )
            if not value
        ]
        latency_ms = (time.perf_counter() - start) * 1000
        if missing:
            return HealthStatus(
                healthy=False,
                latency_ms=latency_ms,
                message="YouTube client is missing credentials",
                details={"missing": ",".join(missing)},
            )
        return HealthStatus(
            healthy=True,
            latency_ms=latency_ms,
            message="YouTube client is configured",
            details={"api_base_url": self._api_base_url},
        )

    async def close(self) -> None:
        """Close the HTTP client."""
        await self._http.aclose()


def parse_verdict(video_id: str, item: dict[str, Any]) -> PlatformVerdict:
    """Map a ``videos.list`` item onto a PlatformVerdict.

    Raises:
        PlatformVideoNotFoundError: If the platform reports the video deleted.
    """
    content = item.get("contentDetails", {})
    status = item.get("status", {})

    upload_status = status.get("uploadStatus", "processed")
    if upload_status == "deleted":
        raise PlatformVideoNotFoundError(video_id)

    blocked = content.get("regionRestriction", {}).get("blocked", [])
    state = _UPLOAD_STATUS.get(upload_status, ProcessingState.PROCESSED)
    rejection_reason = status.get("rejectionReason")
    return PlatformVerdict(
        video_id=video_id,
        licensed_content=bool(content.get("licensedContent", False)),
        blocked_region_count=len(blocked),
        processing_state=state,
        rejection_reason=rejection_reason or status.get("failureReason"),
        rights_conflict=(
            state is ProcessingState.REJECTED and rejection_reason in _CONFLICT_REASONS
        ),
    )


def _error_message(response: httpx.Response) -> str:
    try:
        payload = response.json()
    except ValueError:
        return response.text[:200]
    error = payload.get("error", {}) if isinstance(payload, dict) else {}
    return str(error.get("message") or response.reason_phrase)
