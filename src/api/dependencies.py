"""FastAPI dependency injection for services, settings and caller identity."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Annotated

from fastapi import Depends, Header, status

from src.api.middleware.error_handler import APIError
from src.application.services.ingestion import VideoIngestionService
from src.application.services.notifications import NotificationService
from src.application.services.object_store import VideoObjectStore
from src.application.services.policies import build_policy
from src.application.services.task_runner import IngestionTaskRunner
from src.application.services.verification import VerificationPipeline
from src.commons.settings.loader import get_settings as _load_settings
from src.commons.settings.loader import redact_settings
from src.commons.settings.models import Settings
from src.commons.telemetry import get_logger
from src.infrastructure.factory import (
    InfrastructureFactory,
    get_factory,
    reset_factory,
)

logger = get_logger(__name__)

ADMIN_ROLE = "admin"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        Application settings loaded from config files and environment.
    """
    return _load_settings()


def get_infrastructure_factory(
    settings: Annotated[Settings, Depends(get_settings)],
) -> InfrastructureFactory:
    """Get infrastructure factory with all providers.

    Args:
        settings: Application settings.

    Returns:
        Configured infrastructure factory.
    """
    return get_factory(settings)


class _RunnerHolder:
    """Holder for the background runner owned by the application lifespan."""

    instance: IngestionTaskRunner | None = None


def build_object_store(factory: InfrastructureFactory) -> VideoObjectStore:
    """Create the video object store over the configured blob storage."""
    return VideoObjectStore(factory.get_blob_storage(), factory.settings.blob_storage)


def build_pipeline(factory: InfrastructureFactory) -> VerificationPipeline:
    """Create the verification pipeline from infrastructure providers."""
    settings = factory.settings
    return VerificationPipeline(
        uploads=factory.get_upload_repository(),
        object_store=build_object_store(factory),
        platform=factory.get_video_platform(),
        notifications=NotificationService(factory.get_notification_repository()),
        policy=build_policy(settings.verification),
        verification_settings=settings.verification,
        platform_settings=settings.video_platform,
    )


def get_task_runner() -> IngestionTaskRunner:
    """Get the background runner started by the lifespan.

    Raises:
        APIError: If the application has not finished starting.
    """
    if _RunnerHolder.instance is None:
        raise APIError(
            code="SERVICE_UNAVAILABLE",
            message="Background runner is not initialized",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        )
    return _RunnerHolder.instance


def get_object_store(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> VideoObjectStore:
    """Get the video object store."""
    return build_object_store(factory)


def get_notification_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
) -> NotificationService:
    """Get the notification service."""
    return NotificationService(factory.get_notification_repository())


def get_ingestion_service(
    factory: Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)],
    settings: Annotated[Settings, Depends(get_settings)],
    runner: Annotated[IngestionTaskRunner, Depends(get_task_runner)],
) -> VideoIngestionService:
    """Get video ingestion service with all dependencies.

    Args:
        factory: Infrastructure factory.
        settings: Application settings.
        runner: Background runner for verification.

    Returns:
        Configured video ingestion service.
    """
    return VideoIngestionService(
        uploads=factory.get_upload_repository(),
        object_store=build_object_store(factory),
        platform=factory.get_video_platform(),
        runner=runner,
        ingestion_settings=settings.ingestion,
        verification_settings=settings.verification,
        platform_settings=settings.video_platform,
    )


@dataclass
class CurrentUser:
    """Caller identity forwarded by the upstream auth gateway."""

    user_id: str | None
    role: str | None = None

    @property
    def is_admin(self) -> bool:
        """Whether the caller has the admin role."""
        return self.role == ADMIN_ROLE


def get_current_user(
    x_user_id: Annotated[str | None, Header()] = None,
    x_user_role: Annotated[str | None, Header()] = None,
) -> CurrentUser:
    """Read the caller identity from gateway headers. Anonymous is allowed."""
    user_id = x_user_id.strip() if x_user_id and x_user_id.strip() else None
    role = x_user_role.strip().lower() if x_user_role else None
    return CurrentUser(user_id=user_id, role=role)


def require_user(
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Require an identified caller.

    Raises:
        APIError: 401 if no user id was forwarded.
    """
    if user.user_id is None:
        raise APIError(
            code="UNAUTHENTICATED",
            message="Authentication required",
            status_code=status.HTTP_401_UNAUTHORIZED,
        )
    return user


def require_admin(
    user: Annotated[CurrentUser, Depends(get_current_user)],
) -> CurrentUser:
    """Require the admin role.

    Raises:
        APIError: 403 for any other caller.
    """
    if not user.is_admin:
        raise APIError(
            code="FORBIDDEN",
            message="Admin role required",
            status_code=status.HTTP_403_FORBIDDEN,
        )
    return user


# Type aliases for cleaner route signatures
SettingsDep = Annotated[Settings, Depends(get_settings)]
FactoryDep = Annotated[InfrastructureFactory, Depends(get_infrastructure_factory)]
ObjectStoreDep = Annotated[VideoObjectStore, Depends(get_object_store)]
IngestionServiceDep = Annotated[VideoIngestionService, Depends(get_ingestion_service)]
NotificationServiceDep = Annotated[
    NotificationService, Depends(get_notification_service)
]
CurrentUserDep = Annotated[CurrentUser, Depends(get_current_user)]
UserDep = Annotated[CurrentUser, Depends(require_user)]
AdminDep = Annotated[CurrentUser, Depends(require_admin)]


async def init_services(settings: Settings) -> None:
    """Initialize infrastructure and start the background runner.

    Client construction fails fast. Network preparation (bucket, indexes,
    recovery) only logs on failure so the health endpoints can report it.

    Args:
        settings: Application settings.
    """
    logger.info("Starting services", extra={"settings": redact_settings(settings)})
    factory = get_factory(settings)

    factory.get_blob_storage()
    factory.get_document_db()
    factory.get_video_platform()

    pipeline = build_pipeline(factory)
    runner = IngestionTaskRunner(pipeline.run)
    _RunnerHolder.instance = runner

    try:
        await build_object_store(factory).ensure_bucket()
        await factory.get_upload_repository().ensure_indexes()
        await factory.get_notification_repository().ensure_indexes()
    except Exception:
        logger.error("Failed to prepare storage", exc_info=True)

    if settings.verification.recover_on_startup:
        ingestion = VideoIngestionService(
            uploads=factory.get_upload_repository(),
            object_store=build_object_store(factory),
            platform=factory.get_video_platform(),
            runner=runner,
            ingestion_settings=settings.ingestion,
            verification_settings=settings.verification,
            platform_settings=settings.video_platform,
        )
        try:
            await ingestion.recover_pending()
        except Exception:
            logger.error("Failed to recover pending uploads", exc_info=True)


async def shutdown_services() -> None:
    """Stop background work and close infrastructure clients."""
    runner = _RunnerHolder.instance
    _RunnerHolder.instance = None
    if runner is not None:
        await runner.shutdown()

    try:
        factory = get_factory()
        await factory.close_all()
    except ValueError:
        logger.debug("Factory was never initialized")
    finally:
        reset_factory()
        get_settings.cache_clear()
