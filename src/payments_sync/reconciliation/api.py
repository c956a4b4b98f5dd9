"""API endpoints that trigger synchronization and refunds."""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..auth import SYNC_RATE_LIMIT, limiter, verify_api_key
from ..database import RefundRepository, TransactionRepository, get_db
from ..exceptions import ConfigurationError, ProviderError, RecordNotFound
from ..settings import ClientFactory, SettingsService, rest_client_factory
from .configuration_sync import ConfigSyncEngine
from .media import HttpMediaDownloader, MediaDownloader, MediaService
from .models import RefundRequest, SynchronizationRequest, SynchronizationResult
from .refunds import RefundReconciler

logger = logging.getLogger(__name__)

router = APIRouter(tags=["reconciliation"])


def get_client_factory() -> ClientFactory:
    """Provider client factory; overridden in tests."""
    return rest_client_factory


def get_media_downloader() -> MediaDownloader:
    return HttpMediaDownloader()


@router.post(
    "/payment-method-configurations/synchronize",
    response_model=SynchronizationResult,
)
@limiter.limit(SYNC_RATE_LIMIT)
async def synchronize_payment_method_configurations(
    request: Request,
    body: SynchronizationRequest,
    db: AsyncSession = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
    downloader: MediaDownloader = Depends(get_media_downloader),
    api_key: str = Depends(verify_api_key),
):
    """
    Mirror the provider's payment method configurations into the local catalog.

    Safe to call repeatedly; every call runs a full pass.
    """
    engine = ConfigSyncEngine(
        db,
        settings_service=SettingsService(db, client_factory),
        media_service=MediaService(db, downloader),
    )
    try:
        return await engine.synchronize(body.sales_channel_id)
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        logger.error(f"Synchronization failed: {e}")
        raise HTTPException(status_code=502, detail=f"Provider error: {e}")


@router.post("/refunds")
async def create_refund(
    body: RefundRequest,
    db: AsyncSession = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
    api_key: str = Depends(verify_api_key),
) -> Dict[str, Any]:
    """
    Refund part or all of a provider transaction.

    The transaction is read from the provider with the settings of the sales
    channel it belongs to.
    """
    settings_service = SettingsService(db, client_factory)
    try:
        transaction_mirror = await TransactionRepository(db).get_by_transaction_id(body.transaction_id)
        settings = await settings_service.get_settings(transaction_mirror.sales_channel_id)
        client = settings.get_api_client()
        try:
            transaction = await client.read_transaction(settings.space_id, body.transaction_id)
        finally:
            await client.close()
    except RecordNotFound as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConfigurationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except ProviderError as e:
        raise HTTPException(status_code=502, detail=f"Provider error: {e}")

    refund = await RefundReconciler(db, settings_service).create(transaction, body.amount)
    if refund is None:
        raise HTTPException(status_code=422, detail="Refund was not created")

    space_id = refund.linked_space_id if refund.linked_space_id is not None else settings.space_id
    mirror = await RefundRepository(db).get_by_refund_id(refund.id, space_id)
    return mirror.to_dict()


@router.get("/refunds/{refund_id}")
async def get_refund(
    refund_id: int,
    space_id: Optional[int] = None,
    db: AsyncSession = Depends(get_db),
    client_factory: ClientFactory = Depends(get_client_factory),
    api_key: str = Depends(verify_api_key),
) -> Dict[str, Any]:
    """Return the local mirror of a provider refund.

    Without ``space_id`` the refund is looked up in the default settings' space.
    """
    if space_id is None:
        try:
            space_id = (await SettingsService(db, client_factory).get_settings()).space_id
        except ConfigurationError as e:
            raise HTTPException(status_code=400, detail=str(e))
    mirror = await RefundRepository(db).get_by_refund_id(refund_id, space_id)
    if mirror is None:
        raise HTTPException(status_code=404, detail=f"Refund {refund_id} not found")
    return mirror.to_dict()


@router.get("/health")
async def reconciliation_health():
    """Health check endpoint for the reconciliation service."""
    return {"status": "healthy", "service": "reconciliation"}
