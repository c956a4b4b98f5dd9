"""Relays refunds to the provider and records them in the local refund mirror."""

import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import RefundMirror, RefundRepository, TransactionRepository, compact, generate_id
from ..provider import Refund, Transaction
from ..settings import SettingsService
from .payload import RefundPayloadBuilder

logger = logging.getLogger(__name__)


class RefundReconciler:
    """Creates provider refunds and keeps the refund mirror in step."""

    def __init__(
        self,
        session: AsyncSession,
        settings_service: Optional[SettingsService] = None,
        payload_builder: Optional[RefundPayloadBuilder] = None,
    ):
        self.session = session
        self.settings_service = settings_service or SettingsService(session)
        self.payload_builder = payload_builder or RefundPayloadBuilder()
        self.refund_repo = RefundRepository(session)
        self.transaction_repo = TransactionRepository(session)

    async def create(self, transaction: Transaction, refundable_amount: float) -> Optional[Refund]:
        """Refund ``refundable_amount`` of a provider transaction.

        Never raises. Returns None when the refund policy declines the request
        or anything fails along the way; callers may retry later.
        """
        try:
            transaction_mirror = await self.transaction_repo.get_by_transaction_id(transaction.id)
            settings = await self.settings_service.get_settings(transaction_mirror.sales_channel_id)
            refund_create = self.payload_builder.build(transaction, refundable_amount)
            if refund_create is None:
                logger.info(f"Refund of {refundable_amount} for transaction {transaction.id} not allowed")
                return None

            client = settings.get_api_client()
            try:
                refund = await client.refund(settings.space_id, refund_create)
            finally:
                await client.close()
        except Exception as e:
            logger.critical(f"Failed to create refund for transaction {transaction.id}: {e}", exc_info=True)
            return None

        if await self.upsert(refund, settings.space_id) is None:
            logger.critical(
                f"Refund {refund.id} was created by the provider but could not be recorded locally"
            )
            return None
        return refund

    async def upsert(self, refund: Refund, space_id: Optional[int] = None) -> Optional[RefundMirror]:
        """Insert or update the mirror of ``refund``, keyed by (space, refund id).

        The space is the refund's ``linked_space_id``, else ``space_id``, else
        the space of the default settings.

        Returns the mirror, or None if it could not be written.
        """
        try:
            if refund.linked_space_id is not None:
                space_id = refund.linked_space_id
            elif space_id is None:
                space_id = (await self.settings_service.get_settings()).space_id
            existing = await self.refund_repo.get_by_refund_id(refund.id, space_id)
            mirror_id = existing.id if existing is not None else generate_id()
            data = compact({
                "id": mirror_id,
                "data": refund.to_payload(),
                "refund_id": refund.id,
                "space_id": space_id,
                "state": refund.state.value if refund.state else None,
                "transaction_id": refund.transaction_id,
            })
            entities = await self.refund_repo.upsert([data])
            await self.session.commit()
            return entities[0]
        except Exception as e:
            await self.session.rollback()
            logger.critical(f"{type(self).__name__}.upsert failed for refund {refund.id}: {e}", exc_info=True)
            return None
