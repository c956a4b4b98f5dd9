"""Builders for persisted records and outbound provider requests."""

import logging
import uuid
from typing import Optional, Dict, Any, List

from sqlalchemy.ext.asyncio import AsyncSession

from ..database import LanguageRepository, PluginRepository, compact
from ..provider import (
    PaymentMethodConfiguration,
    RefundCreate,
    RefundType,
    Transaction,
    TransactionState,
)
from .media import MediaService

logger = logging.getLogger(__name__)

PAYMENT_HANDLER_IDENTIFIER = "payments_sync.handler.ProviderPaymentHandler"
PLUGIN_BASE_CLASS = "payments_sync.PaymentsSyncPlugin"

# Positions below this offset stay free for the host's native payment methods
POSITION_OFFSET = 100


def build_translations(
    configuration: PaymentMethodConfiguration,
    locales: List[str],
) -> Dict[str, Dict[str, str]]:
    """Per-locale name and description of a configuration.

    Both fall back to the configuration name when the locale is missing.
    The description intentionally falls back to the name, not to a
    description field.
    """
    translations = {}
    for locale in locales:
        translations[locale] = {
            "name": configuration.resolved_title.get(locale, configuration.name),
            "description": configuration.resolved_description.get(locale, configuration.name),
        }
    return translations


class PaymentMethodPayloadBuilder:
    """Builds the payment method record for a remote configuration."""

    def __init__(self, session: AsyncSession, media_service: Optional[MediaService] = None):
        self.session = session
        self.languages = LanguageRepository(session)
        self.plugins = PluginRepository(session)
        self.media_service = media_service or MediaService(session)

    async def build(
        self,
        configuration: PaymentMethodConfiguration,
        payment_method_id: str,
    ) -> Dict[str, Any]:
        """Return the payment method record with None fields removed.

        Creates the icon media as a side effect; a media failure leaves
        ``media_id`` out of the record instead of raising.
        """
        data = {
            "id": payment_method_id,
            "handler_identifier": PAYMENT_HANDLER_IDENTIFIER,
            "plugin_id": await self.plugins.resolve_plugin_id(PLUGIN_BASE_CLASS),
            "position": configuration.sort_order - POSITION_OFFSET,
            "active": True,
            "translations": build_translations(configuration, await self.languages.get_locale_codes()),
        }
        data["media_id"] = await self.upsert_media(payment_method_id, configuration)
        return compact(data)

    async def upsert_media(
        self,
        media_id: str,
        configuration: PaymentMethodConfiguration,
    ) -> Optional[str]:
        """Store the configuration's icon; return its media id or None on failure.

        The media writes run in a savepoint; a failure rolls back only those
        writes and leaves the payment method's transaction usable.
        """
        try:
            async with self.session.begin_nested():
                await self.media_service.upsert_default_folder(
                    media_id,
                    entity=f"payment_method_{configuration.id}",
                )
                await self.media_service.upsert_folder(
                    media_id,
                    default_folder_id=media_id,
                    name=configuration.name,
                )
                await self.media_service.store_from_url(
                    media_id,
                    title=configuration.name,
                    url=configuration.resolved_image_url,
                    folder_id=media_id,
                )
        except Exception as e:
            logger.critical(
                f"Could not store icon for payment method configuration {configuration.id}: {e}",
                exc_info=True,
            )
            return None
        return media_id


class RefundPayloadBuilder:
    """Decides whether a refund may be requested and builds the request."""

    REFUNDABLE_STATES = frozenset([TransactionState.FULFILL])
    MAX_REFERENCE_LENGTH = 100

    @classmethod
    def _fix_length(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value[:cls.MAX_REFERENCE_LENGTH]

    def build(self, transaction: Transaction, refundable_amount: float) -> Optional[RefundCreate]:
        """Return the refund request, or None when policy does not allow a refund.

        A refund is allowed for fulfilled transactions when the amount is
        positive and does not exceed the authorized amount minus what has
        already been refunded.
        """
        amount = round(refundable_amount, 2)

        if transaction.state not in self.REFUNDABLE_STATES:
            logger.debug(f"Transaction {transaction.id} in state {transaction.state} is not refundable")
            return None

        balance = round(transaction.authorization_amount - transaction.refunded_amount, 2)
        if amount <= 0 or amount > balance:
            logger.debug(
                f"Refund amount {amount} for transaction {transaction.id} "
                f"outside refundable balance {balance}"
            )
            return None

        return RefundCreate(
            transaction=transaction.id,
            amount=amount,
            space_id=transaction.linked_space_id,
            external_id=self._fix_length(f"refund_{uuid.uuid4().hex}"),
            merchant_reference=self._fix_length(transaction.merchant_reference),
            type=RefundType.MERCHANT_INITIATED_ONLINE,
        )
