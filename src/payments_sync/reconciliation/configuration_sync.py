"""Mirrors the provider's payment method configurations into the local catalog."""

import logging
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from ..database import (
    MirrorState,
    PaymentMethodConfigurationRepository,
    PaymentMethodRepository,
    generate_id,
)
from ..exceptions import PersistenceFailure, RecordNotFound
from ..provider import (
    CreationEntityState,
    EntityQuery,
    PaymentMethodConfiguration,
    ProviderClientBase,
)
from ..settings import SettingsService
from .media import MediaService
from .models import SynchronizationResult
from .payload import PaymentMethodPayloadBuilder

logger = logging.getLogger(__name__)


class ConfigSyncEngine:
    """Synchronizes payment method configurations of one provider space.

    A pass first deactivates every active mirror and its payment method, then
    re-activates and upserts each remote configuration in state ACTIVE. Each
    record is committed on its own, so a crash mid-pass leaves partial state
    that the next full pass repairs. Callers must not run two passes for the
    same space concurrently.
    """

    def __init__(
        self,
        session: AsyncSession,
        settings_service: Optional[SettingsService] = None,
        media_service: Optional[MediaService] = None,
    ):
        """Initialize the engine.

        Args:
            session: Async database session.
            settings_service: Resolver for space and provider client.
            media_service: Media pipeline used for payment method icons.
        """
        self.session = session
        self.settings_service = settings_service or SettingsService(session)
        self.mirror_repo = PaymentMethodConfigurationRepository(session)
        self.payment_method_repo = PaymentMethodRepository(session)
        self.payload_builder = PaymentMethodPayloadBuilder(session, media_service)

    async def synchronize(self, sales_channel_id: Optional[str] = None) -> SynchronizationResult:
        """Run one sync pass for the space configured for the sales channel.

        Raises:
            ConfigurationError: If no settings apply to the sales channel.
            ProviderUnavailable: If the provider cannot be reached.
            ProviderProtocolError: If the provider response cannot be decoded.
        """
        settings = await self.settings_service.get_settings(sales_channel_id)
        client = settings.get_api_client()
        result = SynchronizationResult(space_id=settings.space_id)

        logger.info(f"Synchronizing payment method configurations for space {settings.space_id}")

        try:
            result.deactivated = await self.disable_payment_method_configurations(settings.space_id)
            await self.enable_payment_method_configurations(client, settings.space_id, result)
        finally:
            await client.close()

        logger.info(
            f"Synchronized space {settings.space_id}: "
            f"{len(result.activated)} active, {len(result.skipped)} skipped, "
            f"{len(result.failed)} failed, {len(result.deactivated)} deactivated first"
        )
        return result

    async def disable_payment_method_configurations(self, space_id: int) -> List[str]:
        """Deactivate all active mirrors of the space and their payment methods."""
        mirrors = await self.mirror_repo.list_active(space_id)
        deactivated = []
        for mirror in mirrors:
            if mirror.payment_method_id:
                await self.set_payment_method_is_active(mirror.payment_method_id, False)
            await self.mirror_repo.update([{
                "id": mirror.id,
                "state": MirrorState.INACTIVE.value,
            }])
            deactivated.append(mirror.id)
        await self.session.commit()

        logger.debug(f"Deactivated {len(deactivated)} payment method configuration(s)")
        return deactivated

    async def set_payment_method_is_active(self, payment_method_id: str, active: bool) -> None:
        try:
            await self.payment_method_repo.update([{"id": payment_method_id, "active": active}])
        except RecordNotFound:
            logger.warning(f"Payment method {payment_method_id} linked to a mirror does not exist")

    async def get_payment_method_configurations(
        self,
        client: ProviderClientBase,
        space_id: int,
    ) -> List[PaymentMethodConfiguration]:
        """Fetch all configurations of the space, sorted by sort order (stable)."""
        configurations = await client.search_payment_method_configurations(space_id, EntityQuery())
        configurations = sorted(configurations, key=lambda c: c.sort_order)
        logger.debug(
            "Updating payment methods",
            extra={"configurations": [c.to_payload() for c in configurations]},
        )
        return configurations

    async def enable_payment_method_configurations(
        self,
        client: ProviderClientBase,
        space_id: int,
        result: SynchronizationResult,
    ) -> None:
        configurations = await self.get_payment_method_configurations(client, space_id)

        for configuration in configurations:
            if configuration.state != CreationEntityState.ACTIVE:
                result.skipped.append(configuration.id)
                continue

            try:
                mirror_id = await self.upsert_configuration(configuration)
                await self.session.commit()
                result.activated.append(mirror_id)
            except (PersistenceFailure, SQLAlchemyError) as e:
                await self.session.rollback()
                result.failed.append(configuration.id)
                logger.error(
                    f"Failed to synchronize payment method configuration {configuration.id} "
                    f"of space {configuration.space_id}: {e}"
                )

    async def upsert_configuration(self, configuration: PaymentMethodConfiguration) -> str:
        """Upsert the payment method and the mirror of one ACTIVE configuration.

        The mirror's id is reused for an existing mirror regardless of its state
        and doubles as the payment method id.
        """
        mirror = await self.mirror_repo.get_by_configuration_id(configuration.space_id, configuration.id)
        mirror_id = mirror.id if mirror is not None else generate_id()

        payment_method = await self.payload_builder.build(configuration, mirror_id)
        await self.payment_method_repo.upsert([payment_method])

        await self.mirror_repo.upsert([{
            "id": mirror_id,
            "payment_method_configuration_id": configuration.id,
            "payment_method_id": mirror_id,
            "data": configuration.to_payload(),
            "sort_order": configuration.sort_order,
            "space_id": configuration.space_id,
            "state": MirrorState.ACTIVE.value,
        }])
        return mirror_id
