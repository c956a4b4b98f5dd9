"""Resolution of provider settings (space and credentials) per sales channel."""

import os
import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from .database import SettingsRepository
from .exceptions import ConfigurationError
from .provider import DEFAULT_BASE_URL, ProviderClientBase, RestProviderClient

logger = logging.getLogger(__name__)


@dataclass
class Settings:
    """Provider settings that apply to one sales channel."""
    space_id: int
    user_id: int
    application_key: str = field(repr=False)
    base_url: str = DEFAULT_BASE_URL
    api_client: Optional[ProviderClientBase] = field(default=None, repr=False)

    def get_api_client(self) -> ProviderClientBase:
        if self.api_client is None:
            raise ConfigurationError("No provider client configured")
        return self.api_client


ClientFactory = Callable[[Settings], ProviderClientBase]


def rest_client_factory(settings: Settings) -> ProviderClientBase:
    return RestProviderClient(
        user_id=settings.user_id,
        application_key=settings.application_key,
        base_url=settings.base_url,
    )


def settings_from_env() -> Optional[Settings]:
    """Build settings from PROVIDER_* environment variables, if all are set."""
    space_id = os.getenv("PROVIDER_SPACE_ID")
    user_id = os.getenv("PROVIDER_USER_ID")
    application_key = os.getenv("PROVIDER_APPLICATION_KEY")
    if not (space_id and user_id and application_key):
        return None
    try:
        return Settings(
            space_id=int(space_id),
            user_id=int(user_id),
            application_key=application_key,
            base_url=os.getenv("PROVIDER_BASE_URL") or DEFAULT_BASE_URL,
        )
    except ValueError as e:
        raise ConfigurationError("PROVIDER_SPACE_ID and PROVIDER_USER_ID must be integers") from e


class SettingsService:
    """Resolves the provider settings for a sales channel.

    Lookup order: the sales channel's own row, the default row (no sales
    channel), then the environment.
    """

    def __init__(self, session: AsyncSession, client_factory: Optional[ClientFactory] = None):
        self.session = session
        self.settings_repo = SettingsRepository(session)
        self.client_factory = client_factory or rest_client_factory

    async def get_settings(self, sales_channel_id: Optional[str] = None) -> Settings:
        """Return settings with an API client attached.

        Raises:
            ConfigurationError: If nothing is configured for the sales channel.
        """
        row = None
        if sales_channel_id is not None:
            row = await self.settings_repo.get_for_sales_channel(sales_channel_id)
        if row is None:
            row = await self.settings_repo.get_for_sales_channel(None)

        if row is not None:
            settings = Settings(
                space_id=row.space_id,
                user_id=row.user_id,
                application_key=row.application_key,
                base_url=row.base_url or DEFAULT_BASE_URL,
            )
        else:
            settings = settings_from_env()

        if settings is None:
            raise ConfigurationError(
                f"No provider settings configured for sales channel {sales_channel_id or 'default'}"
            )

        settings.api_client = self.client_factory(settings)
        logger.debug(f"Resolved settings for sales channel {sales_channel_id}: space {settings.space_id}")
        return settings
