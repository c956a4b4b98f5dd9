"""Database module for the local catalog and provider mirrors."""

from .models import (
    Base,
    Language,
    Media,
    MediaDefaultFolder,
    MediaFolder,
    MirrorState,
    PaymentMethod,
    PaymentMethodConfigurationMirror,
    PaymentMethodTranslation,
    Plugin,
    PluginSettings,
    RefundMirror,
    TransactionMirror,
    generate_id,
)
from .session import (
    get_db,
    get_database_url,
    init_db,
    close_db,
    create_async_engine,
    get_async_session_factory,
    get_db_context,
)
from .repository import (
    Criteria,
    EntityRepository,
    LanguageRepository,
    MediaDefaultFolderRepository,
    MediaFolderRepository,
    MediaRepository,
    PaymentMethodConfigurationRepository,
    PaymentMethodRepository,
    PluginRepository,
    RefundRepository,
    SettingsRepository,
    TransactionRepository,
    compact,
)

__all__ = [
    # Models
    "Base",
    "Language",
    "Media",
    "MediaDefaultFolder",
    "MediaFolder",
    "MirrorState",
    "PaymentMethod",
    "PaymentMethodConfigurationMirror",
    "PaymentMethodTranslation",
    "Plugin",
    "PluginSettings",
    "RefundMirror",
    "TransactionMirror",
    "generate_id",
    # Session management
    "get_db",
    "get_database_url",
    "init_db",
    "close_db",
    "create_async_engine",
    "get_async_session_factory",
    "get_db_context",
    # Repositories
    "Criteria",
    "EntityRepository",
    "LanguageRepository",
    "MediaDefaultFolderRepository",
    "MediaFolderRepository",
    "MediaRepository",
    "PaymentMethodConfigurationRepository",
    "PaymentMethodRepository",
    "PluginRepository",
    "RefundRepository",
    "SettingsRepository",
    "TransactionRepository",
    "compact",
]
