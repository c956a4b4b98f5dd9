# payments_sync package
__version__ = "0.1.0"

from .database import (
    PaymentMethod,
    PaymentMethodConfigurationMirror,
    RefundMirror,
    TransactionMirror,
    MirrorState,
    init_db,
    close_db,
    get_db,
)
from .exceptions import (
    PaymentsSyncError,
    ConfigurationError,
    ProviderError,
    ProviderUnavailable,
    ProviderProtocolError,
    ProviderApiError,
    RecordNotFound,
    MediaPipelineFailure,
    PersistenceFailure,
)
from .settings import Settings, SettingsService

# Reconciliation exports
from .reconciliation import (
    ConfigSyncEngine,
    RefundReconciler,
    PaymentMethodPayloadBuilder,
    RefundPayloadBuilder,
    SynchronizationResult,
    MediaService,
)
