"""Reconciliation of local mirrors with the payment provider.

This module keeps the local catalog consistent with the provider, which is
the system of record.

Features:
- Mirror payment method configurations as payment methods, with icons and translations
- Relay refunds to the provider and record them locally
- Build persisted records and outbound requests from provider models
"""

from .models import (
    RefundRequest,
    SynchronizationRequest,
    SynchronizationResult,
)
from .media import (
    DownloadedFile,
    HttpMediaDownloader,
    MediaDownloader,
    MediaService,
)
from .payload import (
    PAYMENT_HANDLER_IDENTIFIER,
    PLUGIN_BASE_CLASS,
    POSITION_OFFSET,
    PaymentMethodPayloadBuilder,
    RefundPayloadBuilder,
    build_translations,
)
from .configuration_sync import ConfigSyncEngine
from .refunds import RefundReconciler

__all__ = [
    # Models
    "RefundRequest",
    "SynchronizationRequest",
    "SynchronizationResult",
    # Media
    "DownloadedFile",
    "HttpMediaDownloader",
    "MediaDownloader",
    "MediaService",
    # Payloads
    "PAYMENT_HANDLER_IDENTIFIER",
    "PLUGIN_BASE_CLASS",
    "POSITION_OFFSET",
    "PaymentMethodPayloadBuilder",
    "RefundPayloadBuilder",
    "build_translations",
    # Core Components
    "ConfigSyncEngine",
    "RefundReconciler",
]
