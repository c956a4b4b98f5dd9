"""Payment provider API models and clients."""

from .models import (
    CreationEntityState,
    EntityQuery,
    PaymentMethodConfiguration,
    ProviderModel,
    Refund,
    RefundCreate,
    RefundState,
    RefundType,
    Transaction,
    TransactionState,
)
from .base import ProviderClientBase
from .rest_client import RestProviderClient, compute_mac, DEFAULT_BASE_URL
from .simulator import SimulatorProviderClient, SimulatorConfig

__all__ = [
    # Models
    "CreationEntityState",
    "EntityQuery",
    "PaymentMethodConfiguration",
    "ProviderModel",
    "Refund",
    "RefundCreate",
    "RefundState",
    "RefundType",
    "Transaction",
    "TransactionState",
    # Clients
    "ProviderClientBase",
    "RestProviderClient",
    "compute_mac",
    "DEFAULT_BASE_URL",
    "SimulatorProviderClient",
    "SimulatorConfig",
]
