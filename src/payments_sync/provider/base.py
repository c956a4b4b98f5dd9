"""Interface of the payment provider API used by the reconciliation services."""

from abc import ABC, abstractmethod
from typing import List, Optional

from .models import (
    EntityQuery,
    PaymentMethodConfiguration,
    Refund,
    RefundCreate,
    Transaction,
)


class ProviderClientBase(ABC):
    """Base class for provider API clients."""

    @abstractmethod
    async def search_payment_method_configurations(
        self,
        space_id: int,
        query: Optional[EntityQuery] = None,
    ) -> List[PaymentMethodConfiguration]:
        """Return the payment method configurations of a space.

        Args:
            space_id: Provider space to search in.
            query: Optional query; an empty query returns every configuration.

        Raises:
            ProviderUnavailable: If the provider cannot be reached.
            ProviderProtocolError: If the response cannot be decoded.
        """
        raise NotImplementedError

    @abstractmethod
    async def refund(self, space_id: int, refund: RefundCreate) -> Refund:
        """Submit a refund and return the refund as created by the provider."""
        raise NotImplementedError

    @abstractmethod
    async def read_transaction(self, space_id: int, transaction_id: int) -> Transaction:
        """Read a single transaction."""
        raise NotImplementedError

    async def close(self) -> None:
        """Release network resources held by the client."""
        return None
