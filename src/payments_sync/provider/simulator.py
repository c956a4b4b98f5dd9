"""In-memory provider for running the reconciliation services without network access."""

import logging
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from ..exceptions import ProviderApiError, ProviderUnavailable
from .base import ProviderClientBase
from .models import (
    EntityQuery,
    PaymentMethodConfiguration,
    Refund,
    RefundCreate,
    RefundState,
    Transaction,
)

logger = logging.getLogger(__name__)


@dataclass
class SimulatorConfig:
    """Configuration for simulator behavior."""
    unavailable: bool = False  # every call raises ProviderUnavailable
    refund_state: RefundState = RefundState.SUCCESSFUL
    first_refund_id: int = 1


class SimulatorProviderClient(ProviderClientBase):
    """
    Provider client that serves configurations, transactions and refunds from memory.

    Features:
    - Per-space payment method configurations
    - Refunds update the stored transaction's refunded amount
    - Call counters for asserting that no provider call happened
    """

    def __init__(self, config: Optional[SimulatorConfig] = None):
        self.config = config or SimulatorConfig()
        self._configurations: Dict[int, List[PaymentMethodConfiguration]] = defaultdict(list)
        self._transactions: Dict[int, Transaction] = {}
        self._refunds: Dict[int, Refund] = {}
        self._next_refund_id = self.config.first_refund_id
        self.calls: Dict[str, int] = defaultdict(int)
        logger.info("SimulatorProviderClient initialized")

    def add_configuration(self, configuration: PaymentMethodConfiguration) -> None:
        self._configurations[configuration.space_id].append(configuration)

    def set_configurations(self, space_id: int, configurations: List[PaymentMethodConfiguration]) -> None:
        self._configurations[space_id] = list(configurations)

    def add_transaction(self, transaction: Transaction) -> None:
        self._transactions[transaction.id] = transaction

    def get_refund(self, refund_id: int) -> Optional[Refund]:
        return self._refunds.get(refund_id)

    def _check_available(self, operation: str) -> None:
        self.calls[operation] += 1
        if self.config.unavailable:
            raise ProviderUnavailable(f"Simulated outage during {operation}")

    async def search_payment_method_configurations(
        self,
        space_id: int,
        query: Optional[EntityQuery] = None,
    ) -> List[PaymentMethodConfiguration]:
        self._check_available("search_payment_method_configurations")
        return [c.model_copy(deep=True) for c in self._configurations.get(space_id, [])]

    async def refund(self, space_id: int, refund: RefundCreate) -> Refund:
        self._check_available("refund")
        transaction = self._transactions.get(refund.transaction)
        if transaction is None:
            raise ProviderApiError(f"Transaction {refund.transaction} not found", status_code=404)

        transaction.refunded_amount = round(transaction.refunded_amount + refund.amount, 2)
        created = Refund(
            id=self._next_refund_id,
            linked_space_id=space_id,
            state=self.config.refund_state,
            amount=refund.amount,
            external_id=refund.external_id,
            transaction=transaction.model_copy(deep=True),
        )
        self._next_refund_id += 1
        self._refunds[created.id] = created
        logger.info(f"Simulated refund {created.id} for transaction {transaction.id}")
        return created

    async def read_transaction(self, space_id: int, transaction_id: int) -> Transaction:
        self._check_available("read_transaction")
        transaction = self._transactions.get(transaction_id)
        if transaction is None:
            raise ProviderApiError(f"Transaction {transaction_id} not found", status_code=404)
        return transaction.model_copy(deep=True)
