"""Wire models for the payment provider's API.

Field names follow Python conventions; the provider speaks camelCase, which is
handled through aliases. Unknown fields are kept (``extra = "allow"``) so that
``to_payload()`` returns the complete entity as the provider sent it.
"""

import enum
from typing import Optional, Dict, Any, List

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


class CreationEntityState(str, enum.Enum):
    """Lifecycle states of provider configuration entities."""
    CREATE = "CREATE"
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DELETING = "DELETING"
    DELETED = "DELETED"


class TransactionState(str, enum.Enum):
    """Provider transaction states."""
    CREATE = "CREATE"
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PROCESSING = "PROCESSING"
    FAILED = "FAILED"
    AUTHORIZED = "AUTHORIZED"
    VOIDED = "VOIDED"
    COMPLETED = "COMPLETED"
    FULFILL = "FULFILL"
    DECLINE = "DECLINE"


class RefundState(str, enum.Enum):
    """Provider refund states."""
    CREATE = "CREATE"
    SCHEDULED = "SCHEDULED"
    PENDING = "PENDING"
    MANUAL_CHECK = "MANUAL_CHECK"
    FAILED = "FAILED"
    SUCCESSFUL = "SUCCESSFUL"


class RefundType(str, enum.Enum):
    """How a refund was initiated."""
    CUSTOMER_INITIATED_AUTOMATIC = "CUSTOMER_INITIATED_AUTOMATIC"
    CUSTOMER_INITIATED_MANUAL = "CUSTOMER_INITIATED_MANUAL"
    MERCHANT_INITIATED_ONLINE = "MERCHANT_INITIATED_ONLINE"
    MERCHANT_INITIATED_OFFLINE = "MERCHANT_INITIATED_OFFLINE"


class ProviderModel(BaseModel):
    """Base class for provider entities."""

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "allow"

    def to_payload(self) -> Dict[str, Any]:
        """Return the JSON-compatible entity in the provider's own field names."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class EntityQuery(ProviderModel):
    """Search query sent to the provider's ``search`` endpoints."""
    filter: Optional[Dict[str, Any]] = None
    order_bys: List[Dict[str, Any]] = Field(default_factory=list)
    number_of_entities: Optional[int] = None
    starting_entity: Optional[int] = None


class PaymentMethodConfiguration(ProviderModel):
    """A payment method as configured in a provider space."""
    id: int
    space_id: int
    state: CreationEntityState
    sort_order: int = 0
    name: str = ""
    resolved_title: Dict[str, str] = Field(default_factory=dict)
    resolved_description: Dict[str, str] = Field(default_factory=dict)
    resolved_image_url: Optional[str] = None


class Transaction(ProviderModel):
    """A provider transaction; only the fields the refund policy reads are typed."""
    id: int
    linked_space_id: Optional[int] = None
    state: Optional[TransactionState] = None
    currency: Optional[str] = None
    authorization_amount: float = 0.0
    completed_amount: float = 0.0
    refunded_amount: float = 0.0
    merchant_reference: Optional[str] = None


class RefundCreate(ProviderModel):
    """Outbound refund request."""
    transaction: int
    amount: float
    # Sent as the spaceId query parameter, not in the body
    space_id: Optional[int] = Field(None, exclude=True)
    external_id: str
    type: RefundType = RefundType.MERCHANT_INITIATED_ONLINE
    merchant_reference: Optional[str] = None


class Refund(ProviderModel):
    """A refund as returned by the provider."""
    id: int
    linked_space_id: Optional[int] = None
    state: Optional[RefundState] = None
    amount: Optional[float] = None
    external_id: Optional[str] = None
    transaction: Optional[Transaction] = None

    @property
    def transaction_id(self) -> Optional[int]:
        return self.transaction.id if self.transaction else None
