"""Models for synchronization results and trigger requests."""

from typing import Optional, List
from pydantic import BaseModel, Field


class SynchronizationResult(BaseModel):
    """Outcome of one payment method configuration sync pass."""
    space_id: int = Field(..., description="Provider space that was synchronized")
    deactivated: List[str] = Field(default_factory=list, description="Local mirror ids deactivated before re-activation")
    activated: List[str] = Field(default_factory=list, description="Local mirror ids active after the pass")
    skipped: List[int] = Field(default_factory=list, description="Remote configuration ids not in state ACTIVE")
    failed: List[int] = Field(default_factory=list, description="Remote configuration ids whose upsert failed")

    @property
    def total_fetched(self) -> int:
        return len(self.activated) + len(self.skipped) + len(self.failed)


class SynchronizationRequest(BaseModel):
    """Request body for a sync trigger."""
    sales_channel_id: Optional[str] = Field(None, description="Sales channel whose settings apply")


class RefundRequest(BaseModel):
    """Request body for creating a refund."""
    transaction_id: int = Field(..., gt=0, description="Provider transaction id")
    amount: float = Field(..., gt=0, description="Amount to refund in major units")
