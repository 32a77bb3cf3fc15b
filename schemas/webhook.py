"""Webhook processing results and acknowledgement schemas."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from core.constants import ReasonCode


class HandlerOutcome(str, Enum):
    """How an event handler disposed of an event."""

    APPLIED = "applied"  # state was written
    SKIPPED = "skipped"  # permanently unprocessable, acknowledged to stop retries
    IGNORED = "ignored"  # event type we do not act on
    FAILED = "failed"  # transient failure, the processor should redeliver


class HandlerResult(BaseModel):
    """Tagged result of processing a single webhook event."""

    outcome: HandlerOutcome
    reason: ReasonCode | None = None
    event_id: str | None = None
    event_type: str | None = None
    details: dict[str, Any] = Field(default_factory=dict)

    @property
    def success(self) -> bool:
        """Whether the delivery should be acknowledged with a 2xx."""
        return self.outcome != HandlerOutcome.FAILED

    @classmethod
    def applied(cls, **details: Any) -> "HandlerResult":
        return cls(outcome=HandlerOutcome.APPLIED, details=details)

    @classmethod
    def skipped(cls, reason: ReasonCode, **details: Any) -> "HandlerResult":
        return cls(outcome=HandlerOutcome.SKIPPED, reason=reason, details=details)

    @classmethod
    def ignored(cls, reason: ReasonCode = ReasonCode.UNHANDLED_EVENT_TYPE) -> "HandlerResult":
        return cls(outcome=HandlerOutcome.IGNORED, reason=reason)

    @classmethod
    def failed(cls, reason: ReasonCode, **details: Any) -> "HandlerResult":
        return cls(outcome=HandlerOutcome.FAILED, reason=reason, details=details)


class WebhookAck(BaseModel):
    """Body returned to the processor on successful acknowledgement."""

    received: bool = Field(default=True, description="Event was received")


class WebhookErrorResponse(BaseModel):
    """Body returned to the processor when an event is rejected or fails."""

    error: str = Field(..., description="Error message")
    reason: ReasonCode | None = Field(None, description="Reason code")
