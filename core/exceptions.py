"""Custom exceptions for the billing backend."""

from typing import Any

from core.constants import ReasonCode


class BillingError(Exception):
    """Base exception for the billing backend."""

    code: ReasonCode = ReasonCode.INTERNAL_ERROR

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        code: ReasonCode | None = None,
    ):
        self.message = message
        self.details = details or {}
        if code is not None:
            self.code = code
        super().__init__(self.message)


class InvalidSignatureError(BillingError):
    """Raised when a webhook signature is missing or does not verify."""

    code = ReasonCode.INVALID_SIGNATURE


class InvalidPayloadError(BillingError):
    """Raised when a verified webhook body is not a JSON event envelope."""

    code = ReasonCode.INVALID_PAYLOAD


class ValidationError(BillingError):
    """Raised when data validation fails."""

    code = ReasonCode.VALIDATION_ERROR


class AuthenticationError(BillingError):
    """Raised when authentication fails."""

    code = ReasonCode.AUTHENTICATION_ERROR


class AuthorizationError(BillingError):
    """Raised when user lacks permissions."""

    code = ReasonCode.AUTHORIZATION_ERROR


class ConflictError(BillingError):
    """Raised when the request conflicts with the user's current subscription."""

    code = ReasonCode.SUBSCRIPTION_EXISTS


class ConfigurationError(BillingError):
    """Raised when a required secret or setting is missing."""

    code = ReasonCode.CONFIGURATION_ERROR


class PersistenceError(BillingError):
    """Raised when database operations fail."""

    code = ReasonCode.PERSISTENCE_ERROR


class ExternalAPIError(BillingError):
    """Raised when external API calls fail."""

    code = ReasonCode.EXTERNAL_API_ERROR

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.service = service
        self.status_code = status_code
        merged: dict[str, Any] = {"service": service, **(details or {})}
        if status_code:
            merged["status_code"] = status_code
        super().__init__(message, merged)


class EmailDeliveryError(ExternalAPIError):
    """Raised when the email provider rejects or fails a send."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__("Resend", message, status_code, details)
