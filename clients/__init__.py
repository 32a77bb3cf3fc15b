"""Clients package for external API integrations."""

from .resend_client import ResendClient, create_resend_client
from .stripe_client import create_stripe_client

__all__ = ["ResendClient", "create_resend_client", "create_stripe_client"]
