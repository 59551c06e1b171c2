"""Shared domain-level interfaces and protocols."""

from .payment_gateway_protocol import PaymentGatewayProtocol

__all__ = ["PaymentGatewayProtocol"]
