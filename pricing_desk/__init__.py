"""Async client for the Pricing Request workflow API."""

from pricing_desk.client import PricingDeskClient

__all__ = ["PricingDeskClient"]
