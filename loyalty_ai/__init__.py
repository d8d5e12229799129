"""Loyalty AI backend: subscription-gated, quota-metered generative relay."""

__version__ = "0.2.0"
