"""Reputation, trust-badge and matching engine for an idea collaboration platform."""

__version__ = "0.1.0"
