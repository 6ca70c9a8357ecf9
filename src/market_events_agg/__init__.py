"""Polymarket events aggregation service."""
