"""Upstream data providers.

- core: error taxonomy, error mapping and collaborator protocols
- polymarket: Gamma API client, cache and the event transformation pipeline
"""
