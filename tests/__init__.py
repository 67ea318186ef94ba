"""
OneNode SDK Test Suite.

This package contains:
- unit/: Unit tests (no network, no service)
- integration/: Client tests against an httpx mock transport
"""
