"""Test suite for vaultfs.

Test Structure:
- unit/: Unit tests for individual components
  - nio/: Gateway, probe, channels and ports (mock and in-memory ports)
  - config/: Config models and loader
  - utils/: Logging utilities
- integration/: Gateway against the host filesystem (tmp_path)
"""
