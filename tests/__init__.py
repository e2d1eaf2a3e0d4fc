"""
CIRRUS Test Suite
=================

Test organization:
- tests/unit/          - Unit tests (no external dependencies)
- tests/services/      - Service tests (in-memory stores, ASGI client)

Run tests:
    pytest                          # All tests
    pytest tests/unit               # Unit tests only
    pytest -m "not integration"     # Skip integration tests
"""
