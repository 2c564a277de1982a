"""
sdbaccess Test Suite
====================

Test organization mirrors the source code structure:
    tests/
    ├── test_core/           → sdbaccess.core (config, models, exceptions, logging)
    ├── test_infrastructure/ → sdbaccess.infrastructure (conversion, ItemStore)
    ├── test_integrations/   → sdbaccess.integrations (memory + AWS backends)
    ├── test_reconciliation/ → sdbaccess.reconciliation (plan + reconciler)
    ├── test_integration/    → End-to-end scenarios through the facade
    └── conftest.py          → Shared pytest fixtures

Running Tests:
    pytest                          # Run all tests
    pytest tests/test_reconciliation/
    pytest -m integration
"""
