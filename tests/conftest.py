"""
Shared pytest configuration.

Settings are read at import time, so the environment is prepared before any
application module is imported.
"""
import os

os.environ.setdefault("SECRET_KEY", "test-secret-key-with-at-least-32-characters")
os.environ.setdefault("ENVIRONMENT", "test")

from tests.fixtures.auth import (  # noqa: E402,F401
    auth_test_data,
    client,
    make_evaluator,
    tenant_registry,
)
