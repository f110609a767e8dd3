"""
Pytest configuration and shared fixtures.
"""
import pytest
from pathlib import Path

from sqlcommands.sql import Sandbox, create_table, insert


USERS = [
    {"name": "John Doe", "email": "john@example.com", "age": 28, "status": "active"},
    {"name": "Jane Smith", "email": "jane@example.com", "age": 34, "status": "active"},
    {"name": "Bob Johnson", "email": "bob@example.com", "age": 45, "status": "inactive"},
    {"name": "Alice Brown", "email": "alice@example.com", "age": 29, "status": "active"},
]

ORDERS = [
    {"user_id": 1, "total": 999.99, "status": "completed"},
    {"user_id": 2, "total": 109.98, "status": "pending"},
    {"user_id": 1, "total": 29.99, "status": "shipped"},
    {"user_id": 3, "total": 19.99, "status": "completed"},
]


@pytest.fixture
def project_root():
    """Return project root directory."""
    return Path(__file__).parent.parent


@pytest.fixture
def sandbox(tmp_path):
    """Sandbox over an empty database file."""
    sb = Sandbox(tmp_path / "practice.sqlite")
    yield sb
    sb.close()


@pytest.fixture
def shop_sandbox(sandbox):
    """
    Sandbox with users/orders tables and sample rows.
    """
    sandbox.execute(create_table("users", {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "name": "TEXT NOT NULL",
        "email": "TEXT UNIQUE NOT NULL",
        "age": "INTEGER",
        "status": "TEXT DEFAULT 'active'",
    }))
    sandbox.execute(create_table("orders", {
        "id": "INTEGER PRIMARY KEY AUTOINCREMENT",
        "user_id": "INTEGER NOT NULL",
        "total": "DECIMAL(10,2)",
        "status": "TEXT DEFAULT 'pending'",
        "FOREIGN KEY (user_id)": "REFERENCES users(id)",
    }))
    for user in USERS:
        sandbox.execute(insert("users", user))
    for order in ORDERS:
        sandbox.execute(insert("orders", order))
    return sandbox


# Markers
def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests that execute against SQLite")
