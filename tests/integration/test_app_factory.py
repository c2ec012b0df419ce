"""The production app factory, booted in a clean interpreter.

Test modules import every element before the session domain fixture runs, so
only a separate process shows what ``create_app()`` registers on its own.
"""

import os
import subprocess
import sys
import textwrap
from pathlib import Path

SRC = Path(__file__).resolve().parents[2] / "src"

BOOT_AND_REGISTER = textwrap.dedent(
    """
    from fastapi.testclient import TestClient

    from bookstore.api.app import create_app
    from bookstore.domain import bookstore

    client = TestClient(create_app())
    response = client.post(
        "/api/user/register",
        json={"username": "fresh", "email": "fresh@example.com", "password": "secret123", "full_name": "Fresh Start"},
    )
    assert response.status_code == 201, response.text

    login = client.post("/api/user/login", json={"email": "fresh@example.com", "password": "secret123"})
    assert login.status_code == 200, login.text

    print(",".join(sorted(record.cls.__name__ for record in bookstore.registry.aggregates.values())))
    """
)


def test_create_app_registers_whole_domain(tmp_path):
    env = {
        **os.environ,
        "PYTHONPATH": os.pathsep.join(filter(None, [str(SRC), os.environ.get("PYTHONPATH")])),
        "PROTEAN_ENV": "test",
        "UPLOAD_DIR": str(tmp_path / "uploads"),
        "LOG_DIR": str(tmp_path / "logs"),
        "PASSWORD_HASH_ITERATIONS": "1000",
    }
    env.pop("DATABASE_URL", None)

    result = subprocess.run(
        [sys.executable, "-c", BOOT_AND_REGISTER],
        env=env,
        capture_output=True,
        text=True,
        timeout=120,
    )

    assert result.returncode == 0, result.stderr
    aggregates = set(result.stdout.strip().splitlines()[-1].split(","))
    assert {
        "Admin",
        "Book",
        "Cart",
        "Customer",
        "Order",
        "Payment",
        "Publisher",
        "TransactionSequence",
        "User",
    } <= aggregates
