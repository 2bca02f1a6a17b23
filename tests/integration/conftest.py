from __future__ import annotations

import os
import shutil
import subprocess

import pytest

from django_pgload.db.base import ConnectionTarget

PG_HOST = os.environ.get("TEST_PG_HOST", "localhost")
PG_PORT = int(os.environ.get("TEST_PG_PORT", "5432"))
PG_USER = os.environ.get("TEST_PG_USER", "django_pgload")
PG_PASSWORD = os.environ.get("TEST_PG_PASSWORD", "testpassword")
PG_NAME = os.environ.get("TEST_PG_NAME", "django_pgload_test")

# ---------------------------------------------------------------------------
# Skip markers: check real connectivity
# ---------------------------------------------------------------------------


def _pg_available() -> bool:
    if not shutil.which("psql"):
        return False
    if not shutil.which("pg_isready"):
        return False
    try:
        result = subprocess.run(
            ["pg_isready", "-h", PG_HOST, "-p", str(PG_PORT), "-U", PG_USER],
            capture_output=True,
            timeout=5,
        )
        return result.returncode == 0
    except (OSError, subprocess.TimeoutExpired):
        return False


requires_postgres = pytest.mark.skipif(not _pg_available(), reason="PostgreSQL not available")


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def pg_target() -> ConnectionTarget:
    return ConnectionTarget(PG_HOST, PG_PORT, PG_NAME, PG_USER, PG_PASSWORD)


def psql_scalar(target: ConnectionTarget, query: str) -> str:
    """Run ``query`` with psql and return the single unaligned value."""
    env = os.environ.copy()
    env["PGPASSWORD"] = target.password
    result = subprocess.run(
        [
            "psql",
            "-h",
            target.host,
            "-p",
            str(target.port),
            "-d",
            target.database,
            "-U",
            target.username,
            "--no-password",
            "-At",
            "-c",
            query,
        ],
        capture_output=True,
        env=env,
        timeout=30,
        check=True,
    )
    return result.stdout.decode().strip()
