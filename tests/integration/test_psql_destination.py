from __future__ import annotations

from dataclasses import replace

import pytest

from django_pgload.db.postgresql import PsqlDestination
from django_pgload.exceptions import ProcessFailed, SpawnFailed
from django_pgload.runner import SubprocessExecutor

from .conftest import psql_scalar, requires_postgres

pytestmark = [pytest.mark.integration, requires_postgres]


class TestPsqlDestinationIntegration:
    def test_wipe_and_load(self, pg_target):
        destination = PsqlDestination(pg_target, wipe_database=True)

        destination.initialize()
        destination.write(b"CREATE TABLE entry (id int primary key, name text);\n")
        destination.write(b"INSERT INTO entry VALUES (1, 'one'), (2, 'two');\n")

        assert psql_scalar(pg_target, "SELECT count(*) FROM entry") == "2"

    def test_wipe_empties_public_schema(self, pg_target):
        destination = PsqlDestination(pg_target, wipe_database=True)
        destination.initialize()
        destination.write(b"CREATE TABLE leftover (id int);\n")

        destination.initialize()

        assert psql_scalar(pg_target, "SELECT count(*) FROM pg_tables WHERE schemaname = 'public'") == "0"

    def test_select_one(self, pg_target):
        destination = PsqlDestination(pg_target)

        destination.initialize()

        assert destination.write(b"SELECT 1;").succeeded

    def test_schema_payload_is_not_idempotent(self, pg_target):
        destination = PsqlDestination(pg_target, wipe_database=True)
        destination.initialize()
        payload = b"CREATE TABLE once_only (id int);\n"

        destination.write(payload)
        with pytest.raises(ProcessFailed):
            destination.write(payload)

    def test_wrong_password_fails(self, pg_target):
        destination = PsqlDestination(
            replace(pg_target, password="definitely-wrong"),
            wipe_database=True,
            executor=SubprocessExecutor(capture_stderr=True),
        )

        with pytest.raises((ProcessFailed, SpawnFailed)):
            destination.initialize()
        with pytest.raises((ProcessFailed, SpawnFailed)) as exc_info:
            destination.write(b"SELECT 1;")

        assert "definitely-wrong" not in str(exc_info.value)

    def test_unreachable_host_fails(self, pg_target):
        destination = PsqlDestination(replace(pg_target, host="127.0.0.1", port=1))

        with pytest.raises((ProcessFailed, SpawnFailed)):
            destination.write(b"SELECT 1;")
