from __future__ import annotations

RESET_TEMPLATE = (
    "DROP SCHEMA public CASCADE; "
    "CREATE SCHEMA public; "
    "GRANT ALL ON SCHEMA public TO {user}; "
    "GRANT ALL ON SCHEMA public TO public;"
)


def quote_identifier(name: str) -> str:
    """Quote ``name`` as a PostgreSQL identifier, doubling embedded quotes."""
    if not name or "\x00" in name:
        raise ValueError(f"Invalid identifier: {name!r}")
    return '"' + name.replace('"', '""') + '"'


def reset_statement(username: str) -> str:
    """Statements that empty the ``public`` schema and re-grant it.

    Destructive: every object in ``public`` is dropped with CASCADE.
    """
    return RESET_TEMPLATE.format(user=quote_identifier(username))
