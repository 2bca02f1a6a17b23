from __future__ import annotations

import importlib
from typing import Any

from django.conf import settings as django_settings
from django.core.exceptions import ImproperlyConfigured

from ..exceptions import DestinationNotFound
from ..settings import get_setting
from .base import BaseDestination

DEFAULT_DESTINATION_MAPPING: dict[str, str] = {
    # PostgreSQL
    "django.db.backends.postgresql": "django_pgload.db.postgresql.PsqlDestination",
    # PostGIS
    "django.contrib.gis.db.backends.postgis": "django_pgload.db.postgresql.PsqlDestination",
    # django-prometheus wrappers
    "django_prometheus.db.backends.postgresql": "django_pgload.db.postgresql.PsqlDestination",
    "django_prometheus.db.backends.postgis": "django_pgload.db.postgresql.PsqlDestination",
}


def _import_destination(dotted_path: str) -> type[BaseDestination]:
    module_path, class_name = dotted_path.rsplit(".", 1)
    module = importlib.import_module(module_path)
    return getattr(module, class_name)


def destination_settings(database: str, wipe_database: bool | None = None) -> dict[str, Any]:
    """Collect the pgload options that apply to one database alias."""
    tunnels: dict[str, dict[str, Any]] = get_setting("TUNNELS")  # type: ignore[assignment]
    if wipe_database is None:
        wipe_database = bool(get_setting("WIPE_DATABASE"))
    return {
        "PSQL_BINARY": get_setting("PSQL_BINARY"),
        "PSQL_FLAGS": get_setting("PSQL_FLAGS"),
        "SSH_BINARY": get_setting("SSH_BINARY"),
        "CAPTURE_STDERR": get_setting("CAPTURE_STDERR"),
        "WIPE_DATABASE": wipe_database,
        "TUNNEL": tunnels.get(database),
    }


def get_destination(database: str = "default", wipe_database: bool | None = None) -> BaseDestination:
    """Get a destination instance for the given database alias.

    ``wipe_database`` overrides the ``WIPE_DATABASE`` setting when given.
    """
    db_settings: dict[str, Any] = django_settings.DATABASES[database]
    engine: str = db_settings["ENGINE"]

    # Check for per-database overrides
    destinations: dict[str, str] = get_setting("DESTINATIONS")  # type: ignore[assignment]
    if database in destinations:
        cls = _import_destination(destinations[database])
    else:
        mapping: dict[str, str] = get_setting("DESTINATION_MAPPING")  # type: ignore[assignment]
        merged = {**DEFAULT_DESTINATION_MAPPING, **mapping}
        if engine not in merged:
            raise DestinationNotFound(engine)
        cls = _import_destination(merged[engine])

    options = destination_settings(database, wipe_database)
    try:
        return cls.from_settings(db_settings, options)
    except ValueError as exc:
        raise ImproperlyConfigured(f"Invalid pgload configuration for database '{database}': {exc}") from exc
