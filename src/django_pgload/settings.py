from copy import deepcopy

from django.conf import settings

DEFAULTS: dict[str, object] = {
    # Restore tool
    "PSQL_BINARY": "psql",
    "PSQL_FLAGS": ["--no-password", "--set", "ON_ERROR_STOP=1"],
    "WIPE_DATABASE": False,
    # Remote execution
    "SSH_BINARY": "ssh",
    "TUNNELS": {},
    # Diagnostics
    "CAPTURE_STDERR": False,
    # Connectors
    "DESTINATIONS": {},
    "DESTINATION_MAPPING": {},
}


def get_setting(key: str) -> object:
    """Get a django-pgload setting, falling back to defaults."""
    user_settings: dict[str, object] = getattr(settings, "DJANGO_PGLOAD", {})
    if key in user_settings:
        value = user_settings[key]
        return deepcopy(value) if isinstance(value, (dict, list, set)) else value
    if key in DEFAULTS:
        value = DEFAULTS[key]
        return deepcopy(value) if isinstance(value, (dict, list, set)) else value
    msg = f"Unknown django-pgload setting: {key}"
    raise KeyError(msg)
