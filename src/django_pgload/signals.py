from django.dispatch import Signal

# Sent with ``database`` and ``path`` before a payload is loaded.
pre_db_load = Signal()
# Sent with ``database`` after a payload was loaded successfully.
post_db_load = Signal()
