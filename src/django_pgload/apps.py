from django.apps import AppConfig


class DjangoPgloadConfig(AppConfig):
    name = "django_pgload"
    verbose_name = "Django pgload"
