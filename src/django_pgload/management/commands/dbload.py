from __future__ import annotations

import sys
from pathlib import Path

from django.conf import settings as django_settings
from django.core.management.base import BaseCommand, CommandError, CommandParser

from django_pgload.db.registry import get_destination
from django_pgload.exceptions import DestinationError
from django_pgload.signals import post_db_load, pre_db_load


class Command(BaseCommand):
    help = "Load a SQL dump into a database through psql."

    def add_arguments(self, parser: CommandParser) -> None:
        parser.add_argument(
            "-d",
            "--database",
            default="",
            help="Database alias to load into. Required when multiple databases are configured.",
        )
        parser.add_argument(
            "-i",
            "--input-path",
            default="-",
            help="SQL file to load. Use '-' (the default) to read from stdin.",
        )
        parser.add_argument(
            "--wipe",
            action="store_true",
            default=None,
            help="Drop and recreate the public schema before loading.",
        )
        parser.add_argument(
            "--noinput",
            action="store_false",
            dest="interactive",
            default=True,
            help="Do not prompt for confirmation before loading.",
        )

    def handle(self, *args: object, **options: object) -> None:
        database = str(options["database"])
        input_path = str(options["input_path"])
        wipe = options["wipe"]
        interactive = bool(options["interactive"])
        verbosity = int(options["verbosity"])  # type: ignore[arg-type]

        if not database:
            if len(django_settings.DATABASES) > 1:
                raise CommandError(
                    "Multiple databases are configured. Please specify which one to load into with --database."
                )
            database = next(iter(django_settings.DATABASES))
        elif database not in django_settings.DATABASES:
            raise CommandError(f"Database '{database}' is not configured.")

        if interactive and input_path == "-":
            raise CommandError("Reading the dump from stdin requires --noinput.")

        data = self._read_input(input_path)
        destination = get_destination(database, wipe_database=bool(wipe) if wipe is not None else None)

        if interactive:
            action = "Wipe and load" if destination.wipe_database else "Load"
            answer = input(f"{action} database '{database}' from '{input_path}'? [y/N] ").strip().lower()
            if answer not in {"y", "yes"}:
                self.stdout.write("Load cancelled.")
                raise SystemExit(0)

        pre_db_load.send(sender=self.__class__, database=database, path=input_path)

        if verbosity >= 1:
            self.stdout.write(f"Loading {len(data)} bytes into database '{database}' from {input_path}")

        try:
            destination.initialize()
            destination.write(data)
        except DestinationError as exc:
            self.stderr.write(f"Database load failed: {exc}")
            raise SystemExit(1) from exc

        post_db_load.send(sender=self.__class__, database=database)

        if verbosity >= 1:
            self.stdout.write(self.style.SUCCESS(f"Load completed from: {input_path}"))

    @staticmethod
    def _read_input(input_path: str) -> bytes:
        if input_path == "-":
            return sys.stdin.buffer.read()
        path = Path(input_path)
        if not path.is_file():
            raise CommandError(f"Input file '{input_path}' does not exist.")
        return path.read_bytes()
