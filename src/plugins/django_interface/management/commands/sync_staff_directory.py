from __future__ import annotations

import json
from pathlib import Path

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from members_core.adapters.config.composition_root import setup_di_container_from_settings
from members_core.core.application.commands.sync_commands import UpsertStaffDirectoryCommand


class Command(BaseCommand):
    help = "Loads the social worker directory from a JSON export: [{email, name, sw_id, phone, is_supervisor}]."

    def add_arguments(self, parser):
        parser.add_argument("--file", required=True, type=str)

    def handle(self, *args, **options):
        path = Path(options["file"])
        if not path.exists():
            raise CommandError(f"File not found: {path}")
        try:
            entries = json.loads(path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise CommandError(f"Invalid JSON in {path}: {exc}") from exc
        if not isinstance(entries, list):
            raise CommandError("Expected a JSON list of directory entries")

        container = setup_di_container_from_settings(settings)
        upserted = container.command_bus().dispatch(UpsertStaffDirectoryCommand(entries=tuple(entries)))
        skipped = len(entries) - upserted
        self.stdout.write(self.style.SUCCESS(f"✅ {upserted} directory entries upserted, {skipped} skipped"))
