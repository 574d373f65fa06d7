from __future__ import annotations

from django.conf import settings
from django.core.management.base import BaseCommand, CommandError
from django.utils.dateparse import parse_datetime

from members_core.adapters.config.composition_root import setup_di_container_from_settings
from members_core.core.application.commands.sync_commands import (
    SYNC_MODE_INCREMENTAL,
    SYNC_MODES,
    SyncMembersCacheCommand,
)
from members_core.core.domain.exceptions import MembersCacheError


class Command(BaseCommand):
    """
    Pulls the Caspio members table into the local cache.

    Incremental runs start from the stored watermark unless `--since` is given;
    without a watermark they fall back to a full sync.
    """

    help = "Synchronizes the local members cache from Caspio."

    def add_arguments(self, parser):
        parser.add_argument("--mode", choices=SYNC_MODES, default=SYNC_MODE_INCREMENTAL)
        parser.add_argument("--since", type=str, default=None, help="ISO datetime; overrides the watermark")
        parser.add_argument("--force", action="store_true", help="sync even when the cache is fresh")

    def handle(self, *args, **options):
        since = None
        if options["since"]:
            since = parse_datetime(options["since"])
            if since is None:
                raise CommandError(f"Invalid --since value: {options['since']}")

        container = setup_di_container_from_settings(settings)
        cmd = SyncMembersCacheCommand(mode=options["mode"], since=since, force=options["force"])

        self.stdout.write(self.style.NOTICE(f"🔄 Members sync ({cmd.mode}) started"))
        try:
            result = container.command_bus().dispatch(cmd)
        except MembersCacheError as exc:
            raise CommandError(f"Members sync failed: {exc}") from exc

        if result.skipped:
            self.stdout.write(self.style.WARNING("Cache is fresh, nothing to do (use --force)."))
            return
        style = self.style.SUCCESS if result.complete else self.style.WARNING
        self.stdout.write(
            style(
                f"✅ {result.count} rows upserted from {result.pages} pages "
                f"({result.skipped_missing_id} without id, complete={result.complete})"
            )
        )
