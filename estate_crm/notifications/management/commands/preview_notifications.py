"""
notifications/management/commands/preview_notifications.py

Logs in to the CRM API as the given user, derives the notification
feed once and prints it in ranked order. Useful to check thresholds
against live data without starting the web server.
"""

import os

from django.core.management.base import BaseCommand, CommandError
from django.utils import timezone

from accounts.session import SessionRegistry
from api_client import ApiError
from notifications.scheduler import NotificationScheduler


class Command(BaseCommand):
    help = "Print the derived notification feed for one CRM user"

    def add_arguments(self, parser):
        parser.add_argument("--username", required=True)
        parser.add_argument(
            "--password",
            default=os.environ.get("CRM_PASSWORD"),
            help="Defaults to the CRM_PASSWORD environment variable",
        )
        parser.add_argument(
            "--unread-only",
            action="store_true",
            help="Only list unread notifications",
        )

    def handle(self, *args, **options):
        if not options["password"]:
            raise CommandError("Provide --password or set CRM_PASSWORD")

        # Background polling off: login refreshes the feed once, inline
        registry = SessionRegistry(scheduler=NotificationScheduler(enabled=False))

        try:
            crm_session = registry.login(options["username"], options["password"])
        except ApiError as exc:
            raise CommandError(f"Login failed: {exc}") from exc

        try:
            aggregator = crm_session.aggregator
            if aggregator.last_error is not None:
                raise CommandError(f"Refresh failed: {aggregator.last_error}")

            now = timezone.now()
            self.stdout.write(
                self.style.NOTICE(
                    f"[{now:%Y-%m-%d %H:%M:%S}] Notifications for {crm_session}"
                )
            )

            shown = 0
            for notification in aggregator.notifications:
                if options["unread_only"] and notification.read:
                    continue
                shown += 1
                self.stdout.write(
                    f"{notification.priority.upper():<6} "
                    f"{notification.timestamp:%Y-%m-%d %H:%M} "
                    f"{notification.title}: {notification.message}"
                )

            self.stdout.write(
                self.style.SUCCESS(
                    f"{shown} notifications, {aggregator.unread_count} unread"
                )
            )
        finally:
            registry.logout(crm_session.session_id)
