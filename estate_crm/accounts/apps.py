from django.apps import AppConfig
import os


class AccountsConfig(AppConfig):
    name = "accounts"

    def ready(self):
        from .session import SessionRegistry

        self.sessions = SessionRegistry()

        # --------------------------------------------------
        # Start APScheduler SAFELY
        # --------------------------------------------------
        # Prevent duplicate scheduler from Django autoreload
        if os.environ.get("RUN_MAIN") != "true":
            return

        self.sessions.scheduler.start()


def get_session_registry():
    from django.apps import apps

    return apps.get_app_config("accounts").sessions
