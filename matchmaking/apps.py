from django.apps import AppConfig


class MatchmakingConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "matchmaking"

    def ready(self):
        from .realtime import RealtimeHub
        from .storage import DatabaseStorage

        self.hub = RealtimeHub.from_settings(DatabaseStorage())
