from django.apps import AppConfig


class CalaimApiConfig(AppConfig):
    name = "calaim_api"
    verbose_name = "CalAIM Case Management API"

    def ready(self):
        from django.conf import settings

        # ─── DI containers ──────────────────────────────────────────
        from members_core.adapters.config.composition_root import (
            setup_di_container_from_settings as build_members_container,
        )

        from sw_visits.adapters.config.composition_root import (
            setup_di_container_from_settings as build_visits_container,
        )

        build_members_container(settings)
        build_visits_container(settings)

        # binds shared tasks to the configured broker
        from calaim_api.celery import app as _celery_app  # noqa: F401
