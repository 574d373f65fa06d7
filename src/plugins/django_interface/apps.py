from django.apps import AppConfig


class DjangoInterfaceConfig(AppConfig):
    """Models, admin, REST views and management commands of the case-management API."""

    name = "plugins.django_interface"
    label = "django_interface"
    verbose_name = "CalAIM Case Management"
    default_auto_field = "django.db.models.BigAutoField"
