from django.apps import AppConfig


class CoreConfig(AppConfig):
    """Piezas transversales: errores de dominio, logging, métricas y middleware."""
    default_auto_field = "django.db.models.BigAutoField"
    name = "core"
    verbose_name = "Núcleo"
