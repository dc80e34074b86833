from django.apps import AppConfig


class IntegrationsConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'integrations'
    verbose_name = 'Integrations'

    def ready(self):
        # Refuse to start with a vault secret that is too short
        from .utils import validate_cypher_key
        validate_cypher_key()
