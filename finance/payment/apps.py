from django.apps import AppConfig


class PaymentConfig(AppConfig):
    default_auto_field = 'django.db.models.BigAutoField'
    name = 'finance.payment'
    label = 'payment'
    verbose_name = 'Payments'
