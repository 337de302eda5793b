from django.apps import AppConfig


class OrdersConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "orders"

    def ready(self):
        # Connect the notification receivers decorated with @receiver.
        import orders.signals  # noqa: F401
