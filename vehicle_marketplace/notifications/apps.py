from django.apps import AppConfig


class NotificationsConfig(AppConfig):
    name = "vehicle_marketplace.notifications"
    label = "notifications"
    verbose_name = "Notifications"
