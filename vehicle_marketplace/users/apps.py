from django.apps import AppConfig


class UsersConfig(AppConfig):
    name = "vehicle_marketplace.users"
    label = "users"
    verbose_name = "Users"
