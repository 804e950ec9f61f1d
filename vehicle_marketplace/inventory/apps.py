from django.apps import AppConfig


class InventoryConfig(AppConfig):
    name = "vehicle_marketplace.inventory"
    label = "inventory"
    verbose_name = "Inventory"
