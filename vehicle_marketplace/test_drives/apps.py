from django.apps import AppConfig


class TestDrivesConfig(AppConfig):
    name = "vehicle_marketplace.test_drives"
    label = "test_drives"
    verbose_name = "Test Drives"
