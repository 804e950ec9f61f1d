from django.contrib import admin
from .models import Car

@admin.register(Car)
class CarAdmin(admin.ModelAdmin):
    list_display = ("id", "make", "model", "year", "price", "status", "posted_by", "created_at")
    search_fields = ("make", "model", "posted_by__email")
    list_filter = ("status",)
