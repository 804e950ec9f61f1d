from django.contrib import admin
from django.contrib.auth import get_user_model
from rolepermissions.roles import get_user_roles
from vehicle_marketplace.users.models import Profile

User = get_user_model()


class ProfileInline(admin.StackedInline):
    model = Profile
    can_delete = False
    verbose_name_plural = 'Profile'
    fields = ['first_name', 'last_name', 'contact', 'created_at', 'updated_at']
    readonly_fields = ['created_at', 'updated_at']


@admin.register(User)
class UserAdmin(admin.ModelAdmin):
    list_display = ("email", "roles", "is_active", "is_staff", "date_joined")
    search_fields = ("email",)
    list_filter = ("is_active", "is_staff")
    inlines = [ProfileInline]

    def roles(self, obj):
        return ", ".join(role.get_name() for role in get_user_roles(obj)) or "-"
