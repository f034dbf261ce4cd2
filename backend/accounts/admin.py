from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from accounts.models import User
from drivers.models import DriverProfile


class DriverProfileInline(admin.StackedInline):
    model = DriverProfile
    can_delete = False
    extra = 0
    readonly_fields = ("is_available", "last_location_update")


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """Riders and drivers share one user table; drivers get their profile inline."""

    list_display = ("username", "display_name", "role", "phone_number", "completed_rides", "is_active")
    list_filter = ("role", "is_active")
    search_fields = ("username", "first_name", "last_name", "phone_number")
    ordering = ("-date_joined",)

    fieldsets = BaseUserAdmin.fieldsets + (
        ("Ride account", {"fields": ("role", "phone_number", "profile_picture", "completed_rides")}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ("Ride account", {"fields": ("role", "phone_number")}),
    )
    readonly_fields = ("completed_rides",)

    def get_inlines(self, request, obj):
        if obj is not None and obj.role == User.ROLE_DRIVER:
            return [DriverProfileInline]
        return []
