from django.contrib import admin
from .models import Package


@admin.register(Package)
class PackageAdmin(admin.ModelAdmin):
    list_display = ("name", "price", "currency", "period", "is_active", "display_order", "updated_at")
    list_filter = ("is_active", "currency", "theme")
    search_fields = ("name",)
    ordering = ("display_order", "created_at")
