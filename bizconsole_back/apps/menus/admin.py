from django.contrib import admin
from .models import Menu


# Admin 등록
@admin.register(Menu)
class MenuAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "parent", "order", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")
    ordering = ("order", "id")
