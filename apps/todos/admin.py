from django.contrib import admin
from .models import Item


@admin.register(Item)
class ItemAdmin(admin.ModelAdmin):
    list_display = ['id', 'content', 'created_at']
    search_fields = ['content']
    readonly_fields = ['id', 'content', 'created_at']
