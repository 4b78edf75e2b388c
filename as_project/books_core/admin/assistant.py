from django.contrib import admin

from books_core.models import ApiRequest, AssistantSettings, Chat

from .inlines import ChatMessageInline
from .mixins import TenantAdminMixin


@admin.register(AssistantSettings)
class AssistantSettingsAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("business", "model", "temperature", "max_tokens", "is_configured")

    @admin.display(boolean=True)
    def is_configured(self, obj):
        return obj.is_configured


@admin.register(Chat)
class ChatAdmin(TenantAdminMixin, admin.ModelAdmin):
    list_display = ("id", "business", "user", "title", "created_at")
    inlines = [ChatMessageInline]


@admin.register(ApiRequest)
class ApiRequestAdmin(admin.ModelAdmin):
    list_display = ("user", "endpoint", "created_at")
    list_filter = ("endpoint",)

    def get_queryset(self, request):
        qs = super().get_queryset(request)
        if request.user.is_superuser:
            return qs
        return qs.filter(user=request.user)
