from django.conf import settings
from django.db import models

from ..managers import TenantManager
from .business import Business

AVAILABLE_MODELS = [
    ("gpt-4o-mini", "GPT-4o Mini"),
    ("gpt-4-turbo-preview", "GPT-4 Turbo"),
    ("gpt-3.5-turbo", "GPT-3.5 Turbo"),
]

MESSAGE_ROLES = [
    ("user", "User"),
    ("assistant", "Assistant"),
]


class AssistantSettings(models.Model):
    """Per-business chat-completion configuration for TallyAI."""

    business = models.OneToOneField(
        Business, on_delete=models.CASCADE, related_name="assistant_settings"
    )
    api_key = models.CharField(max_length=255, blank=True, default="")
    model = models.CharField(max_length=100, default="gpt-4o-mini")
    temperature = models.FloatField(default=0.7)
    max_tokens = models.PositiveIntegerField(default=2000)

    updated_at = models.DateTimeField(auto_now=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        verbose_name_plural = "assistant settings"

    def __str__(self):
        return f"TallyAI settings for {self.business}"

    @property
    def is_configured(self):
        return bool(self.api_key)


class Chat(models.Model):
    business = models.ForeignKey(Business, on_delete=models.CASCADE)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name="chats"
    )
    title = models.CharField(max_length=200, default="New Chat")
    created_at = models.DateTimeField(auto_now_add=True)

    # Enforce tenant scoping
    objects = TenantManager()

    class Meta:
        indexes = [models.Index(fields=["business", "user"], name="chat_business_user_idx")]

    def __str__(self):
        return self.title


class ChatMessage(models.Model):
    chat = models.ForeignKey(
        Chat, on_delete=models.CASCADE, related_name="messages")
    role = models.CharField(max_length=20, choices=MESSAGE_ROLES)
    content = models.TextField()
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["created_at", "id"]

    def __str__(self):
        return f"{self.role}: {self.content[:40]}"


class ApiRequest(models.Model):
    """One row per assistant call; counted for per-user rate limiting."""

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="api_requests",
    )
    endpoint = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"{self.user} {self.endpoint} @ {self.created_at:%Y-%m-%d %H:%M}"
