"""
Django admin configuration for chat models.

Provides admin interfaces for:
- Chat inspection (members, unread counter)
- Message moderation
"""

from django.contrib import admin

from chat.models import Chat, Message


class MessageInline(admin.TabularInline):
    """Inline display of messages in chat admin."""

    model = Message
    extra = 0
    fields = ["sender", "text", "image", "read", "created_at"]
    readonly_fields = ["created_at"]
    raw_id_fields = ["sender"]
    ordering = ["-created_at"]


@admin.register(Chat)
class ChatAdmin(admin.ModelAdmin):
    """Admin interface for Chat model."""

    list_display = ["id", "unread_messages", "created_at", "updated_at"]
    list_filter = ["created_at"]
    readonly_fields = ["created_at", "updated_at", "last_message"]
    filter_horizontal = ["members"]
    inlines = [MessageInline]
    ordering = ["-updated_at"]


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = ["id", "chat", "sender", "short_text", "read", "created_at"]
    list_filter = ["read", "created_at"]
    search_fields = ["text", "sender__email"]
    readonly_fields = ["created_at", "updated_at"]
    raw_id_fields = ["chat", "sender"]
    ordering = ["-created_at"]

    @admin.display(description="Text")
    def short_text(self, obj: Message) -> str:
        return obj.text[:50]
