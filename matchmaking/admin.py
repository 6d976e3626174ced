from django.contrib import admin
from .models import UserProfile, MatchRequest, MatchConnection, HiddenMatch, ChatMessage


@admin.register(UserProfile)
class UserProfileAdmin(admin.ModelAdmin):
    list_display = ("user", "gamertag", "location", "age", "created_at")
    search_fields = ("gamertag", "user__username", "location")


@admin.register(MatchRequest)
class MatchRequestAdmin(admin.ModelAdmin):
    list_display = ("game_name", "game_mode", "user", "status", "region", "created_at")
    list_filter = ("status", "game_mode", "region")
    search_fields = ("game_name", "tournament_name", "user__username")
    readonly_fields = ("id", "created_at", "updated_at")
    date_hierarchy = "created_at"


@admin.register(MatchConnection)
class MatchConnectionAdmin(admin.ModelAdmin):
    list_display = ("request", "requester", "accepter", "status", "created_at")
    list_filter = ("status", "created_at")
    search_fields = ("requester__username", "accepter__username", "request__game_name")
    readonly_fields = ("id", "created_at", "updated_at")


@admin.register(HiddenMatch)
class HiddenMatchAdmin(admin.ModelAdmin):
    list_display = ("user", "match_request", "created_at")
    search_fields = ("user__username",)


@admin.register(ChatMessage)
class ChatMessageAdmin(admin.ModelAdmin):
    list_display = ["sender", "receiver", "connection", "content_preview", "created_at"]
    list_filter = ["created_at"]
    search_fields = ["message", "sender__username", "receiver__username"]
    readonly_fields = ["created_at"]

    def content_preview(self, obj):
        return obj.message[:50] + "..." if len(obj.message) > 50 else obj.message

    content_preview.short_description = "Message"
