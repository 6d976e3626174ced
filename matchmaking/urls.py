from django.urls import path

from . import api_views

# Application Namespace
app_name = "matchmaking"

# ============================================
# URL Patterns
# ============================================
urlpatterns = [
    # ==================== AUTHENTICATION ====================
    path("api/auth/register", api_views.register, name="register"),
    path("api/auth/login", api_views.login_view, name="login"),
    path("api/auth/logout", api_views.logout_view, name="logout"),
    path("api/auth/user", api_views.current_user, name="current_user"),
    # ==================== MATCH REQUESTS ====================
    path("api/match-requests", api_views.match_requests, name="match_requests"),
    path(
        "api/match-requests/<uuid:request_id>/status",
        api_views.update_match_request_status,
        name="match_request_status",
    ),
    path(
        "api/match-requests/<uuid:request_id>",
        api_views.delete_match_request,
        name="match_request_delete",
    ),
    # ==================== MATCH CONNECTIONS ====================
    path(
        "api/match-connections",
        api_views.create_match_connection,
        name="match_connections",
    ),
    path(
        "api/match-connections/<uuid:connection_id>/status",
        api_views.update_match_connection_status,
        name="match_connection_status",
    ),
    path("api/user/connections", api_views.user_connections, name="user_connections"),
    # ==================== PROFILES ====================
    path("api/users/<str:user_id>", api_views.user_detail, name="user_detail"),
    path("api/user/profile", api_views.update_profile, name="update_profile"),
    # ==================== HIDDEN MATCHES ====================
    path("api/hidden-matches", api_views.hidden_matches, name="hidden_matches"),
    path(
        "api/hidden-matches/<uuid:match_request_id>",
        api_views.unhide_match,
        name="unhide_match",
    ),
    # ==================== CHAT ====================
    # "recent" must come before the <uuid> route
    path("api/messages/recent", api_views.recent_messages, name="recent_messages"),
    path(
        "api/messages/<uuid:connection_id>",
        api_views.connection_messages,
        name="connection_messages",
    ),
    path("api/messages", api_views.send_message, name="send_message"),
    # ==================== UTILITY ====================
    path("api/health", api_views.health_check, name="health_check"),
]
