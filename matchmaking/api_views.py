"""
REST API views for GameMatch.

Every mutating endpoint pushes a real-time event through the process's
RealtimeHub after the change is stored. The push is fire-and-forget: a
failed broadcast is logged and never changes the HTTP response.
"""

import logging

from asgiref.sync import async_to_sync
from django.apps import apps
from django.contrib.auth import login, logout
from django.contrib.auth import authenticate as django_authenticate
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response

from .broadcast import BroadcastEvent, EventKind
from .models import MatchConnection, MatchRequest
from .serializers import (
    ChatMessageCreateSerializer,
    ChatMessageSerializer,
    ChatMessageWithSenderSerializer,
    HiddenMatchSerializer,
    LoginSerializer,
    MatchConnectionCreateSerializer,
    MatchConnectionSerializer,
    MatchRequestFeedSerializer,
    MatchRequestSerializer,
    ProfileUpdateSerializer,
    StatusSerializer,
    UserRegistrationSerializer,
    UserSerializer,
)

logger = logging.getLogger(__name__)


def _hub():
    return apps.get_app_config("matchmaking").hub


def _storage():
    return _hub().storage


def _broadcast_to_all(event):
    """Push ``event`` to every authenticated WebSocket session."""
    try:
        async_to_sync(_hub().dispatcher.to_all)(event)
    except Exception as e:
        logger.warning("Failed to broadcast %s: %s", event.kind, e)


def _broadcast_to_users(user_ids, event):
    """Push ``event`` to the WebSocket sessions of ``user_ids``."""
    try:
        async_to_sync(_hub().dispatcher.to_users)(user_ids, event)
    except Exception as e:
        logger.warning("Failed to broadcast %s to %s: %s", event.kind, user_ids, e)


def _message(text, http_status, **extra):
    return Response({"message": text, **extra}, status=http_status)


# ============================================
# AUTHENTICATION
# ============================================


@api_view(["POST"])
@permission_classes([AllowAny])
def register(request):
    """POST /api/auth/register - Create a user account with a gaming profile"""
    serializer = UserRegistrationSerializer(data=request.data)
    if not serializer.is_valid():
        return _message("Invalid registration data", status.HTTP_400_BAD_REQUEST, errors=serializer.errors)
    user = serializer.save()
    login(request._request, user, backend="django.contrib.auth.backends.ModelBackend")
    logger.info("Registered user %s", user.pk)
    return Response(UserSerializer(_storage().get_user(user.pk)).data, status=status.HTTP_201_CREATED)


@api_view(["POST"])
@permission_classes([AllowAny])
def login_view(request):
    """POST /api/auth/login - Start a cookie session"""
    serializer = LoginSerializer(data=request.data)
    if not serializer.is_valid():
        return _message("username and password are required", status.HTTP_400_BAD_REQUEST)

    user = django_authenticate(
        request._request,
        username=serializer.validated_data["username"],
        password=serializer.validated_data["password"],
    )
    if user is None:
        return _message("Invalid username or password", status.HTTP_400_BAD_REQUEST)

    login(request._request, user)
    return Response(UserSerializer(_storage().get_user(user.pk)).data)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def logout_view(request):
    """POST /api/auth/logout - End the cookie session"""
    logout(request._request)
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def current_user(request):
    """GET /api/auth/user - The logged-in user with profile"""
    user = _storage().get_user(request.user.pk)
    return Response(UserSerializer(user).data)


# ============================================
# MATCH REQUESTS
# ============================================


@api_view(["GET", "POST"])
@permission_classes([AllowAny])
def match_requests(request):
    """
    GET  /api/match-requests?game=&mode=&region=  - The feed, newest first
    POST /api/match-requests                      - Post a new request
    """
    if request.method == "GET":
        feed = _storage().get_match_requests(
            game=request.query_params.get("game"),
            mode=request.query_params.get("mode"),
            region=request.query_params.get("region"),
        )
        return Response(MatchRequestFeedSerializer(feed, many=True).data)

    if not request.user.is_authenticated:
        return _message("Unauthorized", status.HTTP_401_UNAUTHORIZED)

    serializer = MatchRequestSerializer(data=request.data)
    if not serializer.is_valid():
        return _message("Invalid request data", status.HTTP_400_BAD_REQUEST, errors=serializer.errors)

    match_request = _storage().create_match_request(request.user.pk, **serializer.validated_data)
    data = MatchRequestSerializer(match_request).data

    _broadcast_to_all(
        BroadcastEvent(
            kind=EventKind.REQUEST_CREATED,
            payload=data,
            note=(
                f"New {match_request.game_name} {match_request.game_mode} "
                f"match request from {match_request.user_id}"
            ),
        )
    )
    return Response(data, status=status.HTTP_201_CREATED)


def _owned_match_request(request, request_id):
    """Return ``(match_request, error_response)`` for an owner-only route."""
    match_request = _storage().get_match_request(request_id)
    if match_request is None:
        return None, _message("Match request not found", status.HTTP_404_NOT_FOUND)
    if match_request.user_id != request.user.pk:
        return None, _message(
            "You can only modify your own match requests", status.HTTP_403_FORBIDDEN
        )
    return match_request, None


@api_view(["PATCH"])
@permission_classes([IsAuthenticated])
def update_match_request_status(request, request_id):
    """PATCH /api/match-requests/<id>/status - Owner changes the status"""
    serializer = StatusSerializer(data=request.data)
    new_status = serializer.validated_data["status"] if serializer.is_valid() else None
    if new_status not in MatchRequest.Status.values:
        return _message("Invalid status", status.HTTP_400_BAD_REQUEST)

    match_request, error = _owned_match_request(request, request_id)
    if error is not None:
        return error

    try:
        updated = _storage().update_match_request_status(match_request.pk, new_status)
    except MatchRequest.DoesNotExist:
        return _message("Match request not found", status.HTTP_404_NOT_FOUND)
    data = MatchRequestSerializer(updated).data

    _broadcast_to_all(
        BroadcastEvent(
            kind=EventKind.REQUEST_UPDATED,
            payload=data,
            note=f"Match request status updated to {new_status}",
        )
    )
    return Response(data)


@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def delete_match_request(request, request_id):
    """DELETE /api/match-requests/<id> - Owner removes a request"""
    match_request, error = _owned_match_request(request, request_id)
    if error is not None:
        return error

    _storage().delete_match_request(match_request.pk)

    _broadcast_to_all(
        BroadcastEvent(
            kind=EventKind.REQUEST_DELETED,
            payload={"id": str(request_id)},
            note="Match request deleted",
        )
    )
    return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================
# MATCH CONNECTIONS
# ============================================


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def create_match_connection(request):
    """POST /api/match-connections - Ask to join someone's match request"""
    serializer = MatchConnectionCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return _message("requestId and accepterId are required", status.HTTP_400_BAD_REQUEST)

    requester_id = str(request.user.pk)
    request_id = serializer.validated_data["requestId"]
    accepter_id = serializer.validated_data["accepterId"]

    if requester_id == accepter_id:
        return _message("You cannot connect to your own match request", status.HTTP_400_BAD_REQUEST)

    storage = _storage()
    match_request = storage.get_match_request(request_id)
    if match_request is None:
        return _message("Match request not found", status.HTTP_404_NOT_FOUND)

    if str(match_request.user_id) != accepter_id:
        return _message(
            "accepterId must be the owner of the match request", status.HTTP_400_BAD_REQUEST
        )

    duplicate = any(
        c.request_id == match_request.pk and str(c.accepter_id) == accepter_id
        for c in storage.get_user_connections(requester_id)
    )
    if duplicate:
        return _message(
            "Connection already exists for this match request", status.HTTP_400_BAD_REQUEST
        )

    connection = storage.create_match_connection(match_request.pk, requester_id, accepter_id)
    data = MatchConnectionSerializer(connection).data

    _broadcast_to_users(
        [requester_id, accepter_id],
        BroadcastEvent(
            kind=EventKind.CONNECTION_CREATED,
            payload=data,
            note="New match connection created",
        ),
    )
    return Response(data, status=status.HTTP_201_CREATED)


@api_view(["PATCH"])
@permission_classes([IsAuthenticated])
def update_match_connection_status(request, connection_id):
    """PATCH /api/match-connections/<id>/status - Either participant changes the status"""
    serializer = StatusSerializer(data=request.data)
    new_status = serializer.validated_data["status"] if serializer.is_valid() else None
    if new_status not in MatchConnection.Status.values:
        return _message("Invalid status", status.HTTP_400_BAD_REQUEST)

    storage = _storage()
    connection = storage.get_user_connection(request.user.pk, connection_id)
    if connection is None:
        return _message(
            "Match connection not found or you are not authorized to modify it",
            status.HTTP_404_NOT_FOUND,
        )

    try:
        updated = storage.update_match_connection_status(connection.pk, new_status)
    except MatchConnection.DoesNotExist:
        return _message("Match connection not found", status.HTTP_404_NOT_FOUND)
    data = MatchConnectionSerializer(updated).data

    _broadcast_to_users(
        [str(connection.requester_id), str(connection.accepter_id)],
        BroadcastEvent(
            kind=EventKind.CONNECTION_UPDATED,
            payload=data,
            note=f"Match connection status updated to {new_status}",
        ),
    )
    return Response(data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def user_connections(request):
    """GET /api/user/connections - The caller's connections, newest first"""
    connections = _storage().get_user_connections(request.user.pk)
    return Response(MatchConnectionSerializer(connections, many=True).data)


# ============================================
# USER PROFILES
# ============================================


@api_view(["GET"])
@permission_classes([AllowAny])
def user_detail(request, user_id):
    """GET /api/users/<user_id> - Public profile"""
    user = _storage().get_user(user_id)
    if user is None:
        return _message("User not found", status.HTTP_404_NOT_FOUND)
    return Response(UserSerializer(user).data)


@api_view(["PATCH"])
@permission_classes([IsAuthenticated])
def update_profile(request):
    """PATCH /api/user/profile - Partial update of the caller's profile"""
    serializer = ProfileUpdateSerializer(
        data=request.data, partial=True, context={"user": request.user}
    )
    if not serializer.is_valid():
        return _message("Invalid profile data", status.HTTP_400_BAD_REQUEST, errors=serializer.errors)

    user = _storage().update_user_profile(request.user.pk, serializer.validated_data)
    return Response(UserSerializer(user).data)


# ============================================
# HIDDEN MATCHES
# ============================================


@api_view(["GET", "POST"])
@permission_classes([IsAuthenticated])
def hidden_matches(request):
    """
    GET  /api/hidden-matches - Ids of match requests the caller has hidden
    POST /api/hidden-matches - Hide one ({matchRequestId})
    """
    storage = _storage()
    if request.method == "GET":
        return Response(storage.get_hidden_match_ids(request.user.pk))

    match_request_id = request.data.get("matchRequestId")
    if not match_request_id:
        return _message("matchRequestId is required", status.HTTP_400_BAD_REQUEST)

    match_request = storage.get_match_request(match_request_id)
    if match_request is None:
        return _message("Match request not found", status.HTTP_404_NOT_FOUND)

    hidden = storage.hide_match_request(request.user.pk, match_request.pk)
    return Response(HiddenMatchSerializer(hidden).data, status=status.HTTP_201_CREATED)


@api_view(["DELETE"])
@permission_classes([IsAuthenticated])
def unhide_match(request, match_request_id):
    """DELETE /api/hidden-matches/<match_request_id> - Show a hidden request again"""
    _storage().unhide_match_request(request.user.pk, match_request_id)
    return Response(status=status.HTTP_204_NO_CONTENT)


# ============================================
# CHAT
# ============================================


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def connection_messages(request, connection_id):
    """GET /api/messages/<connection_id> - Conversation history, oldest first"""
    storage = _storage()
    if storage.get_user_connection(request.user.pk, connection_id) is None:
        return _message("You don't have access to this conversation", status.HTTP_403_FORBIDDEN)

    messages = storage.get_messages(connection_id)
    return Response(ChatMessageWithSenderSerializer(messages, many=True).data)


@api_view(["GET"])
@permission_classes([IsAuthenticated])
def recent_messages(request):
    """GET /api/messages/recent - Latest messages across the caller's connections"""
    messages = _storage().get_recent_messages(request.user.pk)
    return Response(ChatMessageWithSenderSerializer(messages, many=True).data)


@api_view(["POST"])
@permission_classes([IsAuthenticated])
def send_message(request):
    """POST /api/messages - Send a chat message to the other participant"""
    serializer = ChatMessageCreateSerializer(data=request.data)
    if not serializer.is_valid():
        return _message(
            "connectionId, receiverId, and message are required", status.HTTP_400_BAD_REQUEST
        )

    sender_id = str(request.user.pk)
    connection_id = serializer.validated_data["connectionId"]
    receiver_id = serializer.validated_data["receiverId"]

    storage = _storage()
    connection = storage.get_user_connection(sender_id, connection_id)
    if connection is None:
        return _message("You don't have access to this conversation", status.HTTP_403_FORBIDDEN)

    if receiver_id not in connection.participant_ids():
        return _message("Invalid receiverId for this connection", status.HTTP_400_BAD_REQUEST)

    chat_message = storage.send_message(
        connection.pk, sender_id, receiver_id, serializer.validated_data["message"]
    )
    data = ChatMessageSerializer(chat_message).data

    _broadcast_to_users(
        [receiver_id],
        BroadcastEvent(
            kind=EventKind.MESSAGE_CREATED,
            payload=data,
            note="New message received",
        ),
    )
    return Response(data, status=status.HTTP_201_CREATED)


# ============================================
# UTILITY ENDPOINTS
# ============================================


@api_view(["GET"])
@permission_classes([AllowAny])
def health_check(request):
    """GET /api/health - Health check with the number of live sockets"""
    return Response(
        {
            "success": True,
            "status": "healthy",
            "service": "gamematch-api",
            "websocket_sessions": len(_hub().registry),
        }
    )
