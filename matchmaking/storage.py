"""
Data access for the matchmaking app.

Views and the signaling authorizer go through ``DatabaseStorage`` instead of
querying models directly. All methods are synchronous; async callers wrap
them in ``database_sync_to_async``.
"""

from django.contrib.auth import get_user_model
from django.core.exceptions import ValidationError
from django.db import transaction
from django.db.models import F, Q

from .models import ChatMessage, HiddenMatch, MatchConnection, MatchRequest, UserProfile

User = get_user_model()

PROFILE_FIELDS = (
    "gamertag",
    "bio",
    "location",
    "age",
    "preferred_games",
    "profile_image_url",
)
USER_FIELDS = ("first_name", "last_name", "email")

RECENT_MESSAGES_LIMIT = 50


class DatabaseStorage:

    # ---- users ----

    def get_user(self, user_id):
        """Return the user with its profile, or None."""
        try:
            return User.objects.select_related("profile").get(pk=user_id)
        except (User.DoesNotExist, ValueError):
            return None

    @transaction.atomic
    def update_user_profile(self, user_id, changes):
        """
        Apply a partial update to the user and its gaming profile.

        Raises:
            User.DoesNotExist: If there is no such user
        """
        user = User.objects.get(pk=user_id)
        profile, _ = UserProfile.objects.get_or_create(user=user)

        user_changes = {k: v for k, v in changes.items() if k in USER_FIELDS}
        profile_changes = {k: v for k, v in changes.items() if k in PROFILE_FIELDS}

        if user_changes:
            for field, value in user_changes.items():
                setattr(user, field, value)
            user.save(update_fields=list(user_changes))
        if profile_changes:
            for field, value in profile_changes.items():
                setattr(profile, field, value)
            profile.save()

        return self.get_user(user_id)

    # ---- match requests ----

    def get_match_requests(self, game=None, mode=None, region=None):
        """Newest first; ``game`` is a case-insensitive substring match."""
        queryset = MatchRequest.objects.annotate(
            gamertag=F("user__profile__gamertag"),
            profile_image_url=F("user__profile__profile_image_url"),
        )
        if game:
            queryset = queryset.filter(game_name__icontains=game)
        if mode:
            queryset = queryset.filter(game_mode=mode)
        if region:
            queryset = queryset.filter(region=region)
        return list(queryset.order_by("-created_at"))

    def get_match_request(self, request_id):
        try:
            return MatchRequest.objects.get(pk=request_id)
        except (MatchRequest.DoesNotExist, ValidationError):
            return None

    def create_match_request(self, user_id, **fields):
        return MatchRequest.objects.create(user_id=user_id, **fields)

    def update_match_request_status(self, request_id, status):
        """
        Raises:
            MatchRequest.DoesNotExist: If there is no such request
        """
        match_request = MatchRequest.objects.get(pk=request_id)
        match_request.status = status
        match_request.save(update_fields=["status", "updated_at"])
        return match_request

    def delete_match_request(self, request_id):
        MatchRequest.objects.filter(pk=request_id).delete()

    # ---- match connections ----

    def create_match_connection(self, request_id, requester_id, accepter_id):
        return MatchConnection.objects.create(
            request_id=request_id,
            requester_id=requester_id,
            accepter_id=accepter_id,
        )

    def update_match_connection_status(self, connection_id, status):
        """
        Raises:
            MatchConnection.DoesNotExist: If there is no such connection
        """
        connection = MatchConnection.objects.get(pk=connection_id)
        connection.status = status
        connection.save(update_fields=["status", "updated_at"])
        return connection

    def get_user_connections(self, user_id):
        """All connections the user takes part in, newest first."""
        return list(
            MatchConnection.objects.filter(
                Q(requester_id=user_id) | Q(accepter_id=user_id)
            ).order_by("-created_at")
        )

    def get_user_connection(self, user_id, connection_id):
        """The connection if ``user_id`` is one of its participants, else None."""
        return next(
            (
                c
                for c in self.get_user_connections(user_id)
                if str(c.id) == str(connection_id)
            ),
            None,
        )

    # ---- hidden matches ----

    def hide_match_request(self, user_id, match_request_id):
        hidden, _ = HiddenMatch.objects.get_or_create(
            user_id=user_id, match_request_id=match_request_id
        )
        return hidden

    def unhide_match_request(self, user_id, match_request_id):
        HiddenMatch.objects.filter(
            user_id=user_id, match_request_id=match_request_id
        ).delete()

    def get_hidden_match_ids(self, user_id):
        return [
            str(pk)
            for pk in HiddenMatch.objects.filter(user_id=user_id).values_list(
                "match_request_id", flat=True
            )
        ]

    # ---- chat ----

    def send_message(self, connection_id, sender_id, receiver_id, message):
        return ChatMessage.objects.create(
            connection_id=connection_id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            message=message,
        )

    def _messages_with_sender(self):
        return ChatMessage.objects.annotate(
            sender_gamertag=F("sender__profile__gamertag"),
            sender_profile_image_url=F("sender__profile__profile_image_url"),
        )

    def get_messages(self, connection_id):
        """Conversation history, oldest first."""
        return list(
            self._messages_with_sender()
            .filter(connection_id=connection_id)
            .order_by("created_at")
        )

    def get_recent_messages(self, user_id):
        """The latest messages across all of the user's connections, newest first."""
        connection_ids = [c.id for c in self.get_user_connections(user_id)]
        if not connection_ids:
            return []
        return list(
            self._messages_with_sender()
            .filter(connection_id__in=connection_ids)
            .order_by("-created_at")[:RECENT_MESSAGES_LIMIT]
        )
