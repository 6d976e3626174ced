from django.db import models
from django.conf import settings
from django.core.validators import MinValueValidator, MaxValueValidator
import uuid


# ---- 1) Gaming profile ----
class UserProfile(models.Model):
    user = models.OneToOneField(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="profile",
        db_index=True,
    )

    gamertag = models.CharField(max_length=64, unique=True, blank=True, null=True)
    bio = models.TextField(blank=True)
    location = models.CharField(max_length=120, blank=True)
    age = models.PositiveSmallIntegerField(
        validators=[MinValueValidator(1), MaxValueValidator(120)],
        blank=True, null=True,
    )
    preferred_games = models.JSONField(default=list, blank=True)
    profile_image_url = models.URLField(max_length=500, blank=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "user_profiles"

    def __str__(self):
        return self.gamertag or self.user.get_username()


# ---- 2) Match requests (the feed) ----
class MatchRequest(models.Model):
    """A user's open call for teammates for a specific game/mode."""

    class Status(models.TextChoices):
        WAITING = "waiting", "Waiting"
        CONNECTED = "connected", "Connected"
        DECLINED = "declined", "Declined"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="match_requests",
    )
    game_name = models.CharField(max_length=120)
    game_mode = models.CharField(max_length=32)  # 1v1, 2v2, 5v5, ...
    tournament_name = models.CharField(max_length=200, blank=True)
    description = models.TextField()
    status = models.CharField(
        max_length=12, choices=Status.choices, default=Status.WAITING, db_index=True
    )
    region = models.CharField(max_length=64, blank=True)

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "match_requests"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["game_mode"], name="match_req_game_mode_idx"),
            models.Index(fields=["region"], name="match_req_region_idx"),
        ]

    def __str__(self):
        return f"{self.game_name} {self.game_mode} by {self.user_id}"


# ---- 3) Connections between a request owner and another user ----
class MatchConnection(models.Model):
    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        ACCEPTED = "accepted", "Accepted"
        DECLINED = "declined", "Declined"

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    request = models.ForeignKey(
        MatchRequest,
        on_delete=models.CASCADE,
        related_name="connections",
    )
    requester = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="requested_connections",
    )
    accepter = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="accepted_connections",
    )
    status = models.CharField(
        max_length=12, choices=Status.choices, default=Status.PENDING
    )

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = "match_connections"
        ordering = ["-created_at"]
        indexes = [
            models.Index(fields=["requester", "-created_at"], name="match_conn_requester_idx"),
            models.Index(fields=["accepter", "-created_at"], name="match_conn_accepter_idx"),
        ]

    def __str__(self):
        return f"{self.requester_id} <-> {self.accepter_id} ({self.status})"

    def participant_ids(self):
        return {str(self.requester_id), str(self.accepter_id)}

    def other_participant_id(self, user_id):
        """Return the id of the participant that is not ``user_id``, or None."""
        user_id = str(user_id)
        if str(self.requester_id) == user_id:
            return str(self.accepter_id)
        if str(self.accepter_id) == user_id:
            return str(self.requester_id)
        return None


class HiddenMatch(models.Model):
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="hidden_matches",
    )
    match_request = models.ForeignKey(
        MatchRequest,
        on_delete=models.CASCADE,
        related_name="hidden_by",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = "hidden_matches"
        constraints = [
            models.UniqueConstraint(
                fields=["user", "match_request"], name="uniq_user_hidden_match"
            )
        ]

    def __str__(self):
        return f"{self.user_id} hides {self.match_request_id}"


class ChatMessage(models.Model):
    """Chat Message between the two participants of a connection"""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    connection = models.ForeignKey(
        MatchConnection,
        on_delete=models.CASCADE,
        related_name="messages",
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_chat_messages",
    )
    receiver = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_chat_messages",
    )
    message = models.TextField()

    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        db_table = "chat_messages"
        ordering = ["created_at"]
        indexes = [
            models.Index(fields=["connection", "created_at"], name="chat_msg_connection_idx"),
        ]

    def __str__(self):
        preview = self.message[:50] + "..." if len(self.message) > 50 else self.message
        return f"{self.sender_id}: {preview}"
