from rest_framework import serializers
from django.contrib.auth import get_user_model
from django.contrib.auth.password_validation import validate_password

from .models import UserProfile, MatchRequest, MatchConnection, HiddenMatch, ChatMessage

User = get_user_model()


class UserSerializer(serializers.ModelSerializer):
    """User with the gaming profile flattened in, camelCase for the client."""

    id = serializers.CharField(read_only=True)
    firstName = serializers.CharField(source="first_name", read_only=True)
    lastName = serializers.CharField(source="last_name", read_only=True)
    gamertag = serializers.SerializerMethodField()
    bio = serializers.SerializerMethodField()
    location = serializers.SerializerMethodField()
    age = serializers.SerializerMethodField()
    preferredGames = serializers.SerializerMethodField()
    profileImageUrl = serializers.SerializerMethodField()
    createdAt = serializers.DateTimeField(source="date_joined", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "email",
            "firstName",
            "lastName",
            "gamertag",
            "bio",
            "location",
            "age",
            "preferredGames",
            "profileImageUrl",
            "createdAt",
        ]

    def _profile(self, user):
        return getattr(user, "profile", None)

    def get_gamertag(self, user):
        profile = self._profile(user)
        return profile.gamertag if profile else None

    def get_bio(self, user):
        profile = self._profile(user)
        return profile.bio if profile else ""

    def get_location(self, user):
        profile = self._profile(user)
        return profile.location if profile else ""

    def get_age(self, user):
        profile = self._profile(user)
        return profile.age if profile else None

    def get_preferredGames(self, user):
        profile = self._profile(user)
        return profile.preferred_games if profile else []

    def get_profileImageUrl(self, user):
        profile = self._profile(user)
        return profile.profile_image_url if profile else ""


class ProfileUpdateSerializer(serializers.Serializer):
    """Partial profile update; keys are mapped to model field names."""

    firstName = serializers.CharField(source="first_name", required=False, allow_blank=True, max_length=150)
    lastName = serializers.CharField(source="last_name", required=False, allow_blank=True, max_length=150)
    email = serializers.EmailField(required=False, allow_blank=True)
    gamertag = serializers.CharField(required=False, allow_null=True, max_length=64)
    bio = serializers.CharField(required=False, allow_blank=True)
    location = serializers.CharField(required=False, allow_blank=True, max_length=120)
    age = serializers.IntegerField(required=False, allow_null=True, min_value=1, max_value=120)
    preferredGames = serializers.ListField(
        source="preferred_games", child=serializers.CharField(max_length=120), required=False
    )
    profileImageUrl = serializers.URLField(source="profile_image_url", required=False, allow_blank=True)

    def validate_gamertag(self, value):
        if not value:
            return None
        user = self.context.get("user")
        taken = UserProfile.objects.filter(gamertag=value)
        if user is not None:
            taken = taken.exclude(user=user)
        if taken.exists():
            raise serializers.ValidationError("This gamertag is already taken")
        return value


class MatchRequestSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source="user_id", read_only=True)
    gameName = serializers.CharField(source="game_name", max_length=120)
    gameMode = serializers.CharField(source="game_mode", max_length=32)
    tournamentName = serializers.CharField(
        source="tournament_name", required=False, allow_blank=True, allow_null=True, max_length=200
    )
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = MatchRequest
        fields = [
            "id",
            "userId",
            "gameName",
            "gameMode",
            "tournamentName",
            "description",
            "status",
            "region",
            "createdAt",
            "updatedAt",
        ]
        read_only_fields = ["id", "status"]
        extra_kwargs = {"region": {"required": False, "allow_blank": True}}

    def validate_tournamentName(self, value):
        return value or ""


class MatchRequestFeedSerializer(MatchRequestSerializer):
    """Feed entry including the owner's gamertag and avatar."""

    gamertag = serializers.CharField(read_only=True, allow_null=True)
    profileImageUrl = serializers.CharField(
        source="profile_image_url", read_only=True, allow_null=True
    )

    class Meta(MatchRequestSerializer.Meta):
        fields = MatchRequestSerializer.Meta.fields + ["gamertag", "profileImageUrl"]


class StatusSerializer(serializers.Serializer):
    status = serializers.CharField()


class MatchConnectionSerializer(serializers.ModelSerializer):
    requestId = serializers.CharField(source="request_id", read_only=True)
    requesterId = serializers.CharField(source="requester_id", read_only=True)
    accepterId = serializers.CharField(source="accepter_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)
    updatedAt = serializers.DateTimeField(source="updated_at", read_only=True)

    class Meta:
        model = MatchConnection
        fields = [
            "id",
            "requestId",
            "requesterId",
            "accepterId",
            "status",
            "createdAt",
            "updatedAt",
        ]


class MatchConnectionCreateSerializer(serializers.Serializer):
    requestId = serializers.UUIDField()
    accepterId = serializers.CharField()


class HiddenMatchSerializer(serializers.ModelSerializer):
    userId = serializers.CharField(source="user_id", read_only=True)
    matchRequestId = serializers.CharField(source="match_request_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = HiddenMatch
        fields = ["id", "userId", "matchRequestId", "createdAt"]


class ChatMessageSerializer(serializers.ModelSerializer):
    connectionId = serializers.CharField(source="connection_id", read_only=True)
    senderId = serializers.CharField(source="sender_id", read_only=True)
    receiverId = serializers.CharField(source="receiver_id", read_only=True)
    createdAt = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = ChatMessage
        fields = ["id", "connectionId", "senderId", "receiverId", "message", "createdAt"]


class ChatMessageWithSenderSerializer(ChatMessageSerializer):
    senderGamertag = serializers.CharField(
        source="sender_gamertag", read_only=True, allow_null=True
    )
    senderProfileImageUrl = serializers.CharField(
        source="sender_profile_image_url", read_only=True, allow_null=True
    )

    class Meta(ChatMessageSerializer.Meta):
        fields = ChatMessageSerializer.Meta.fields + [
            "senderGamertag",
            "senderProfileImageUrl",
        ]


class ChatMessageCreateSerializer(serializers.Serializer):
    connectionId = serializers.UUIDField()
    receiverId = serializers.CharField()
    message = serializers.CharField(max_length=2000)


class UserRegistrationSerializer(serializers.ModelSerializer):
    password = serializers.CharField(write_only=True, min_length=8)
    password_confirm = serializers.CharField(write_only=True)

    # Profile fields
    gamertag = serializers.CharField(required=False, allow_blank=True, max_length=64)

    class Meta:
        model = User
        fields = ["username", "email", "password", "password_confirm", "gamertag"]

    def validate(self, data):
        if data["password"] != data["password_confirm"]:
            raise serializers.ValidationError({"password": "Passwords do not match"})
        validate_password(data["password"])
        return data

    def validate_gamertag(self, value):
        if value and UserProfile.objects.filter(gamertag=value).exists():
            raise serializers.ValidationError("This gamertag is already taken")
        return value

    def create(self, validated_data):
        validated_data.pop("password_confirm")
        gamertag = validated_data.pop("gamertag", "") or None

        user = User.objects.create_user(**validated_data)
        UserProfile.objects.create(user=user, gamertag=gamertag)
        return user


class LoginSerializer(serializers.Serializer):
    username = serializers.CharField()
    password = serializers.CharField(write_only=True)
