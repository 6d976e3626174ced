from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.db import IntegrityError
from django.test import TestCase

from .models import ChatMessage, HiddenMatch, MatchConnection, MatchRequest, UserProfile

User = get_user_model()


class UserProfileModelTest(TestCase):
    """Test cases for UserProfile model"""

    def setUp(self):
        self.user = User.objects.create_user(username="testuser", password="testpass123")

    def test_str_is_gamertag(self):
        profile = UserProfile.objects.create(user=self.user, gamertag="AlexGamer")
        self.assertEqual(str(profile), "AlexGamer")

    def test_str_falls_back_to_username(self):
        profile = UserProfile.objects.create(user=self.user)
        self.assertEqual(str(profile), "testuser")

    def test_default_values(self):
        profile = UserProfile.objects.create(user=self.user)
        self.assertIsNone(profile.gamertag)
        self.assertEqual(profile.preferred_games, [])
        self.assertEqual(profile.bio, "")

    def test_many_profiles_without_gamertag(self):
        other = User.objects.create_user(username="other", password="testpass123")
        UserProfile.objects.create(user=self.user)
        UserProfile.objects.create(user=other)
        self.assertEqual(UserProfile.objects.filter(gamertag__isnull=True).count(), 2)

    def test_gamertag_unique(self):
        other = User.objects.create_user(username="other", password="testpass123")
        UserProfile.objects.create(user=self.user, gamertag="Taken")
        with self.assertRaises(IntegrityError):
            UserProfile.objects.create(user=other, gamertag="Taken")


class MatchConnectionModelTest(TestCase):
    """Test cases for MatchRequest / MatchConnection"""

    def setUp(self):
        self.owner = User.objects.create_user(username="owner", password="testpass123")
        self.requester = User.objects.create_user(username="requester", password="testpass123")
        self.match_request = MatchRequest.objects.create(
            user=self.owner, game_name="CS2", game_mode="5v5", description="Faceit 8+"
        )
        self.connection = MatchConnection.objects.create(
            request=self.match_request, requester=self.requester, accepter=self.owner
        )

    def test_request_defaults(self):
        self.assertEqual(self.match_request.status, MatchRequest.Status.WAITING)
        self.assertEqual(self.match_request.tournament_name, "")

    def test_connection_defaults_to_pending(self):
        self.assertEqual(self.connection.status, MatchConnection.Status.PENDING)

    def test_participant_ids(self):
        self.assertEqual(
            self.connection.participant_ids(),
            {str(self.owner.pk), str(self.requester.pk)},
        )

    def test_other_participant_id(self):
        self.assertEqual(
            self.connection.other_participant_id(self.owner.pk), str(self.requester.pk)
        )
        self.assertEqual(
            self.connection.other_participant_id(str(self.requester.pk)), str(self.owner.pk)
        )
        self.assertIsNone(self.connection.other_participant_id("999"))

    def test_deleting_request_cascades(self):
        ChatMessage.objects.create(
            connection=self.connection,
            sender=self.requester,
            receiver=self.owner,
            message="hi",
        )
        self.match_request.delete()
        self.assertEqual(MatchConnection.objects.count(), 0)
        self.assertEqual(ChatMessage.objects.count(), 0)

    def test_hidden_match_unique_per_user(self):
        HiddenMatch.objects.create(user=self.requester, match_request=self.match_request)
        with self.assertRaises(IntegrityError):
            HiddenMatch.objects.create(user=self.requester, match_request=self.match_request)

    def test_chat_message_str_preview(self):
        message = ChatMessage.objects.create(
            connection=self.connection,
            sender=self.requester,
            receiver=self.owner,
            message="x" * 80,
        )
        self.assertTrue(str(message).endswith("x" * 50 + "..."))


class SeedMatchesCommandTest(TestCase):
    def test_seeds_gamers_and_requests(self):
        out = StringIO()
        call_command("seed_matches", stdout=out)

        self.assertEqual(User.objects.count(), 3)
        self.assertEqual(MatchRequest.objects.count(), 5)
        self.assertEqual(UserProfile.objects.get(user__username="sam").gamertag, "SamTheSniper")
        self.assertTrue(User.objects.get(username="alex").check_password("gamematch123"))
        self.assertIn("Successfully seeded", out.getvalue())

    def test_second_run_is_a_no_op(self):
        call_command("seed_matches", stdout=StringIO())
        out = StringIO()
        call_command("seed_matches", stdout=out)

        self.assertEqual(MatchRequest.objects.count(), 5)
        self.assertIn("already exists", out.getvalue())
