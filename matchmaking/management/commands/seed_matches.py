from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from matchmaking.models import MatchRequest, UserProfile

SAMPLE_GAMERS = [
    {
        "username": "alex",
        "email": "alex@example.com",
        "first_name": "Alex",
        "last_name": "Chen",
        "profile": {
            "gamertag": "AlexGamer",
            "bio": "Competitive FPS player looking for ranked teammates",
            "location": "San Francisco, CA",
            "age": 24,
            "preferred_games": ["Valorant", "CS2", "Apex Legends"],
        },
    },
    {
        "username": "sam",
        "email": "sam@example.com",
        "first_name": "Sam",
        "last_name": "Rivera",
        "profile": {
            "gamertag": "SamTheSniper",
            "bio": "Casual gamer, loves team-based strategy games",
            "location": "Austin, TX",
            "age": 28,
            "preferred_games": ["League of Legends", "Overwatch 2", "Rocket League"],
        },
    },
    {
        "username": "jordan",
        "email": "jordan@example.com",
        "first_name": "Jordan",
        "last_name": "Park",
        "profile": {
            "gamertag": "JordanPro",
            "bio": "MOBA enthusiast and tournament organizer",
            "location": "Seattle, WA",
            "age": 22,
            "preferred_games": ["Dota 2", "League of Legends", "Heroes of the Storm"],
        },
    },
]

SAMPLE_MATCH_REQUESTS = [
    ("alex", {
        "game_name": "Valorant",
        "game_mode": "5v5",
        "description": "Looking for Diamond+ players for ranked queue. Need good comms!",
        "region": "NA West",
    }),
    ("sam", {
        "game_name": "Rocket League",
        "game_mode": "3v3",
        "description": "Casual 3v3 matches, just for fun. All skill levels welcome!",
        "region": "NA Central",
    }),
    ("jordan", {
        "game_name": "League of Legends",
        "game_mode": "5v5",
        "tournament_name": "Spring Tournament",
        "description": "Forming team for upcoming tournament. Looking for experienced support and jungle.",
        "region": "NA West",
    }),
    ("alex", {
        "game_name": "CS2",
        "game_mode": "5v5",
        "description": "Faceit Level 8+ only. Serious players for competitive matches.",
        "region": "NA West",
    }),
    ("sam", {
        "game_name": "Apex Legends",
        "game_mode": "3v3",
        "description": "Ranked Arenas, looking for consistent teammates. Currently Platinum.",
        "region": "NA Central",
    }),
]


class Command(BaseCommand):
    help = "Create sample gamers and match requests for local development"

    def add_arguments(self, parser):
        parser.add_argument(
            "--password",
            default="gamematch123",
            help="Password for the sample accounts (default: gamematch123)",
        )

    @transaction.atomic
    def handle(self, *args, **options):
        if MatchRequest.objects.exists():
            self.stdout.write(
                self.style.WARNING("Seed data already exists, skipping initialization")
            )
            return

        User = get_user_model()
        users = {}
        for gamer in SAMPLE_GAMERS:
            profile_fields = gamer["profile"]
            user, created = User.objects.get_or_create(
                username=gamer["username"],
                defaults={
                    "email": gamer["email"],
                    "first_name": gamer["first_name"],
                    "last_name": gamer["last_name"],
                },
            )
            if created:
                user.set_password(options["password"])
                user.save()
            UserProfile.objects.update_or_create(user=user, defaults=profile_fields)
            users[gamer["username"]] = user

        for username, fields in SAMPLE_MATCH_REQUESTS:
            MatchRequest.objects.create(user=users[username], **fields)

        self.stdout.write(
            self.style.SUCCESS(
                f"Successfully seeded {len(users)} gamers and "
                f"{len(SAMPLE_MATCH_REQUESTS)} match requests."
            )
        )
