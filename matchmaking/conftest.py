"""
Pytest configuration shared by the matchmaking tests.

Provides stand-ins for the socket handle and the clock so the real-time
components can be driven without a server, plus a few database fixtures.
"""
import pytest


class FakeSocket:
    """Records what the real-time layer does to a socket."""

    def __init__(self, fail_sends=False):
        self.is_open = True
        self.fail_sends = fail_sends
        self.sent = []
        self.pings = 0
        self.terminated = False

    async def send_json(self, message):
        if self.fail_sends:
            raise ConnectionResetError("socket write failed")
        self.sent.append(message)

    async def ping(self):
        self.pings += 1

    async def terminate(self):
        self.terminated = True
        self.is_open = False

    def types(self):
        return [m["type"] for m in self.sent]


class FakeClock:
    def __init__(self, now=1000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def make_socket():
    """Factory for FakeSocket instances."""
    return FakeSocket


@pytest.fixture
def registry(fake_clock):
    from matchmaking.connections import ConnectionRegistry

    return ConnectionRegistry(clock=fake_clock)


@pytest.fixture
def dispatcher(registry):
    from matchmaking.broadcast import BroadcastDispatcher

    return BroadcastDispatcher(registry)


@pytest.fixture
def test_user(db):
    """
    Create a test user with a gaming profile.
    """
    from django.contrib.auth import get_user_model
    from matchmaking.models import UserProfile

    User = get_user_model()
    user = User.objects.create_user(
        username="testuser", email="test@example.com", password="testpass123"
    )
    UserProfile.objects.create(user=user, gamertag="TestGamer")
    return user
