"""
End-to-end tests for the real-time WebSocket endpoint.

Each test builds its own RealtimeHub (heartbeat task disabled, fake clock)
and drives it through the same ASGI stack production uses: origin guard,
URL router and RealtimeConsumer.
"""

import pytest
from channels.db import database_sync_to_async
from channels.testing import WebsocketCommunicator
from django.conf import settings
from django.contrib.auth import get_user_model
from django.test import Client

from matchmaking.broadcast import BroadcastEvent, EventKind
from matchmaking.consumers import STALE_CLOSE_CODE
from matchmaking.models import MatchConnection, MatchRequest
from matchmaking.realtime import RealtimeHub
from matchmaking.routing import build_websocket_application
from matchmaking.session_auth import NO_SESSION
from matchmaking.storage import DatabaseStorage

User = get_user_model()


@pytest.fixture
def hub(fake_clock):
    return RealtimeHub(DatabaseStorage(), heartbeat_enabled=False, clock=fake_clock)


@database_sync_to_async
def create_logged_in_user(username):
    """
    Create a user and log them in.

    Returns:
        tuple: (user, session cookie value)
    """
    user = User.objects.create_user(username=username, password="testpass123")
    client = Client()
    client.login(username=username, password="testpass123")
    return user, client.cookies[settings.SESSION_COOKIE_NAME].value


@database_sync_to_async
def create_accepted_connection(requester, accepter):
    match_request = MatchRequest.objects.create(
        user=accepter, game_name="Valorant", game_mode="5v5", description="ranked"
    )
    return MatchConnection.objects.create(
        request=match_request,
        requester=requester,
        accepter=accepter,
        status=MatchConnection.Status.ACCEPTED,
    )


def make_communicator(hub, session_key=None, origin=b"http://testserver"):
    headers = [(b"origin", origin), (b"host", b"testserver")]
    if session_key:
        headers.append(
            (b"cookie", f"{settings.SESSION_COOKIE_NAME}={session_key}".encode())
        )
    return WebsocketCommunicator(build_websocket_application(hub), "/ws", headers=headers)


async def connect(communicator):
    """Connect and consume the auth result and welcome messages."""
    connected, _ = await communicator.connect()
    assert connected is True
    auth = await communicator.receive_json_from(timeout=3)
    welcome = await communicator.receive_json_from()
    return auth, welcome


@pytest.mark.asyncio
@pytest.mark.django_db(transaction=True)
class TestRealtimeConsumer:
    """Test suite for RealtimeConsumer WebSocket functionality."""

    async def test_anonymous_handshake(self, hub):
        """
        Given: A client without a session cookie
        When: It connects to /ws
        Then: The socket stays open, gets auth_failed then welcome
        """
        communicator = make_communicator(hub)

        auth, welcome = await connect(communicator)

        assert auth == {"type": "auth_failed", "message": NO_SESSION}
        assert welcome == {
            "type": "welcome",
            "message": "Connected to GameMatch real-time updates",
        }
        sessions = hub.registry.sessions()
        assert len(sessions) == 1
        assert sessions[0].user_id is None

        await communicator.disconnect()

    async def test_authenticated_handshake(self, hub):
        user, session_key = await create_logged_in_user("alex")
        communicator = make_communicator(hub, session_key)

        auth, welcome = await connect(communicator)

        assert auth == {
            "type": "auth_success",
            "message": "Authentication successful",
            "userId": str(user.pk),
        }
        assert welcome["type"] == "welcome"
        assert hub.registry.sessions()[0].user_id == str(user.pk)

        await communicator.disconnect()

    async def test_cross_origin_upgrade_rejected(self, hub):
        communicator = make_communicator(hub, origin=b"http://evil.example")

        connected, _ = await communicator.connect()

        assert connected is False
        assert len(hub.registry) == 0

    async def test_ping_gets_pong_and_refreshes_liveness(self, hub, fake_clock):
        communicator = make_communicator(hub)
        await connect(communicator)
        session = hub.registry.sessions()[0]

        fake_clock.advance(20)
        await communicator.send_json_to({"type": "ping"})
        response = await communicator.receive_json_from()

        assert response == {"type": "pong"}
        assert session.last_liveness_ack == fake_clock.now

        await communicator.disconnect()

    async def test_pong_refreshes_liveness_silently(self, hub, fake_clock):
        communicator = make_communicator(hub)
        await connect(communicator)
        session = hub.registry.sessions()[0]

        fake_clock.advance(20)
        await communicator.send_json_to({"type": "pong"})

        assert await communicator.receive_nothing() is True
        assert session.last_liveness_ack == fake_clock.now

        await communicator.disconnect()

    async def test_malformed_frames_are_ignored(self, hub):
        communicator = make_communicator(hub)
        await connect(communicator)

        await communicator.send_to(text_data="not json {")
        await communicator.send_to(text_data="[1, 2, 3]")
        await communicator.send_json_to({"type": "something_else"})
        assert await communicator.receive_nothing() is True

        # the socket is still usable
        await communicator.send_json_to({"type": "ping"})
        assert await communicator.receive_json_from() == {"type": "pong"}

        await communicator.disconnect()

    async def test_disconnect_removes_session(self, hub):
        communicator = make_communicator(hub)
        await connect(communicator)
        assert len(hub.registry) == 1

        await communicator.disconnect()

        assert len(hub.registry) == 0

    async def test_heartbeat_pings_then_evicts_silent_client(self, hub, fake_clock):
        communicator = make_communicator(hub)
        await connect(communicator)

        fake_clock.advance(30)
        await hub.heartbeat.tick()
        assert await communicator.receive_json_from() == {"type": "ping"}

        fake_clock.advance(30)
        evicted = await hub.heartbeat.tick()

        assert evicted == 1
        assert len(hub.registry) == 0
        closed = await communicator.receive_output()
        assert closed["type"] == "websocket.close"
        assert closed["code"] == STALE_CLOSE_CODE

        await communicator.disconnect()

    async def test_broadcast_reaches_authenticated_sockets_only(self, hub):
        _, session_key = await create_logged_in_user("alex")
        member = make_communicator(hub, session_key)
        anonymous = make_communicator(hub)
        await connect(member)
        await connect(anonymous)

        delivered = await hub.dispatcher.to_all(
            BroadcastEvent(
                kind=EventKind.REQUEST_DELETED,
                payload={"id": "abc"},
                note="Match request deleted",
            )
        )

        assert delivered == 1
        assert await member.receive_json_from() == {
            "type": "match_request_deleted",
            "data": {"id": "abc"},
            "message": "Match request deleted",
        }
        assert await anonymous.receive_nothing() is True

        await member.disconnect()
        await anonymous.disconnect()

    async def test_webrtc_offer_relayed_between_participants(self, hub):
        alex, alex_key = await create_logged_in_user("alex")
        sam, sam_key = await create_logged_in_user("sam")
        connection = await create_accepted_connection(alex, sam)
        caller = make_communicator(hub, alex_key)
        callee = make_communicator(hub, sam_key)
        await connect(caller)
        await connect(callee)

        await caller.send_json_to(
            {
                "type": "webrtc_offer",
                "targetUserId": str(sam.pk),
                "connectionId": str(connection.pk),
                "offer": {"type": "offer", "sdp": "v=0"},
            }
        )
        relayed = await callee.receive_json_from(timeout=3)

        assert relayed == {
            "type": "webrtc_offer",
            "data": {
                "connectionId": str(connection.pk),
                "offer": {"type": "offer", "sdp": "v=0"},
                "fromUserId": str(alex.pk),
            },
        }
        assert await caller.receive_nothing() is True

        await caller.disconnect()
        await callee.disconnect()

    async def test_anonymous_signaling_gets_error(self, hub):
        communicator = make_communicator(hub)
        await connect(communicator)

        await communicator.send_json_to(
            {"type": "webrtc_offer", "targetUserId": "1", "connectionId": "x"}
        )
        response = await communicator.receive_json_from()

        assert response == {
            "type": "error",
            "message": "Authentication required for WebRTC signaling",
        }

        await communicator.disconnect()
