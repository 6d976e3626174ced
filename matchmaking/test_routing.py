"""
Unit Tests for WebSocket Routing (routing.py)

Tests cover:
- WebSocket URL patterns
- The origin guard in front of the router
- The hub handed to the consumer
"""

from django.test import SimpleTestCase

from matchmaking import routing
from matchmaking.consumers import RealtimeConsumer
from matchmaking.realtime import RealtimeHub
from matchmaking.security import OriginHostValidator


class RoutingTest(SimpleTestCase):
    """Test suite for WebSocket routing configuration"""

    def setUp(self):
        self.hub = RealtimeHub(storage=None, heartbeat_enabled=False)

    def test_single_ws_pattern(self):
        patterns = routing.build_websocket_urlpatterns(self.hub)

        self.assertEqual(len(patterns), 1)
        self.assertEqual(str(patterns[0].pattern), "ws")

    def test_pattern_carries_hub(self):
        pattern = routing.build_websocket_urlpatterns(self.hub)[0]

        self.assertIs(pattern.callback.consumer_class, RealtimeConsumer)
        self.assertIs(pattern.callback.consumer_initkwargs["hub"], self.hub)

    def test_application_is_origin_guarded(self):
        application = routing.build_websocket_application(self.hub)

        self.assertIsInstance(application, OriginHostValidator)
