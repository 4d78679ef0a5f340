"""
WebSocket URL routing for the chat application.

URL Patterns:
    ws/chat/ - The relay; one connection per client session

Authentication:
    JWT token should be passed as query parameter: ?token=<jwt_access_token>
    The JWTAuthMiddleware will validate the token and attach the user
    to the consumer's scope.
"""

from django.urls import path

from chat import consumers

websocket_urlpatterns = [
    path("ws/chat/", consumers.ChatRelayConsumer.as_asgi()),
]
