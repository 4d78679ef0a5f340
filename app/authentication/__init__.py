"""
Authentication application.

Provides the email-based User model shared by the chat gateway and the
websocket relay. Tokens are issued by djangorestframework-simplejwt
(see config.urls) and accepted by both surfaces.

Usage:
    from authentication.models import User
"""
