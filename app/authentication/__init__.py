"""
Authentication application.

Supplies the verified caller identity consumed by the media upload API.
Credentials are exchanged for JWT access tokens
(djangorestframework-simplejwt); the media app only ever sees
``request.user``.

Key components:
    - User model: Custom email-based user authentication
    - Token endpoints: obtain / refresh JWT pairs

Usage:
    from authentication.models import User
"""
