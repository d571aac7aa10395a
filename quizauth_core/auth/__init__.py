"""Authentication module for QuizAuth Core.

This module provides:
- Schema validation for auth operations
- JWT token generation and validation
- Password hashing and user response formatting
- Request handlers for every auth endpoint
- Authentication decorator for protected endpoints

Auth endpoints (mounted under settings.api_prefix):
- POST  /register, /login, /refresh-token
- POST  /change-password, /reset-password-request, /reset-password
- GET   /me, /check-username, /check-email
- PATCH /profile
"""

from . import schemas, service, token

__all__ = ["schemas", "service", "token"]
