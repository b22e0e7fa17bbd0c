"""
Authentication application.

This app provides user authentication, profile management, OAuth integration,
input and session security checks, and token-based email flows.

Key components:
    - User model: Custom email-based user with an active workspace pointer
    - Profile model: Extended user profile data
    - AuthService: Business logic for auth operations
    - security.py / session_security.py: Validation and session risk checks
    - oauth_state.py: CSRF state for the OAuth redirect flow
    - OAuth adapters: Google, GitHub and Apple social authentication

Usage:
    from authentication.models import User, Profile
    from authentication.services import AuthService
"""
