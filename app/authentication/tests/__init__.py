"""
Tests for authentication app.

This package contains test modules for:
- test_models.py / test_managers.py: User, Profile, tokens, login attempts
- test_security.py: Password, email, session and token checks
- test_session_security.py: Session reports and suspicious activity
- test_oauth_state.py: OAuth state cookie helpers
- test_services.py: AuthService tests
- test_serializers.py: Registration, profile and account form input
- test_views.py: API endpoint tests
- test_adapters.py / test_signals.py: Social login handling
- test_tasks.py: Celery email and cleanup tasks
- test_integration.py: Sign-up to account deletion journeys

Usage:
    pytest authentication/tests/
    pytest authentication/tests/test_services.py
"""
