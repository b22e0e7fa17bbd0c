"""
Tests for the toolkit app.

This package contains test modules for:
- test_helpers.py: Initials, email masking and user-agent parsing
- test_validators.py: Phone number and locale validators
- test_email_service.py: EmailService and the async email task

Usage:
    pytest toolkit/tests/
    pytest toolkit/tests/test_helpers.py
"""
