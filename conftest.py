"""
Root pytest configuration for the Django project.

Only points pytest-django at the settings module; test settings overrides
and shared fixtures live in app/conftest.py.
"""

import os

# Ensure Django settings are configured before any tests run
os.environ.setdefault("DJANGO_SETTINGS_MODULE", "config.settings")
