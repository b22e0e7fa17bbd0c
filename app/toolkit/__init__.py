"""
Toolkit - Domain-Specific Utilities & Services.

This app provides domain-aware utilities and services specific to SaaS applications:
- EmailService: Centralized email sending with templates
- send_email_task: Celery task that delivers queued emails
- Helper functions: initials, PII masking, user-agent parsing
- Validators: Phone number and locale validation

Key components:
    - services/email.py: EmailService class
    - tasks.py: send_email_task
    - helpers.py: Domain-aware utility functions (get_initials, mask_email, parse_user_agent)
    - validators.py: Profile input validation (validate_phone_number, validate_locale)

Usage:
    from toolkit.services.email import EmailService
    from toolkit.helpers import get_initials, mask_email, parse_user_agent
    from toolkit.validators import validate_locale, validate_phone_number

Note:
    - This app has no models. It's focused on domain-specific utilities.
    - For generic infrastructure (tokens, client IP, rate limiting), see core/
    - For model-layer patterns, see core/ (BaseModel, model_mixins, managers).
    - For the ServiceResult view mixin, see core.viewset_mixins.
"""
