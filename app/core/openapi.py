"""
OpenAPI schema customizations for drf-spectacular.

Hooks that tidy the generated schema: natural-language summaries for the
dj-rest-auth endpoints and tag groupings for ReDoc.

Tag naming follows the pattern: [App Name] - [Group Name]
Examples:
- Auth - User (current user)
- Auth - Profile (profile CRUD)
- Auth - OAuth (provider sign-in)
- Workspaces (workspace CRUD, switching, slugs)
- Workspaces - Members (membership management)
- Workspaces - Invitations (invite lifecycle)
- Analytics (dashboard metrics)
"""

# Natural language summaries for dj-rest-auth endpoints
# Maps operation_id to (summary, description)
DJ_REST_AUTH_SUMMARIES = {
    "auth_login_create": (
        "Log in",
        "Authenticate with email and password to receive JWT tokens.",
    ),
    "auth_logout_create": (
        "Log out",
        "Blacklist the current refresh token.",
    ),
    "auth_registration_create": (
        "Register new account",
        "Create a new user account with email, password and display name.",
    ),
    "auth_user_retrieve": (
        "Get current user",
        "Retrieve the currently authenticated user's details.",
    ),
    "auth_user_update": (
        "Update current user",
        "Full update of the currently authenticated user's details.",
    ),
    "auth_user_partial_update": (
        "Partially update current user",
        "Partial update of the currently authenticated user's details.",
    ),
    "auth_token_refresh_create": (
        "Refresh access token",
        "Get a new access token using a valid refresh token.",
    ),
    "auth_token_verify_create": (
        "Verify token",
        "Verify that an access token is valid.",
    ),
}

TAG_DESCRIPTIONS = [
    {
        "name": "Auth",
        "description": "Sign-in, sign-out, password and email verification flows.",
    },
    {
        "name": "Auth - User",
        "description": "Current user retrieval and updates.",
    },
    {
        "name": "Auth - Profile",
        "description": "Profile details such as bio, company and job title.",
    },
    {
        "name": "Auth - OAuth",
        "description": "Google, GitHub and Apple sign-in with CSRF state cookies.",
    },
    {
        "name": "Auth - Security",
        "description": "Session security reports and internal account operations.",
    },
    {
        "name": "Workspaces",
        "description": "Workspace lifecycle, active workspace switching and slug helpers.",
    },
    {
        "name": "Workspaces - Members",
        "description": "Member listing, roles, removal and ownership transfer.",
    },
    {
        "name": "Workspaces - Invitations",
        "description": "Email invitations: create, resend, cancel and accept.",
    },
    {
        "name": "Analytics",
        "description": "Revenue, orders, subscriptions and disputes for the active workspace.",
    },
]


def group_auth_endpoints(result, generator, request, public):
    """
    Postprocessing hook to group auth endpoints and add summaries.

    Workspace and analytics views set tags= in @extend_schema; this hook only
    sorts the dj-rest-auth and custom auth operations into their groups.
    """
    paths = result.get("paths", {})

    for path, methods in paths.items():
        for method, operation in methods.items():
            if not isinstance(operation, dict):
                continue

            operation_id = operation.get("operationId", "")

            if operation_id in DJ_REST_AUTH_SUMMARIES:
                summary, description = DJ_REST_AUTH_SUMMARIES[operation_id]
                operation["summary"] = summary
                operation["description"] = description

            # Views that declared their own group keep it
            if operation.get("tags") and operation["tags"][0].startswith("Auth -"):
                continue

            if operation_id.startswith("auth_user_"):
                operation["tags"] = ["Auth - User"]
            elif operation_id.startswith("auth_profile_"):
                operation["tags"] = ["Auth - Profile"]
            elif operation_id.startswith("auth_"):
                operation["tags"] = ["Auth"]

    result["tags"] = TAG_DESCRIPTIONS

    return result
