"""
Workspaces app for multi-tenant team management.

This app handles:
- Workspaces (create, update, archive, soft delete, data export)
- Members and roles (owner, admin, member)
- Invitations by email with expiring tokens
- The user's active workspace

Related apps:
    - authentication: User.active_workspace points at a Workspace
    - analytics: Sales data is scoped to a workspace
    - toolkit: EmailService for invitation and export emails

Usage:
    from workspaces.services import WorkspaceService

    result = WorkspaceService.create(user, name="Acme Inc")
    if result:
        workspace = result.data
"""
