"""
Pagination classes for workspace API.

- MemberCursorPagination: Members by role rank (owner, admin, member),
  then join date

Design Decisions:
    - Cursor pagination keeps pages stable while members join
    - `limit` matches the query parameter clients already send
"""

from rest_framework.pagination import CursorPagination


class MemberCursorPagination(CursorPagination):
    """
    Cursor pagination for workspace members.

    Requires the `role_rank` annotation from services.members_by_rank().

    Default: 50 members per page
    Maximum: 100 members per page

    Query parameters:
        cursor: Encoded cursor for position
        limit: Number of members (optional override)
    """

    page_size = 50
    max_page_size = 100
    page_size_query_param = "limit"
    ordering = ("role_rank", "joined_at", "id")
    cursor_query_param = "cursor"
