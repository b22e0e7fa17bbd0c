"""
ViewSet mixins for common DRF functionality.

Available Mixins:
    ServiceResultMixin: Turn ServiceResult values into DRF responses

Usage:
    from core.viewset_mixins import ServiceResultMixin

    class WorkspaceViewSet(ServiceResultMixin, viewsets.GenericViewSet):
        def create(self, request):
            result = WorkspaceService.create_workspace(request.user, **data)
            if not result:
                return self.failure_response(result)
            return Response(WorkspaceSerializer(result.data).data, status=201)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from rest_framework.response import Response

if TYPE_CHECKING:
    from core.services import ServiceResult


class ServiceResultMixin:
    """
    Render failed service results consistently.

    The body is {"error", "error_code", "errors"?} and the status comes from
    the result (400 unless the service chose 401/403/404/409).
    """

    def failure_response(self, result: ServiceResult) -> Response:
        return Response(result.to_response(), status=result.status_code)
