from __future__ import annotations

from django_filters.rest_framework import DjangoFilterBackend
from rest_framework import viewsets

from users.permissions import IsAdmin

from .models import AuditLog
from .serializers import AuditLogSerializer


class AuditLogViewSet(viewsets.ReadOnlyModelViewSet):
	"""Who approved, rejected or issued what.

	`?object=University:12` narrows the trail to a single record.
	"""

	serializer_class = AuditLogSerializer
	permission_classes = [IsAdmin]
	filter_backends = [DjangoFilterBackend]
	filterset_fields = ["event_type", "object_type", "object_id", "actor"]

	def get_queryset(self):
		qs = AuditLog.objects.select_related("actor").all().order_by("-created_at", "-id")

		ref = (self.request.query_params.get("object") or "").strip()
		if ref:
			object_type, _, object_id = ref.partition(":")
			qs = qs.filter(object_type=object_type)
			if object_id:
				qs = qs.filter(object_id=object_id)
		return qs
