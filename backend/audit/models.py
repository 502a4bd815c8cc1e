from __future__ import annotations

from django.conf import settings
from django.db import models


class AuditLog(models.Model):
	"""One staff decision on the registry: a review outcome or an issued credential.

	Anonymous traffic (registrations, public lookups) is not recorded here.
	"""

	class EventType(models.TextChoices):
		UNIVERSITY_APPROVED = "UNIVERSITY_APPROVED", "University approved"
		UNIVERSITY_REJECTED = "UNIVERSITY_REJECTED", "University rejected"
		CREDENTIAL_ISSUED = "CREDENTIAL_ISSUED", "Credential issued"

	actor = models.ForeignKey(
		settings.AUTH_USER_MODEL,
		on_delete=models.SET_NULL,
		null=True,
		blank=True,
		related_name="audit_logs",
	)

	event_type = models.CharField(max_length=80, choices=EventType.choices)
	# Model name and primary key of the affected record ("University", "IssuedCredential").
	object_type = models.CharField(max_length=80, blank=True, default="")
	object_id = models.CharField(max_length=80, blank=True, default="")

	path = models.CharField(max_length=300, blank=True, default="")
	method = models.CharField(max_length=10, blank=True, default="")
	status_code = models.PositiveSmallIntegerField(null=True, blank=True)

	ip_address = models.CharField(max_length=64, blank=True, default="")
	user_agent = models.TextField(blank=True, default="")

	# Transition (from/to/reason) or issuance (credential_hash/transaction_id) details.
	metadata = models.JSONField(default=dict, blank=True)

	created_at = models.DateTimeField(auto_now_add=True)

	class Meta:
		ordering = ["-created_at", "-id"]
		indexes = [
			models.Index(fields=["created_at"], name="audit_created_idx"),
			models.Index(fields=["event_type", "created_at"], name="audit_event_created_idx"),
			models.Index(fields=["object_type", "object_id", "created_at"], name="audit_object_created_idx"),
			models.Index(fields=["actor", "created_at"], name="audit_actor_created_idx"),
		]

	@property
	def object_ref(self) -> str:
		if not (self.object_type or self.object_id):
			return "-"
		return f"{self.object_type}:{self.object_id}"

	def summary(self) -> str:
		meta = self.metadata or {}
		if self.event_type == self.EventType.CREDENTIAL_ISSUED:
			return f"hash {str(meta.get('credential_hash', ''))[:12]}"
		if meta.get("reason"):
			return f"{meta.get('from', '?')} -> {meta.get('to', '?')}: {meta['reason']}"
		return f"{meta.get('from', '?')} -> {meta.get('to', '?')}"

	def __str__(self) -> str:
		return f"{self.created_at:%Y-%m-%d %H:%M:%S} {self.event_type} {self.object_ref}"
