from django.contrib.auth import get_user_model
from django.contrib.auth.models import AnonymousUser
from django.test import RequestFactory, TestCase
from rest_framework import status
from rest_framework.test import APITestCase

from .models import AuditLog
from .services import get_client_ip, log_event


User = get_user_model()


class AuditLogServiceTests(TestCase):
	def setUp(self):
		self.factory = RequestFactory()
		self.user = User.objects.create_user(
			username="auditor",
			password="pw123456",
			email="auditor@example.com",
			role=User.ROLE_ADMIN,
		)

	def test_first_forwarded_address_wins(self):
		request = self.factory.post("/api/universities/1/approve/", HTTP_X_FORWARDED_FOR="203.0.113.7, 10.0.0.1")
		self.assertEqual(get_client_ip(request), "203.0.113.7")

		request = self.factory.post("/api/universities/1/approve/", REMOTE_ADDR="198.51.100.2")
		self.assertEqual(get_client_ip(request), "198.51.100.2")

	def test_log_event_records_actor_and_request(self):
		request = self.factory.post("/api/universities/7/approve/", HTTP_USER_AGENT="pytest")
		request.user = self.user

		entry = log_event(
			request,
			event_type=AuditLog.EventType.UNIVERSITY_APPROVED,
			object_type="University",
			object_id=7,
			status_code=200,
			metadata={"from": "PENDING", "to": "APPROVED"},
		)

		self.assertIsNotNone(entry)
		entry.refresh_from_db()
		self.assertEqual(entry.actor, self.user)
		self.assertEqual(entry.object_id, "7")
		self.assertEqual(entry.method, "POST")
		self.assertEqual(entry.user_agent, "pytest")
		self.assertEqual(entry.metadata["to"], "APPROVED")

	def test_anonymous_requests_are_not_logged(self):
		request = self.factory.post("/api/universities/7/approve/")
		request.user = AnonymousUser()

		self.assertIsNone(log_event(request, event_type=AuditLog.EventType.UNIVERSITY_APPROVED))
		self.assertEqual(AuditLog.objects.count(), 0)


class AuditLogAPITests(APITestCase):
	def setUp(self):
		self.admin = User.objects.create_user(
			username="audit_admin",
			password="pw123456",
			email="audit_admin@example.com",
			role=User.ROLE_ADMIN,
		)
		AuditLog.objects.create(
			actor=self.admin,
			event_type=AuditLog.EventType.UNIVERSITY_APPROVED,
			object_type="University",
			object_id="12",
			metadata={"from": "PENDING", "to": "APPROVED"},
		)
		AuditLog.objects.create(
			actor=self.admin,
			event_type=AuditLog.EventType.UNIVERSITY_REJECTED,
			object_type="University",
			object_id="13",
			metadata={"from": "PENDING", "to": "REJECTED", "reason": "Unknown AISHE code"},
		)
		self.client.force_authenticate(user=self.admin)

	def test_filter_by_object_reference(self):
		res = self.client.get("/api/audit-logs/", {"object": "University:13"})
		self.assertEqual(res.status_code, status.HTTP_200_OK)
		self.assertEqual(len(res.data), 1)
		self.assertEqual(res.data[0]["summary"], "PENDING -> REJECTED: Unknown AISHE code")
		self.assertEqual(res.data[0]["actor_role"], User.ROLE_ADMIN)

		res = self.client.get("/api/audit-logs/", {"object": "University"})
		self.assertEqual(len(res.data), 2)

	def test_filter_by_event_type(self):
		res = self.client.get("/api/audit-logs/", {"event_type": "UNIVERSITY_APPROVED"})
		self.assertEqual([row["object_id"] for row in res.data], ["12"])
