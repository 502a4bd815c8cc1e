from django.test import TestCase
from rest_framework.test import APIClient
from rest_framework import status
from .models import User


class UserPermissionTests(TestCase):
    def setUp(self):
        self.client = APIClient()

        self.superadmin = User.objects.create_user(
            username="superadmin", password="password", email="superadmin@example.com", role=User.ROLE_SUPERADMIN
        )
        self.admin = User.objects.create_user(
            username="admin", password="password", email="admin@example.com", role=User.ROLE_ADMIN
        )
        self.reviewer = User.objects.create_user(
            username="reviewer", password="password", email="reviewer@example.com", role=User.ROLE_REVIEWER
        )

    def get_token(self, user):
        response = self.client.post(
            "/api/token/", {"username": user.username, "password": "password"}
        )
        return response.data["access"]

    def test_token_refresh(self):
        response = self.client.post(
            "/api/token/", {"username": self.admin.username, "password": "password"}
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        refresh = self.client.post("/api/token/refresh/", {"refresh": response.data["refresh"]})
        self.assertEqual(refresh.status_code, status.HTTP_200_OK)
        self.assertIn("access", refresh.data)

    def test_wrong_password_gets_no_token(self):
        response = self.client.post(
            "/api/token/", {"username": self.admin.username, "password": "wrong"}
        )
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_can_list_audit_logs(self):
        token = self.get_token(self.admin)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get("/api/audit-logs/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_superadmin_can_list_audit_logs(self):
        token = self.get_token(self.superadmin)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get("/api/audit-logs/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_reviewer_cannot_list_audit_logs(self):
        token = self.get_token(self.reviewer)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get("/api/audit-logs/")
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reviewer_can_list_universities(self):
        token = self.get_token(self.reviewer)
        self.client.credentials(HTTP_AUTHORIZATION="Bearer " + token)
        response = self.client.get("/api/universities/")
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_anonymous_is_rejected(self):
        response = self.client.get("/api/audit-logs/")
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_blank_emails_do_not_collide(self):
        first = User.objects.create_user(username="no_email_1", password="password")
        second = User.objects.create_user(username="no_email_2", password="password")
        self.assertIsNone(first.email)
        self.assertIsNone(second.email)
        self.assertEqual(first.role, User.ROLE_REVIEWER)
        self.assertTrue(second.can_review)
        self.assertFalse(second.can_decide)
