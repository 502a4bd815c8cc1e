import hashlib
import json
import re
from io import StringIO
from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.core.management import call_command
from django.core.management.base import CommandError
from django.db import DataError
from django.test import SimpleTestCase, TestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog
from universities.models import University

from .canonical import canonicalize, hash_canonical, hash_credential
from .models import IssuedCredential, VerificationEvent
from .services import credential_payload, issue_credential


User = get_user_model()

ISSUER_WALLET = "0x" + "ab" * 20

CREDENTIAL = {
    "student_name": "Ananya Rao",
    "university_name": "University of Hyderabad",
    "degree_type": "Bachelor of Technology",
    "major": "Computer Science",
    "gpa": "9.1",
    "graduation_date": "2025-06-30",
}


def make_university(**overrides):
    fields = {
        "legal_name": "University of Hyderabad",
        "type": University.Type.CENTRAL,
        "state": "Telangana",
        "website_domain": "uohyd.ac.in",
        "registrar_official_email": "registrar@uohyd.ac.in",
        "wallet_address": ISSUER_WALLET,
        "verification_status": University.VerificationStatus.APPROVED,
    }
    fields.update(overrides)
    return University.objects.create(**fields)


class CanonicalizeTests(SimpleTestCase):
    def test_key_order_does_not_matter(self):
        a = {"b": 1, "a": 2, "c": {"y": 1, "x": 2}}
        b = {"c": {"x": 2, "y": 1}, "a": 2, "b": 1}
        self.assertEqual(canonicalize(a), canonicalize(b))
        self.assertEqual(canonicalize(a), '{"a":2,"b":1,"c":{"x":2,"y":1}}')

    def test_non_ascii_is_kept(self):
        self.assertEqual(canonicalize({"name": "Ānanyā"}), '{"name":"Ānanyā"}')

    def test_nan_is_refused(self):
        with self.assertRaises(ValueError):
            canonicalize({"gpa": float("nan")})

    def test_credential_payload_is_always_encodable(self):
        payload = credential_payload({"gpa": float("nan"), "major": None, "student_name": {"first", "last"}})
        raw = canonicalize(payload)
        self.assertEqual(json.loads(raw)["gpa"], "nan")
        self.assertEqual(json.loads(raw)["major"], "")
        self.assertEqual(set(json.loads(raw)), set(IssuedCredential.DATA_FIELDS))

    def test_hash_is_sha256_of_canonical_text(self):
        raw = canonicalize(CREDENTIAL)
        self.assertEqual(json.loads(raw), CREDENTIAL)
        self.assertEqual(hash_canonical(raw), hashlib.sha256(raw.encode("utf-8")).hexdigest())
        self.assertRegex(hash_credential(CREDENTIAL), r"^[0-9a-f]{64}$")

    def test_hash_is_deterministic(self):
        reordered = dict(reversed(list(CREDENTIAL.items())))
        self.assertEqual(hash_credential(CREDENTIAL), hash_credential(reordered))

    def test_any_field_change_changes_hash(self):
        base = hash_credential(CREDENTIAL)
        for name in IssuedCredential.DATA_FIELDS:
            with self.subTest(field=name):
                changed = dict(CREDENTIAL, **{name: CREDENTIAL[name] + "x"})
                self.assertNotEqual(hash_credential(changed), base)


class IssueCredentialAPITests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username="issuer_admin",
            password="pw123456",
            email="issuer_admin@example.com",
            role=User.ROLE_ADMIN,
        )
        self.reviewer = User.objects.create_user(
            username="issuer_reviewer",
            password="pw123456",
            email="issuer_reviewer@example.com",
            role=User.ROLE_REVIEWER,
        )
        self.university = make_university()
        self.client.force_authenticate(user=self.admin)

    def _issue(self, **overrides):
        payload = dict(CREDENTIAL, wallet_address=ISSUER_WALLET.upper().replace("0X", "0x"))
        payload.update(overrides)
        return self.client.post("/api/credentials/issue/", payload, format="json")

    def test_issue_stores_canonical_record(self):
        res = self._issue()
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)

        credential = IssuedCredential.objects.get()
        self.assertEqual(res.data["credential_hash"], hash_credential(CREDENTIAL))
        self.assertEqual(credential.credential_hash, hash_credential(CREDENTIAL))
        self.assertEqual(credential.raw_json, canonicalize(CREDENTIAL))
        self.assertEqual(credential.wallet_address, ISSUER_WALLET)
        self.assertEqual(credential.university_id, self.university.pk)
        self.assertEqual(credential.issued_by_id, self.admin.pk)
        self.assertTrue(re.fullmatch(r"0x[0-9a-f]{64}", credential.transaction_id))
        self.assertTrue(credential.is_intact())

    def test_supplied_transaction_id_is_kept(self):
        res = self._issue(transaction_id="0xfeed")
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertEqual(IssuedCredential.objects.get().transaction_id, "0xfeed")

    def test_issue_is_audited(self):
        self._issue()
        entry = AuditLog.objects.get()
        self.assertEqual(entry.event_type, AuditLog.EventType.CREDENTIAL_ISSUED)
        self.assertEqual(entry.metadata["credential_hash"], hash_credential(CREDENTIAL))

    def test_missing_field_is_rejected(self):
        res = self._issue(major="   ")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("major", res.data)
        self.assertEqual(IssuedCredential.objects.count(), 0)

    def test_invalid_wallet_is_rejected(self):
        res = self._issue(wallet_address="0x123")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn("wallet_address", res.data)

    def test_pending_issuer_is_refused(self):
        self.university.verification_status = University.VerificationStatus.PENDING
        self.university.save(update_fields=["verification_status"])

        res = self._issue()
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(IssuedCredential.objects.count(), 0)

    @override_settings(CREDENTIALS_REQUIRE_APPROVED_ISSUER=False)
    def test_unknown_issuer_allowed_when_not_required(self):
        res = self._issue(wallet_address="0x" + "cd" * 20)
        self.assertEqual(res.status_code, status.HTTP_201_CREATED, res.data)
        self.assertIsNone(IssuedCredential.objects.get().university_id)

    def test_duplicate_credential_conflicts(self):
        self.assertEqual(self._issue().status_code, status.HTTP_201_CREATED)

        res = self._issue()
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["credential_hash"], hash_credential(CREDENTIAL))
        self.assertEqual(IssuedCredential.objects.count(), 1)

    def test_reviewer_cannot_issue_but_can_list(self):
        self._issue()
        self.client.force_authenticate(user=self.reviewer)

        self.assertEqual(self._issue(major="Physics").status_code, status.HTTP_403_FORBIDDEN)

        res = self.client.get("/api/credentials/", {"wallet_address": ISSUER_WALLET})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data), 1)


@override_settings(PUBLIC_VERIFY_THROTTLE_RATE="1000/min")
class PublicVerifyTests(APITestCase):
    def setUp(self):
        cache.clear()
        make_university()
        self.credential = issue_credential(data=CREDENTIAL, wallet_address=ISSUER_WALLET)
        self.url = f"/api/public/credentials/verify/{self.credential.credential_hash}/"

    def test_verify_valid_credential(self):
        res = self.client.get(self.url)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["valid"])
        self.assertEqual(res.data["outcome"], "VALID")
        self.assertEqual(res.data["student_name"], CREDENTIAL["student_name"])
        self.assertEqual(res.data["issuer"]["website_domain"], "uohyd.ac.in")
        self.assertTrue(res.data["issuer"]["approved"])

        event = VerificationEvent.objects.get()
        self.assertEqual(event.outcome, VerificationEvent.Outcome.VALID)
        self.assertEqual(event.credential_hash, self.credential.credential_hash)

    def test_tampered_record_is_flagged(self):
        IssuedCredential.objects.filter(pk=self.credential.pk).update(gpa="10.0")

        res = self.client.get(self.url)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertFalse(res.data["valid"])
        self.assertEqual(res.data["outcome"], "TAMPERED")
        self.assertEqual(VerificationEvent.objects.get().outcome, VerificationEvent.Outcome.TAMPERED)

    def test_oversized_forwarded_address_is_truncated(self):
        res = self.client.get(self.url, HTTP_X_FORWARDED_FOR="1" * 100 + ", 10.0.0.1")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(VerificationEvent.objects.get().ip_address, "1" * 64)

    def test_event_store_failure_does_not_break_lookup(self):
        with mock.patch.object(VerificationEvent.objects, "create", side_effect=DataError("value too long")):
            res = self.client.get(self.url)
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["valid"])
        self.assertEqual(VerificationEvent.objects.count(), 0)

    def test_unknown_hash_is_not_found(self):
        res = self.client.get(f"/api/public/credentials/verify/{'0' * 64}/")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)
        self.assertFalse(res.data["valid"])
        self.assertEqual(VerificationEvent.objects.get().outcome, VerificationEvent.Outcome.NOT_FOUND)

    def test_uppercase_hash_redirects(self):
        res = self.client.get(f"/api/public/credentials/verify/{self.credential.credential_hash.upper()}/")
        self.assertEqual(res.status_code, status.HTTP_301_MOVED_PERMANENTLY)
        self.assertEqual(res["Location"], self.url)

    def test_trailing_newline_redirects(self):
        res = self.client.get(f"/api/public/credentials/verify/{self.credential.credential_hash}%0A/")
        self.assertEqual(res.status_code, status.HTTP_301_MOVED_PERMANENTLY)
        self.assertEqual(res["Location"], self.url)

    def test_encoded_whitespace_in_prefix_redirects(self):
        res = self.client.get(f"/api/%20%20public/credentials/verify/{self.credential.credential_hash}/")
        self.assertEqual(res.status_code, status.HTTP_301_MOVED_PERMANENTLY)
        self.assertEqual(res["Location"], self.url)

    def test_lookup_by_fields(self):
        res = self.client.post("/api/public/credentials/verify/", dict(reversed(list(CREDENTIAL.items()))), format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data["credential_hash"], self.credential.credential_hash)
        self.assertTrue(res.data["valid"])

        res = self.client.post("/api/public/credentials/verify/", dict(CREDENTIAL, gpa="9.2"), format="json")
        self.assertEqual(res.status_code, status.HTTP_404_NOT_FOUND)

    @override_settings(PUBLIC_VERIFY_THROTTLE_RATE="2/min")
    def test_public_verify_is_throttled(self):
        cache.clear()
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_200_OK)
        self.assertEqual(self.client.get(self.url).status_code, status.HTTP_429_TOO_MANY_REQUESTS)


class AuditCredentialHashesCommandTests(TestCase):
    def setUp(self):
        make_university()
        self.credential = issue_credential(data=CREDENTIAL, wallet_address=ISSUER_WALLET)

    def test_reports_all_matching(self):
        out = StringIO()
        call_command("audit_credential_hashes", stdout=out)
        self.assertIn("Checked 1 credential(s).", out.getvalue())
        self.assertIn("All credential hashes match.", out.getvalue())

    def test_reports_tampered_record(self):
        IssuedCredential.objects.filter(pk=self.credential.pk).update(raw_json="{}")

        out = StringIO()
        call_command("audit_credential_hashes", stdout=out)
        self.assertIn(f"id={self.credential.pk}", out.getvalue())

        with self.assertRaises(CommandError):
            call_command("audit_credential_hashes", "--fail-on-mismatch", stdout=StringIO())
