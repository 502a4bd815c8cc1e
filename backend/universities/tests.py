from unittest import mock

from django.contrib.auth import get_user_model
from django.core.cache import cache
from django.db import DatabaseError
from django.test import SimpleTestCase, override_settings
from rest_framework import status
from rest_framework.test import APITestCase

from audit.models import AuditLog

from .models import University
from .validation import RegistrationCandidate, RegistrationField, validate


User = get_user_model()

HIGH_RATES = {
    "REGISTRATION_THROTTLE_RATE": "1000/min",
    "REGISTRATION_PREFLIGHT_THROTTLE_RATE": "1000/min",
}


def valid_payload(**overrides):
    payload = {
        "legalName": "Indian Institute of Science",
        "type": "CENTRAL",
        "state": "Karnataka",
        "ugcReference": "UGC/2024/001",
        "aisheCode": "U-0123",
        "websiteDomain": "IISc.ac.in",
        "registrarOfficialEmail": "Registrar@IISc.ac.in",
        "walletAddress": "0xABCDEF0123456789abcdef0123456789ABCDEF01",
    }
    payload.update(overrides)
    return payload


class ValidatorTests(SimpleTestCase):
    def test_valid_submission_is_normalized(self):
        result = validate(valid_payload())
        self.assertTrue(result.is_valid)
        self.assertFalse(result.errors)

        candidate = result.candidate
        self.assertEqual(candidate.website_domain, "iisc.ac.in")
        self.assertEqual(candidate.registrar_official_email, "registrar@iisc.ac.in")
        self.assertEqual(candidate.wallet_address, "0xabcdef0123456789abcdef0123456789abcdef01")
        self.assertEqual(candidate.legal_name, "Indian Institute of Science")

    def test_blank_optional_fields_become_absent(self):
        result = validate(valid_payload(ugcReference="", aisheCode="   "))
        self.assertTrue(result.is_valid)
        self.assertIsNone(result.candidate.ugc_reference)
        self.assertIsNone(result.candidate.aishe_code)

        result = validate({k: v for k, v in valid_payload().items() if k not in {"ugcReference", "aisheCode"}})
        self.assertTrue(result.is_valid)
        self.assertIsNone(result.candidate.ugc_reference)

    def test_single_violation_reports_exactly_one_field(self):
        cases = [
            (RegistrationField.LEGAL_NAME, {"legalName": "AB"}),
            (RegistrationField.LEGAL_NAME, {"legalName": "X" * 256}),
            (RegistrationField.TYPE, {"type": "PUBLIC"}),
            (RegistrationField.STATE, {"state": "Atlantis"}),
            (RegistrationField.UGC_REFERENCE, {"ugcReference": "U" * 256}),
            (RegistrationField.AISHE_CODE, {"aisheCode": "AB-123456"}),
            (RegistrationField.WALLET_ADDRESS, {"walletAddress": "0x123"}),
            (RegistrationField.REGISTRAR_OFFICIAL_EMAIL, {"registrarOfficialEmail": "registrar-at-iisc.ac.in"}),
        ]
        for field, override in cases:
            with self.subTest(field=field, override=override):
                result = validate(valid_payload(**override))
                self.assertFalse(result.is_valid)
                self.assertIsNone(result.candidate)
                self.assertEqual(list(result.errors.as_dict()), [field.value])

    def test_invalid_domain_is_reported_on_domain_only(self):
        # Email is exempt by suffix, so only the domain rule can fail.
        result = validate(valid_payload(websiteDomain="-bad-.com", registrarOfficialEmail="registrar@iisc.ac.in"))
        self.assertEqual(list(result.errors.as_dict()), ["websiteDomain"])

        result = validate(valid_payload(websiteDomain="ab", registrarOfficialEmail="registrar@iisc.ac.in"))
        self.assertEqual(result.errors.get(RegistrationField.WEBSITE_DOMAIN), "Website domain is required")

    def test_all_field_errors_are_reported_together(self):
        result = validate({})
        self.assertEqual(
            set(result.errors.as_dict()),
            {"legalName", "type", "state", "websiteDomain", "registrarOfficialEmail", "walletAddress"},
        )

    def test_first_violated_rule_wins_per_field(self):
        result = validate(valid_payload(legalName=""))
        self.assertEqual(
            result.errors.as_dict()["legalName"],
            "University legal name must be at least 3 characters",
        )

    def test_cross_field_violation_is_attached_to_email(self):
        result = validate(valid_payload(websiteDomain="x.com", registrarOfficialEmail="a@y.com"))
        self.assertFalse(result.is_valid)
        self.assertEqual(list(result.errors.as_dict()), ["registrarOfficialEmail"])
        self.assertIsNone(result.errors.get(RegistrationField.WEBSITE_DOMAIN))
        self.assertIn(".edu.in", result.errors.get(RegistrationField.REGISTRAR_OFFICIAL_EMAIL))

    def test_academic_suffix_exempts_domain_mismatch(self):
        self.assertTrue(validate(valid_payload(websiteDomain="x.com", registrarOfficialEmail="registrar@x.edu.in")).is_valid)
        self.assertTrue(validate(valid_payload(websiteDomain="x.com", registrarOfficialEmail="registrar@x.ac.in")).is_valid)

    def test_exact_domain_match_passes_case_insensitively(self):
        self.assertTrue(validate(valid_payload(websiteDomain="x.com", registrarOfficialEmail="a@x.com")).is_valid)
        self.assertTrue(validate(valid_payload(websiteDomain="X.COM", registrarOfficialEmail="a@x.Com")).is_valid)

    def test_cross_field_rule_skipped_when_a_side_is_malformed(self):
        result = validate(valid_payload(websiteDomain="not a domain", registrarOfficialEmail="a@y.com"))
        self.assertEqual(list(result.errors.as_dict()), ["websiteDomain"])

    def test_wallet_address_rules(self):
        self.assertTrue(validate(valid_payload(walletAddress="0xABCDEF0123456789abcdef0123456789ABCDEF01")).is_valid)
        for wallet in ("0x123", "ABCDEF0123456789abcdef0123456789ABCDEF0101", "0xZBCDEF0123456789abcdef0123456789ABCDEF01", ""):
            with self.subTest(wallet=wallet):
                result = validate(valid_payload(walletAddress=wallet))
                self.assertEqual(list(result.errors.as_dict()), ["walletAddress"])

    def test_aishe_code_rules(self):
        for code in ("A-123456", "A-123", "Z-0001"):
            with self.subTest(code=code):
                self.assertTrue(validate(valid_payload(aisheCode=code)).is_valid)
        for code in ("AB-123456", "A-12", "A-1234567", "a-1234", "A123456"):
            with self.subTest(code=code):
                self.assertEqual(list(validate(valid_payload(aisheCode=code)).errors.as_dict()), ["aisheCode"])

    def test_domain_grammar(self):
        for domain in ("example.edu.in", "a-b.example.com", "localhost", "x1.co"):
            with self.subTest(domain=domain):
                self.assertIsNone(validate(valid_payload(websiteDomain=domain)).errors.get(RegistrationField.WEBSITE_DOMAIN))
        for domain in ("exa_mple.com", "example..com", "-example.com", "example-.com", "a" * 64 + ".com", "example.com\n", "\u212aerala.in"):
            with self.subTest(domain=domain):
                self.assertIsNotNone(validate(valid_payload(websiteDomain=domain)).errors.get(RegistrationField.WEBSITE_DOMAIN))

    def test_untrusted_shapes_never_raise(self):
        for data in (None, [], "text", {"legalName": 12345, "type": None, "walletAddress": ["0x"]}):
            with self.subTest(data=data):
                result = validate(data)
                self.assertFalse(result.is_valid)

    def test_non_text_values_are_rejected_not_coerced(self):
        cases = [
            ("legalName", True),
            ("legalName", ["a", "b"]),
            ("ugcReference", {"x": 1}),
            ("aisheCode", 123456),
        ]
        for name, value in cases:
            with self.subTest(field=name, value=value):
                result = validate(valid_payload(**{name: value}))
                self.assertFalse(result.is_valid)
                self.assertEqual(result.errors.as_dict(), {name: f"{name} must be a string"})

    def test_null_counts_as_missing(self):
        result = validate(valid_payload(ugcReference=None, aisheCode=None))
        self.assertTrue(result.is_valid)
        self.assertIsNone(result.candidate.aishe_code)

    def test_accepts_candidate_instances(self):
        candidate = RegistrationCandidate.from_mapping(valid_payload())
        self.assertTrue(validate(candidate).is_valid)


@override_settings(**HIGH_RATES)
class PreflightParityTests(APITestCase):
    """The advisory endpoint and the registration endpoint must agree on every case."""

    CASES = [
        {},
        {"legalName": "AB"},
        {"type": "private"},
        {"state": "karnataka"},
        {"aisheCode": "A-12"},
        {"aisheCode": "A-1234567"},
        {"websiteDomain": "x.com", "registrarOfficialEmail": "a@y.com"},
        {"websiteDomain": "bad_domain.com"},
        {"registrarOfficialEmail": "not-an-email"},
        {"walletAddress": "0x123"},
        {"walletAddress": "ABCDEF0123456789abcdef0123456789ABCDEF0101"},
        {"websiteDomain": "alpha.com", "registrarOfficialEmail": "a@alpha.com"},
        {"websiteDomain": "beta.com", "registrarOfficialEmail": "registrar@beta.edu.in"},
        {"websiteDomain": "gamma.ac.in", "registrarOfficialEmail": "dean@gamma.ac.in", "aisheCode": ""},
    ]

    def setUp(self):
        cache.clear()

    def test_both_call_sites_agree(self):
        for override in self.CASES:
            with self.subTest(override=override):
                payload = valid_payload(**override)
                pre = self.client.post("/api/universities/validate/", payload, format="json")
                reg = self.client.post("/api/universities/register/", payload, format="json")

                if pre.status_code == status.HTTP_200_OK:
                    self.assertEqual(reg.status_code, status.HTTP_200_OK, reg.data)
                    self.assertEqual(pre.data["data"]["websiteDomain"], reg.data["data"]["website_domain"])
                    self.assertEqual(pre.data["data"]["walletAddress"], reg.data["data"]["wallet_address"])
                else:
                    self.assertEqual(pre.status_code, status.HTTP_400_BAD_REQUEST)
                    self.assertEqual(reg.status_code, status.HTTP_400_BAD_REQUEST)
                    self.assertEqual(pre.data["details"], reg.data["details"])

    def test_preflight_never_persists(self):
        res = self.client.post("/api/universities/validate/", valid_payload(), format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertTrue(res.data["valid"])
        self.assertEqual(University.objects.count(), 0)


@override_settings(**HIGH_RATES)
class RegistrationAPITests(APITestCase):
    def setUp(self):
        cache.clear()

    def _register(self, **overrides):
        return self.client.post("/api/universities/register/", valid_payload(**overrides), format="json")

    def test_register_creates_pending_record(self):
        res = self._register()
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertTrue(res.data["success"])

        record = University.objects.get()
        self.assertEqual(record.verification_status, University.VerificationStatus.PENDING)
        self.assertEqual(record.website_domain, "iisc.ac.in")
        self.assertEqual(record.registrar_official_email, "registrar@iisc.ac.in")
        self.assertEqual(record.wallet_address, "0xabcdef0123456789abcdef0123456789abcdef01")
        self.assertEqual(res.data["data"]["id"], record.pk)
        self.assertEqual(res.data["data"]["verification_status"], "PENDING")

    def test_blank_optionals_are_stored_as_null(self):
        res = self._register(ugcReference="", aisheCode="")
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        record = University.objects.get()
        self.assertIsNone(record.ugc_reference)
        self.assertIsNone(record.aishe_code)

    def test_validation_failure_shape(self):
        res = self._register(websiteDomain="x.com", registrarOfficialEmail="a@y.com")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(res.data["error"], "Validation failed")
        self.assertEqual(list(res.data["details"]), ["registrarOfficialEmail"])
        self.assertEqual(University.objects.count(), 0)

    def test_duplicate_domain_blocks_registration(self):
        self.assertEqual(self._register().status_code, status.HTTP_200_OK)

        res = self._register(registrarOfficialEmail="other@iisc.ac.in", websiteDomain="IISC.AC.IN")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["details"], {"existing": "PENDING"})
        self.assertEqual(University.objects.count(), 1)

    def test_duplicate_email_blocks_registration(self):
        self.assertEqual(self._register().status_code, status.HTTP_200_OK)

        res = self._register(websiteDomain="another.ac.in")
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(University.objects.count(), 1)

    def test_rejected_record_still_blocks_registration(self):
        self.assertEqual(self._register().status_code, status.HTTP_200_OK)
        University.objects.update(verification_status=University.VerificationStatus.REJECTED)

        res = self._register()
        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["details"], {"existing": "REJECTED"})

    def test_lost_race_is_reported_as_duplicate(self):
        self.assertEqual(self._register().status_code, status.HTTP_200_OK)

        with mock.patch("universities.services.check_duplicate", side_effect=[None, "APPROVED"]):
            res = self._register()

        self.assertEqual(res.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(res.data["details"], {"existing": "APPROVED"})

    def test_store_failure_is_not_a_validation_error(self):
        with mock.patch.object(University.objects, "filter", side_effect=DatabaseError("connection refused")):
            res = self._register()

        self.assertEqual(res.status_code, status.HTTP_503_SERVICE_UNAVAILABLE)
        self.assertNotIn("details", res.data)

    @override_settings(REGISTRATION_THROTTLE_RATE="2/min")
    def test_registration_is_throttled(self):
        cache.clear()
        self.assertEqual(self._register().status_code, status.HTTP_200_OK)
        self.assertEqual(self._register().status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(self._register().status_code, status.HTTP_429_TOO_MANY_REQUESTS)


class ReviewWorkflowTests(APITestCase):
    def setUp(self):
        self.admin = User.objects.create_user(
            username="admin_review",
            password="pw123456",
            email="admin_review@example.com",
            role=User.ROLE_ADMIN,
        )
        self.reviewer = User.objects.create_user(
            username="reviewer",
            password="pw123456",
            email="reviewer@example.com",
            role=User.ROLE_REVIEWER,
        )
        self.university = University.objects.create(
            legal_name="University of Hyderabad",
            type=University.Type.CENTRAL,
            state="Telangana",
            website_domain="uohyd.ac.in",
            registrar_official_email="registrar@uohyd.ac.in",
            wallet_address="0x" + "a" * 40,
        )

    def test_admin_can_approve(self):
        self.client.force_authenticate(user=self.admin)
        res = self.client.post(f"/api/universities/{self.university.pk}/approve/", {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)

        self.university.refresh_from_db()
        self.assertEqual(self.university.verification_status, University.VerificationStatus.APPROVED)
        self.assertEqual(self.university.reviewed_by_id, self.admin.id)
        self.assertIsNotNone(self.university.reviewed_at)

        entry = AuditLog.objects.get()
        self.assertEqual(entry.event_type, AuditLog.EventType.UNIVERSITY_APPROVED)
        self.assertEqual(entry.object_id, str(self.university.pk))
        self.assertEqual(entry.actor_id, self.admin.id)

    def test_reject_requires_reason(self):
        self.client.force_authenticate(user=self.admin)
        res = self.client.post(f"/api/universities/{self.university.pk}/reject/", {"reason": "  "}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)

        self.university.refresh_from_db()
        self.assertEqual(self.university.verification_status, University.VerificationStatus.PENDING)

    def test_admin_can_reject_with_reason(self):
        self.client.force_authenticate(user=self.admin)
        res = self.client.post(
            f"/api/universities/{self.university.pk}/reject/",
            {"reason": "AISHE code could not be confirmed"},
            format="json",
        )
        self.assertEqual(res.status_code, status.HTTP_200_OK, res.data)
        self.assertEqual(res.data["verification_status"], "REJECTED")
        self.assertEqual(res.data["rejection_reason"], "AISHE code could not be confirmed")
        self.assertEqual(AuditLog.objects.get().event_type, AuditLog.EventType.UNIVERSITY_REJECTED)

    def test_decisions_are_final(self):
        self.client.force_authenticate(user=self.admin)
        self.client.post(f"/api/universities/{self.university.pk}/reject/", {"reason": "Incomplete"}, format="json")

        res = self.client.post(f"/api/universities/{self.university.pk}/approve/", {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_400_BAD_REQUEST)
        self.university.refresh_from_db()
        self.assertEqual(self.university.verification_status, University.VerificationStatus.REJECTED)

    def test_reviewer_can_list_but_not_decide(self):
        self.client.force_authenticate(user=self.reviewer)
        res = self.client.get("/api/universities/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(len(res.data), 1)

        res = self.client.post(f"/api/universities/{self.university.pk}/approve/", {}, format="json")
        self.assertEqual(res.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_list(self):
        res = self.client.get("/api/universities/")
        self.assertEqual(res.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_list_filters_and_stats(self):
        University.objects.create(
            legal_name="Ashoka University",
            type=University.Type.PRIVATE,
            state="Haryana",
            website_domain="ashoka.edu.in",
            registrar_official_email="registrar@ashoka.edu.in",
            wallet_address="0x" + "b" * 40,
            verification_status=University.VerificationStatus.APPROVED,
        )
        self.client.force_authenticate(user=self.reviewer)

        res = self.client.get("/api/universities/", {"verification_status": "APPROVED"})
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual([row["website_domain"] for row in res.data], ["ashoka.edu.in"])

        res = self.client.get("/api/universities/stats/")
        self.assertEqual(res.status_code, status.HTTP_200_OK)
        self.assertEqual(res.data, {"PENDING": 1, "APPROVED": 1, "REJECTED": 0, "TOTAL": 2})
