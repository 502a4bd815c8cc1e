from __future__ import annotations

from django.core.management.base import BaseCommand, CommandError

from credentials.models import IssuedCredential


class Command(BaseCommand):
    help = (
        "Recompute the hash of every issued credential from its stored fields and raw_json "
        "and report the ones that no longer match (read-only)."
    )

    def add_arguments(self, parser):
        parser.add_argument(
            "--limit",
            type=int,
            default=0,
            help="Check at most N credentials, newest first (0 = no limit).",
        )
        parser.add_argument(
            "--fail-on-mismatch",
            action="store_true",
            help="Exit with an error when at least one credential does not match.",
        )

    def handle(self, *args, **options):
        limit = int(options.get("limit") or 0)

        qs = IssuedCredential.objects.all().order_by("-created_at", "-id")
        if limit > 0:
            qs = qs[:limit]

        checked = 0
        mismatched: list[IssuedCredential] = []
        for credential in qs.iterator():
            checked += 1
            if not credential.is_intact():
                mismatched.append(credential)

        self.stdout.write(f"Checked {checked} credential(s).")
        if not mismatched:
            self.stdout.write(self.style.SUCCESS("All credential hashes match."))
            return

        for credential in mismatched:
            self.stdout.write(
                self.style.ERROR(
                    f"- id={credential.pk} stored={credential.credential_hash} "
                    f"fields={credential.recompute_hash()} raw_json={credential.raw_json_hash()}"
                )
            )

        if options.get("fail_on_mismatch"):
            raise CommandError(f"{len(mismatched)} credential(s) failed the hash check.")
        self.stdout.write(self.style.WARNING(f"{len(mismatched)} credential(s) failed the hash check."))
