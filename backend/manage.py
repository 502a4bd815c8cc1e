#!/usr/bin/env python
"""Command-line entry point for the university registry (migrate, runserver,
audit_credential_hashes, ...)."""
import os
import sys


def main():
    from univerify_backend.env import load_env

    load_env()
    os.environ.setdefault("DJANGO_SETTINGS_MODULE", "univerify_backend.settings")
    try:
        from django.core.management import execute_from_command_line
    except ImportError as exc:
        raise ImportError(
            "Couldn't import Django. Is it installed and available on your "
            "PYTHONPATH? Did you forget to activate a virtual environment?"
        ) from exc
    execute_from_command_line(sys.argv)


if __name__ == "__main__":
    main()
