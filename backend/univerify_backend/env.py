from __future__ import annotations

from pathlib import Path

from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parent.parent


def load_env() -> Path | None:
    """Load `backend/.env` (Docker) or, failing that, the repository root `.env`.

    Variables already present in the environment are never overridden.
    Returns the file that was loaded, if any.
    """

    for candidate in (BACKEND_DIR / ".env", BACKEND_DIR.parent / ".env"):
        if candidate.exists():
            load_dotenv(candidate, override=False)
            return candidate
    return None
