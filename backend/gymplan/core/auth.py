"""Shared-secret check for the ingestion trigger (cron or manual)."""

import secrets

from gymplan.config import settings


def is_valid_cron_secret(auth_header: str | None, secret: str | None = None) -> bool:
    """Exact match of the Authorization header against "Bearer <CRON_SECRET>". No secret configured = deny."""
    secret = settings.cron_secret if secret is None else secret
    if not secret or not auth_header:
        return False
    return secrets.compare_digest(auth_header.encode("utf-8"), f"Bearer {secret}".encode("utf-8"))
