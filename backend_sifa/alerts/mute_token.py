"""
Mute tokens: HMAC-SHA256 of the target id under a shared secret.

Deterministic and stable across restarts, so a mute link in an old alert
keeps working until the secret is rotated. No expiry; the next liveness
report clears the mute anyway.
"""

from __future__ import annotations

import hashlib
import hmac
from urllib.parse import quote


class MuteTokenSigner:
    """Generate and verify mute tokens for target ids."""

    def __init__(self, secret: str | bytes) -> None:
        self._key = secret.encode("utf-8") if isinstance(secret, str) else bytes(secret)

    def generate(self, target_id: str) -> str:
        """Hex HMAC-SHA256 of target_id."""
        return hmac.new(self._key, target_id.encode("utf-8"), hashlib.sha256).hexdigest()

    def verify(self, target_id: str, token: str) -> bool:
        """Recompute and compare in constant time."""
        if not token:
            return False
        expected = self.generate(target_id)
        return hmac.compare_digest(expected.encode("ascii"), token.strip().lower().encode("utf-8"))

    def mute_url(self, base_url: str, target_id: str) -> str:
        """Public link that mutes target_id: {base}/mute/{id}/{token}."""
        return f"{base_url.rstrip('/')}/mute/{quote(target_id, safe='')}/{self.generate(target_id)}"
