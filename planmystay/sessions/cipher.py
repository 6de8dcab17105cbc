"""
cipher.py — symmetric encryption of stored session payloads.

The Fernet key is derived from the application SECRET with SHA-256, so
rotating SECRET invalidates every stored session (users sign in again).
"""
import base64
import hashlib
import json
from typing import Optional

from cryptography.fernet import Fernet, InvalidToken


class SessionCipher:
    def __init__(self, secret: str) -> None:
        digest = hashlib.sha256(secret.encode("utf-8")).digest()
        self._fernet = Fernet(base64.urlsafe_b64encode(digest))

    def encrypt(self, data: dict) -> str:
        raw = json.dumps(data, separators=(",", ":")).encode("utf-8")
        return self._fernet.encrypt(raw).decode("ascii")

    def decrypt(self, token: str) -> Optional[dict]:
        """Returns None for tokens written under a different secret or tampered with."""
        try:
            raw = self._fernet.decrypt(token.encode("ascii"))
        except (InvalidToken, ValueError):
            return None
        data = json.loads(raw)
        return data if isinstance(data, dict) else None
