"""Signed user-id cookies.

The cookie value is ``<user_id>:<hex HMAC-SHA256 of user_id>``. The signing
key comes from configuration.
"""

import hashlib
import hmac
import uuid
from typing import Optional


class UserTokenSigner:
    """Issues and verifies user tokens."""

    def __init__(self, secret_key: str):
        if not secret_key:
            raise ValueError("secret_key is required")
        self._key = secret_key.encode()

    @staticmethod
    def new_user_id() -> str:
        return str(uuid.uuid4())

    def sign(self, user_id: str) -> str:
        return hmac.new(self._key, user_id.encode(), hashlib.sha256).hexdigest()

    def make_token(self, user_id: str) -> str:
        """Build the cookie value for user_id."""
        return f"{user_id}:{self.sign(user_id)}"

    def verify_token(self, token: Optional[str]) -> Optional[str]:
        """Return the user id carried by a valid token, None otherwise."""
        if not token:
            return None

        parts = token.split(":")
        if len(parts) != 2:
            return None

        user_id, signature = parts
        if not user_id or not hmac.compare_digest(self.sign(user_id), signature):
            return None

        return user_id
