"""HMAC request signing.

Each outgoing request gets a fresh header set: the Unix timestamp in
whole seconds, a random nonce, and a hex HMAC-SHA256 over
``timestamp + nonce + payload`` keyed with the shared secret. The
payload is empty for GET and the exact transmitted JSON text for POST.

Usage::

    signer = HmacSigner(api_key, api_secret)
    body_text = serialize_body({"racketIds": ["1", "2"]})
    headers = signer.sign(body_text).as_dict()
    await client.post(path, content=body_text, headers=headers)
"""

from __future__ import annotations

import hmac
import json
import logging
import secrets
import time
from hashlib import sha256
from typing import Any, Callable

from padel_client.errors import ApiFailure, ErrorKind, log_failure
from padel_client.models import AuthHeaders

LOGGER = logging.getLogger(__name__)

# 8 random bytes -> 16 hex characters.
NONCE_BYTES = 8


def serialize_body(body: Any) -> str:
    """Compact JSON text; the same string is signed and transmitted."""
    return json.dumps(body, separators=(",", ":"), ensure_ascii=False)


def create_signature(secret: str, timestamp: int, nonce: str, payload: str = "") -> str:
    message = f"{timestamp}{nonce}{payload}".encode("utf-8")
    return hmac.new(secret.encode("utf-8"), message, sha256).hexdigest()


def generate_nonce() -> str:
    return secrets.token_hex(NONCE_BYTES)


class HmacSigner:
    """Builds authentication headers for one request at a time.

    The key and secret are fixed at construction. Missing credentials are
    reported once, here; signing still goes ahead so the request is
    attempted and rejected by the server.
    """

    def __init__(
        self,
        api_key: str,
        api_secret: str,
        *,
        clock: Callable[[], float] = time.time,
        nonce_factory: Callable[[], str] = generate_nonce,
    ) -> None:
        self._api_key = api_key or ""
        self._api_secret = api_secret or ""
        self._clock = clock
        self._nonce_factory = nonce_factory

        if not self._api_key or not self._api_secret:
            log_failure(
                ApiFailure(
                    kind=ErrorKind.CONFIGURATION,
                    status=None,
                    message="API key or secret not configured; API calls will fail authentication",
                ),
                logger=LOGGER,
            )

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def api_secret(self) -> str:
        return self._api_secret

    @property
    def configured(self) -> bool:
        return bool(self._api_key) and bool(self._api_secret)

    def create_signature(self, timestamp: int, nonce: str, payload: str = "") -> str:
        return create_signature(self._api_secret, timestamp, nonce, payload)

    def sign(self, payload: str = "") -> AuthHeaders:
        timestamp = int(self._clock())
        nonce = self._nonce_factory()
        return AuthHeaders(
            api_key=self._api_key,
            timestamp=timestamp,
            nonce=nonce,
            signature=self.create_signature(timestamp, nonce, payload),
        )
