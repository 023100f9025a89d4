"""HTTP Digest authentication (RFC 2617, ``qop=auth`` only).

MD5 is the algorithm the simulator's installer mandates; it is used here
for protocol compatibility, not for security.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from collections.abc import Callable

from brsremote.domain.models import DigestChallenge

logger = logging.getLogger(__name__)

CNONCE_BYTES = 16


def md5_hex(data: str) -> str:
    return hashlib.md5(data.encode("utf-8"), usedforsecurity=False).hexdigest()


def _challenge_attr(header: str, key: str) -> str:
    match = re.search(rf'\b{key}="([^"]*)"', header, re.IGNORECASE)
    if match:
        return match.group(1)
    # Some servers send qop unquoted
    match = re.search(rf"\b{key}=([^\s,\"]+)", header, re.IGNORECASE)
    return match.group(1) if match else ""


def parse_challenge(header: str) -> DigestChallenge:
    """Extract realm, nonce, qop and opaque from a WWW-Authenticate value.

    Missing attributes become empty strings, except qop which defaults
    to ``auth``.
    """
    return DigestChallenge(
        realm=_challenge_attr(header, "realm"),
        nonce=_challenge_attr(header, "nonce"),
        qop=_challenge_attr(header, "qop") or "auth",
        opaque=_challenge_attr(header, "opaque"),
    )


def compute_response(
    *,
    username: str,
    password: str,
    realm: str,
    method: str,
    uri: str,
    nonce: str,
    nc: str,
    cnonce: str,
    qop: str,
) -> str:
    """Compute the Digest ``response`` value.

    HA1 = MD5(username:realm:password)
    HA2 = MD5(method:uri)
    response = MD5(HA1:nonce:nc:cnonce:qop:HA2)
    """
    ha1 = md5_hex(f"{username}:{realm}:{password}")
    ha2 = md5_hex(f"{method}:{uri}")
    return md5_hex(f"{ha1}:{nonce}:{nc}:{cnonce}:{qop}:{ha2}")


class DigestAuthenticator:
    """Builds Authorization headers for one client's Digest session.

    Owns the nonce counter: it increases by exactly one per header built
    and never repeats for the lifetime of the authenticator.

    Args:
        username: Account name sent to the server.
        password: Account password.
        random_bytes: Source of client-nonce entropy, ``os.urandom`` by
            default. Tests inject a fixed source.
    """

    def __init__(
        self,
        username: str,
        password: str,
        random_bytes: Callable[[int], bytes] = os.urandom,
    ) -> None:
        self._username = username
        self._password = password
        self._random_bytes = random_bytes
        self._nc = 0

    @property
    def username(self) -> str:
        return self._username

    @property
    def nonce_count(self) -> int:
        return self._nc

    def authorization_header(self, challenge: DigestChallenge, method: str, uri: str) -> str:
        """Return the ``Authorization`` value answering ``challenge``."""
        self._nc += 1
        nc = f"{self._nc:08x}"
        cnonce = self._random_bytes(CNONCE_BYTES).hex()

        response = compute_response(
            username=self._username,
            password=self._password,
            realm=challenge.realm,
            method=method,
            uri=uri,
            nonce=challenge.nonce,
            nc=nc,
            cnonce=cnonce,
            qop=challenge.qop,
        )
        logger.debug("Answering digest challenge for %s %s (nc=%s)", method, uri, nc)

        return ", ".join(
            [
                f'Digest username="{self._username}"',
                f'realm="{challenge.realm}"',
                f'nonce="{challenge.nonce}"',
                f'uri="{uri}"',
                f"qop={challenge.qop}",
                f"nc={nc}",
                f'cnonce="{cnonce}"',
                f'response="{response}"',
                f'opaque="{challenge.opaque}"',
            ]
        )
