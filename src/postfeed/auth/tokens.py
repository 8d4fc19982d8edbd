"""JWT token issuance and verification.

Learn: The token is a standard HS256 JWT (header.payload.signature, each
segment base64url). The payload carries the user's email and id plus an
absolute expiry. Verification is a pure function of the token, the server
secret and the clock, so any server instance sharing the secret can check
it without a session store. Rotating the secret invalidates every token.
"""

import binascii
import json
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from jwt.utils import base64url_decode, base64url_encode


class TokenError(Exception):
    """Raised when a token cannot be trusted."""

    reason = "invalid"


class MalformedToken(TokenError):
    reason = "malformed"


class BadSignature(TokenError):
    reason = "bad_signature"


class TokenExpired(TokenError):
    reason = "expired"


@dataclass(frozen=True)
class TokenClaims:
    email: str
    user_id: uuid.UUID
    expires_at: Optional[datetime] = None


class TokenService:
    """Signs and verifies identity tokens with one process-wide secret."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        default_ttl: timedelta = timedelta(hours=4),
    ):
        if not secret:
            raise ValueError("Token signing secret must not be empty")
        self._secret = secret
        self.algorithm = algorithm
        self.default_ttl = default_ttl

    def issue(self, claims: TokenClaims, ttl: Optional[timedelta] = None) -> str:
        """Create a signed token for the given claims.

        The expiry embedded in the token is now + ttl; claims.expires_at
        is ignored.
        """
        token, _ = self.issue_with_expiry(claims, ttl)
        return token

    def issue_with_expiry(
        self, claims: TokenClaims, ttl: Optional[timedelta] = None
    ) -> tuple[str, datetime]:
        """Like issue(), but also return the expiry embedded in the token."""
        now = datetime.now(timezone.utc)
        # exp is a whole-second NumericDate on the wire
        expires = (now + (self.default_ttl if ttl is None else ttl)).replace(
            microsecond=0
        )
        payload = {
            "sub": str(claims.user_id),
            "email": claims.email,
            "userId": str(claims.user_id),
            "iat": now,
            "exp": expires,
        }
        token = jwt.encode(payload, self._secret, algorithm=self.algorithm)
        return token, expires

    def verify(self, token: str) -> TokenClaims:
        """Verify a token and return its claims.

        Raises MalformedToken, BadSignature or TokenExpired. Nothing from
        the payload is returned unless every check passes.

        Learn: A token whose header and payload both decode is well formed.
        If its signature segment is then unreadable, or not the canonical
        base64url spelling of some bytes, the token was tampered with, so
        that is reported as BadSignature rather than MalformedToken.
        """
        readable = _has_readable_claims(token)
        if readable and not _is_canonical_segment(token.rsplit(".", 1)[1]):
            raise BadSignature("Token signature does not match")

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                options={"require": ["exp"]},
            )
        except jwt.ExpiredSignatureError:
            raise TokenExpired("Token has expired")
        except jwt.InvalidSignatureError:
            raise BadSignature("Token signature does not match")
        except jwt.DecodeError as e:
            if readable:
                raise BadSignature("Token signature does not match")
            raise MalformedToken(f"Invalid token: {e}")
        except jwt.InvalidTokenError as e:
            raise MalformedToken(f"Invalid token: {e}")

        email = payload.get("email")
        raw_user_id = payload.get("userId")
        if not isinstance(email, str) or not isinstance(raw_user_id, str):
            raise MalformedToken("Token is missing identity claims")
        try:
            user_id = uuid.UUID(raw_user_id)
        except ValueError:
            raise MalformedToken("Token carries an invalid user id")

        return TokenClaims(
            email=email,
            user_id=user_id,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
        )


def _has_readable_claims(token) -> bool:
    """True if the token has three segments and its header and payload decode."""
    if not isinstance(token, str) or token.count(".") != 2:
        return False
    try:
        jwt.get_unverified_header(token)
        payload = json.loads(base64url_decode(token.split(".")[1]))
    except (jwt.DecodeError, binascii.Error, ValueError):
        return False
    return isinstance(payload, dict)


def _is_canonical_segment(segment: str) -> bool:
    try:
        raw = base64url_decode(segment)
    except (binascii.Error, ValueError):
        return False
    return base64url_encode(raw).decode("ascii") == segment
