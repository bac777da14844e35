"""
auth/tokens.py -- JWT signing/verification and token issuance.

Security design decisions:
  JWT: python-jose with an HMAC algorithm (HS256 by default). Tokens are
       signed with SECRET_KEY and carry the full claim set: sub, email,
       username, role, permissions, iat, exp. The authorization pipeline reads
       role and permissions straight from verified claims -- no store lookup
       per request.

  Verification failures raise TokenError with a reason the caller can log:
       "malformed"          -- the token cannot be parsed, or its payload is
                               missing claims / carries unknown enum values
       "invalid_signature"  -- parsed, but the signature does not verify
       "expired"            -- signature fine, exp is in the past
       The HTTP layer maps all three to the same 401.

  TokenIssuer is the single issuance path for login, registration and
       refresh, so the claim shape is identical whatever the entry point.

Layer rule: no imports from api/ or users/. core/ is only read through
JWTSigner.from_settings().
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import TYPE_CHECKING

from jose import ExpiredSignatureError, JWTError, jwt

from auth.errors import TokenError
from auth.interfaces import Signer
from auth.models import Claims, IssuedToken, Permission, PublicUser, Role, UserSummary

if TYPE_CHECKING:
    from core.config import Settings

_REQUIRED_CLAIMS = ("sub", "email", "username", "role", "permissions", "iat", "exp")


class JWTSigner:
    """Signer collaborator: HMAC-signed JWTs via python-jose."""

    def __init__(self, secret_key: str, algorithm: str = "HS256", expire_seconds: int = 3600) -> None:
        self._secret_key = secret_key
        self._algorithm = algorithm
        self.expire_seconds = expire_seconds

    @classmethod
    def from_settings(cls, settings: Settings) -> JWTSigner:
        return cls(
            secret_key=settings.secret_key,
            algorithm=settings.jwt_algorithm,
            expire_seconds=settings.token_expire_seconds,
        )

    def sign(self, claims: Claims) -> str:
        """Encode claims as a signed JWT.

        iat/exp are stamped from the current time and expire_seconds unless
        the caller already set them.
        """
        now = datetime.now(timezone.utc)
        iat = claims.iat or now
        exp = claims.exp or iat + timedelta(seconds=self.expire_seconds)
        payload = {
            "sub": claims.sub,
            "email": claims.email,
            "username": claims.username,
            "role": Role(claims.role).value,
            "permissions": [Permission(p).value for p in claims.permissions],
            "iat": iat,
            "exp": exp,
        }
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def verify(self, token: str) -> Claims:
        """Verify token and return its claims.

        Raises:
            TokenError: reason "malformed", "invalid_signature" or "expired".
        """
        try:
            jwt.get_unverified_header(token)
        except JWTError:
            raise TokenError(TokenError.MALFORMED) from None

        try:
            payload = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except ExpiredSignatureError:
            raise TokenError(TokenError.EXPIRED) from None
        except JWTError:
            raise TokenError(TokenError.INVALID_SIGNATURE) from None

        return _payload_to_claims(payload)


def _payload_to_claims(payload: dict) -> Claims:
    if any(name not in payload for name in _REQUIRED_CLAIMS):
        raise TokenError(TokenError.MALFORMED)
    try:
        return Claims(
            sub=str(payload["sub"]),
            email=str(payload["email"]),
            username=str(payload["username"]),
            role=Role(payload["role"]),
            permissions=tuple(Permission(p) for p in payload["permissions"]),
            iat=datetime.fromtimestamp(int(payload["iat"]), tz=timezone.utc),
            exp=datetime.fromtimestamp(int(payload["exp"]), tz=timezone.utc),
        )
    except (TypeError, ValueError):
        raise TokenError(TokenError.MALFORMED) from None


class TokenIssuer:
    def __init__(self, signer: Signer) -> None:
        self._signer = signer

    def issue(self, user: PublicUser) -> IssuedToken:
        """Sign a token for user and pair it with the user summary."""
        permissions = tuple(Permission(p) for p in user.permissions)
        claims = Claims(
            sub=user.id,
            email=user.email,
            username=user.username,
            role=Role(user.role),
            permissions=permissions,
        )
        return IssuedToken(
            access_token=self._signer.sign(claims),
            user=UserSummary(
                id=user.id,
                email=user.email,
                username=user.username,
                role=Role(user.role),
                permissions=permissions,
            ),
        )
