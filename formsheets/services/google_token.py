"""
Google OAuth2 access tokens for a service account.

Implements the JWT-bearer grant: a claims set signed with the service
account's RSA key (RS256) is exchanged at the token endpoint for a
short-lived bearer token. The token is cached per provider instance and
refreshed 60 seconds before it expires. Concurrent callers share a single
in-flight refresh.
"""
import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Callable, Dict, Any, Optional

import httpx
import jwt

from formsheets.services.credentials import ServiceAccountCredential
from formsheets.services.errors import AuthError

logger = logging.getLogger(__name__)

SHEETS_SCOPE = "https://www.googleapis.com/auth/spreadsheets"
JWT_BEARER_GRANT = "urn:ietf:params:oauth:grant-type:jwt-bearer"
ASSERTION_LIFETIME_SECONDS = 3600
EXPIRY_MARGIN_SECONDS = 60


@dataclass(frozen=True)
class CachedToken:
    """A bearer token and the epoch second it expires at."""
    access_token: str
    expires_at: float

    def is_fresh(self, now: float, margin: float = EXPIRY_MARGIN_SECONDS) -> bool:
        return now < self.expires_at - margin


class TokenProvider:
    """
    Issues bearer tokens for the Sheets API.

    Usage:
        provider = TokenProvider(credential)
        token = await provider.get_access_token()
    """

    def __init__(
        self,
        credential: ServiceAccountCredential,
        scope: str = SHEETS_SCOPE,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        clock: Callable[[], float] = time.time,
    ):
        self.credential = credential
        self.scope = scope
        self.timeout = timeout
        self._transport = transport
        self._clock = clock
        self._cache: Optional[CachedToken] = None
        self._inflight: Optional["asyncio.Future[CachedToken]"] = None

    @property
    def cached_token(self) -> Optional[CachedToken]:
        return self._cache

    async def get_access_token(self) -> str:
        """Return a valid bearer token, refreshing it when close to expiry."""
        cached = self._cache
        if cached and cached.is_fresh(self._clock()):
            return cached.access_token

        # Callers arriving during a refresh share its result, success or failure.
        if self._inflight is None:
            self._inflight = asyncio.ensure_future(self._refresh_once())
        token = await asyncio.shield(self._inflight)
        return token.access_token

    def invalidate(self) -> None:
        """Drop the cached token so the next call performs an exchange."""
        self._cache = None

    def build_assertion(self, now: Optional[int] = None) -> str:
        """Build the signed JWT presented to the token endpoint."""
        issued_at = int(self._clock()) if now is None else now
        claims = {
            "iss": self.credential.client_email,
            "scope": self.scope,
            "aud": self.credential.token_uri,
            "iat": issued_at,
            "exp": issued_at + ASSERTION_LIFETIME_SECONDS,
        }
        return jwt.encode(
            claims,
            self.credential.private_key,
            algorithm="RS256",
            headers={"typ": "JWT"},
        )

    async def _refresh_once(self) -> CachedToken:
        try:
            self._cache = await self._refresh()
            return self._cache
        finally:
            self._inflight = None

    async def _refresh(self) -> CachedToken:
        now = self._clock()
        assertion = self.build_assertion(int(now))
        data = await self._exchange(assertion)

        access_token = data.get("access_token")
        if not access_token:
            raise AuthError("Token response did not include an access_token")

        try:
            expires_in = float(data.get("expires_in") or ASSERTION_LIFETIME_SECONDS)
        except (TypeError, ValueError):
            expires_in = ASSERTION_LIFETIME_SECONDS

        logger.info(
            "Obtained access token for %s (expires in %ss)",
            self.credential.client_email,
            int(expires_in),
        )
        return CachedToken(access_token=access_token, expires_at=now + expires_in)

    async def _exchange(self, assertion: str) -> Dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    self.credential.token_uri,
                    data={"grant_type": JWT_BEARER_GRANT, "assertion": assertion},
                    headers={"Accept": "application/json"},
                )
        except httpx.TimeoutException as exc:
            raise AuthError(f"Token endpoint timed out after {self.timeout}s") from exc
        except httpx.HTTPError as exc:
            raise AuthError(f"Token endpoint unreachable: {exc}") from exc

        if not response.is_success:
            logger.warning(
                "Token exchange rejected with HTTP %s for %s",
                response.status_code,
                self.credential.client_email,
            )
            raise AuthError(response.text or f"HTTP {response.status_code}", status_code=response.status_code)

        try:
            payload = response.json()
        except ValueError as exc:
            raise AuthError("Token endpoint returned invalid JSON") from exc
        if not isinstance(payload, dict):
            raise AuthError("Token endpoint returned an unexpected payload")
        return payload
