# -*- coding: utf-8 -*-
"""Exchange an application identity for a Vault client token.

The exchange is fail closed: anything short of a well formed success response is
reported as an ``AuthFailure`` value, never raised. Callers that need
resilience wrap ``fetch_token`` themselves, there are no retries here.
"""

import logging
from dataclasses import dataclass

import requests
from requests.adapters import HTTPAdapter

from .exceptions import MalformedRequest

DEFAULT_VAULT_ADDR = "https://127.0.0.1:8200"
DEFAULT_AUTH_BACKEND = "app-id"
# (connect, read) seconds
DEFAULT_TIMEOUT = (10, 10)


@dataclass(frozen=True)
class Identity:
    app_id: str
    user_id: str

    def __post_init__(self):
        for field in ("app_id", "user_id"):
            if not isinstance(getattr(self, field), str):
                raise MalformedRequest(field, "must be a string")


@dataclass(frozen=True)
class Token:
    value: str

    def __repr__(self):
        # keep token values out of logs and tracebacks
        return "Token(value='***')"


class AuthFailureReason:
    """Why an identity exchange did not yield a token."""

    TRANSPORT = "transport"
    STATUS = "status"
    PARSE = "parse"
    MISSING_TOKEN = "missing_token"


@dataclass(frozen=True)
class AuthFailure:
    reason: str
    detail: str = ""


class AuthTokenClient:
    """Logs in to a Vault auth backend and returns the client token.

    Args:
        vault_addr (str): Base URL of the secret store.
        auth_backend (str): Mount path of the auth backend, ``app-id`` by default.
        timeout (tuple): Connect and read timeouts in seconds.
        verify (bool or str): Passed through to requests, a CA bundle path or a bool.
        session (requests.Session, optional): Session to use, mainly for tests.
    """

    def __init__(self,
                 vault_addr=DEFAULT_VAULT_ADDR,
                 auth_backend=DEFAULT_AUTH_BACKEND,
                 timeout=DEFAULT_TIMEOUT,
                 verify=True,
                 session=None):
        self._vault_addr = vault_addr.rstrip("/")
        self._auth_backend = auth_backend.strip("/")
        self._timeout = timeout
        self._verify = verify
        if session is None:
            session = requests.Session()
            # a single attempt per call
            adapter = HTTPAdapter(max_retries=0)
            session.mount("https://", adapter)
            session.mount("http://", adapter)
        self._session = session

    @property
    def vault_addr(self):
        return self._vault_addr

    @property
    def login_url(self):
        return f"{self._vault_addr}/v1/auth/{self._auth_backend}/login"

    def fetch_token(self, identity):
        """Exchanges ``identity`` for a token.

        Args:
            identity (Identity): The application and user id pair.

        Returns:
            Token or AuthFailure: ``Token`` only when the response was a success
            status with a JSON body holding ``auth.client_token``.
        """
        if not isinstance(identity, Identity):
            raise MalformedRequest("identity", "must be an Identity")

        try:
            response = self._session.post(self.login_url,
                                          json={"app_id": identity.app_id,
                                                "user_id": identity.user_id},
                                          timeout=self._timeout,
                                          allow_redirects=False,
                                          verify=self._verify)
        except requests.RequestException as e:
            return self._failure(AuthFailureReason.TRANSPORT, f"{type(e).__name__}: {e}")

        if not 200 <= response.status_code < 300:
            return self._failure(AuthFailureReason.STATUS, f"HTTP {response.status_code}")

        try:
            records = response.json()
        except ValueError as e:
            return self._failure(AuthFailureReason.PARSE, str(e))

        auth = records.get("auth") if isinstance(records, dict) else None
        if not isinstance(auth, dict):
            return self._failure(AuthFailureReason.MISSING_TOKEN, "response has no auth object")

        client_token = auth.get("client_token")
        if not isinstance(client_token, str) or not client_token:
            return self._failure(AuthFailureReason.MISSING_TOKEN, "auth has no client_token")

        logging.getLogger(__name__).info(f"Obtained token from {self.login_url} "
                                         f"for app_id {identity.app_id}")
        return Token(client_token)

    def _failure(self, reason, detail):
        logging.getLogger(__name__).warning(f"Login to {self.login_url} failed ({reason}): {detail}")
        return AuthFailure(reason, detail)


def vault_token(app_id, user_id, **client_kwargs):
    """Logs in with the app id backend and returns the token string or None.

    Keyword arguments are passed to ``AuthTokenClient``.
    """
    result = AuthTokenClient(**client_kwargs).fetch_token(Identity(app_id, user_id))
    if isinstance(result, Token):
        return result.value
    return None
