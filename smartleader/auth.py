# smartleader/auth.py
"""Firebase Authentication as consumed by the back-office.

Sign-in goes through the Identity Toolkit REST endpoint; sessions are the
resulting Firebase ID tokens. Being signed in is not enough for privileged
operations: the token must also carry the admin role as a custom claim.
"""
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

import requests
from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from . import config
from .errors import AuthError, PermissionDeniedError
from .utils import logger

SIGN_IN_URL = "https://identitytoolkit.googleapis.com/v1/accounts:signInWithPassword"


@dataclass
class Identity:
    uid: str
    email: str = ""
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def role(self) -> Optional[str]:
        return self.claims.get("role")

    @property
    def is_admin(self) -> bool:
        return self.role == config.ADMIN_ROLE


def verify_session(token: str, project_id: Optional[str] = None) -> Identity:
    try:
        claims = google_id_token.verify_firebase_token(
            token,
            google_requests.Request(),
            audience=project_id or config.FIRESTORE_PROJECT_ID,
        )
    except (ValueError, google_auth_exceptions.GoogleAuthError) as e:
        raise AuthError(f"Invalid session: {e}") from e
    if not claims:
        raise AuthError("Invalid session")
    return Identity(
        uid=claims.get("user_id") or claims.get("sub", ""),
        email=claims.get("email", ""),
        claims=claims,
    )


def sign_in(email: str, password: str, api_key: Optional[str] = None) -> Tuple[Identity, str]:
    api_key = api_key or config.FIREBASE_API_KEY
    if not api_key:
        raise AuthError("FIREBASE_API_KEY not set")
    try:
        resp = requests.post(
            SIGN_IN_URL,
            params={"key": api_key},
            json={"email": email, "password": password, "returnSecureToken": True},
            timeout=10,
        )
    except requests.RequestException as e:
        raise AuthError(str(e)) from e

    if resp.status_code != 200:
        try:
            message = resp.json().get("error", {}).get("message", resp.text)
        except ValueError:
            message = resp.text
        logger.warning("Sign-in failed for %s: %s", email, message)
        raise AuthError(message)

    token = resp.json()["idToken"]
    return verify_session(token), token


def require_admin(identity: Optional[Identity]) -> Identity:
    if identity is None:
        raise AuthError("Authentication required")
    if not identity.is_admin:
        raise PermissionDeniedError(f"{identity.email or identity.uid} is not an admin")
    return identity
