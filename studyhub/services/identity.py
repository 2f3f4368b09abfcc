"""
Identity service backed by Firebase Authentication.

The OAuth handshake goes through the Identity Toolkit REST API
(createAuthUri -> provider redirect -> signInWithIdp); the resulting ID
tokens are verified with the Firebase Admin SDK. Every change of session
is pushed to the registered listeners.
"""

import logging
from typing import Any, Callable, Dict, List, Optional

import requests
from firebase_admin import auth, exceptions
from starlette.concurrency import run_in_threadpool

from studyhub.core.auth import user_from_claims, verify_firebase_token
from studyhub.core.config import AUTH_REDIRECT_URI, FIREBASE_API_KEY
from studyhub.core.errors import IdentityError
from studyhub.schemas.auth import Session, SignInRedirect

logger = logging.getLogger(__name__)

IDENTITY_TOOLKIT_URL = "https://identitytoolkit.googleapis.com/v1"
SECURE_TOKEN_URL = "https://securetoken.googleapis.com/v1/token"

PROVIDER_IDS = {
    "google": "google.com",
    "facebook": "facebook.com",
    "github": "github.com",
}

INITIAL_SESSION = "INITIAL_SESSION"
SIGNED_IN = "SIGNED_IN"
SIGNED_OUT = "SIGNED_OUT"
TOKEN_REFRESHED = "TOKEN_REFRESHED"

SessionListener = Callable[[str, Optional[Session]], None]


class Subscription:
    """Handle returned by a listener registration; dispose with unsubscribe()"""

    def __init__(self, listeners: List, listener):
        self._listeners = listeners
        self._listener = listener
        self.active = True

    def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        if self._listener in self._listeners:
            self._listeners.remove(self._listener)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.unsubscribe()
        return False


def _error_message(response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    error = body.get("error")
    if isinstance(error, dict):
        return error.get("message") or f"HTTP {response.status_code}"
    return body.get("error_description") or str(error or f"HTTP {response.status_code}")


class FirebaseIdentityService:
    """
    One browser's view of the identity provider.

    Holds that browser's tokens in memory only; nothing is persisted.
    """

    def __init__(self, api_key: str = FIREBASE_API_KEY, redirect_uri: str = AUTH_REDIRECT_URI):
        self.api_key = api_key
        self.redirect_uri = redirect_uri
        self._session: Optional[Session] = None
        self._pending_session_id: Optional[str] = None
        self._listeners: List[SessionListener] = []

    # ------------------------------
    def _post(self, url: str, json: Dict[str, Any] = None, data: Dict[str, Any] = None) -> Dict[str, Any]:
        try:
            response = requests.post(url, params={"key": self.api_key}, json=json, data=data)
        except requests.exceptions.RequestException as e:
            raise IdentityError(f"Identity provider unreachable: {e}") from e

        if response.status_code != 200:
            raise IdentityError(_error_message(response))
        return response.json()

    def _emit(self, event: str, session: Optional[Session]):
        for listener in list(self._listeners):
            listener(event, session)

    # ------------------------------
    def on_session_change(self, listener: SessionListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    async def get_current_session(self) -> Optional[Session]:
        """
        Return the held session if its ID token still verifies.

        An expired token is refreshed once. Otherwise the session is dropped
        and SIGNED_OUT is emitted.
        """
        if self._session is None:
            return None

        try:
            await run_in_threadpool(verify_firebase_token, self._session.id_token)
            return self._session
        except IdentityError as e:
            if self._session.refresh_token:
                try:
                    return await self.refresh_session()
                except IdentityError:
                    pass
            logger.warning("Dropping stored session: %s", e)
            self._session = None
            self._emit(SIGNED_OUT, None)
            return None

    async def sign_in_with_provider(self, name: str) -> SignInRedirect:
        """Start the OAuth redirect flow; the caller sends the browser to auth_uri"""
        provider_id = PROVIDER_IDS.get(name)
        if provider_id is None:
            raise IdentityError(f"Unsupported identity provider: {name}")

        data = await run_in_threadpool(
            self._post,
            f"{IDENTITY_TOOLKIT_URL}/accounts:createAuthUri",
            {"providerId": provider_id, "continueUri": self.redirect_uri},
        )
        self._pending_session_id = data["sessionId"]
        return SignInRedirect(provider=name, auth_uri=data["authUri"], session_id=data["sessionId"])

    async def complete_sign_in(self, request_uri: str) -> Session:
        """Finish the handshake with the URL the provider redirected back to"""
        if self._pending_session_id is None:
            raise IdentityError("No sign-in in progress")

        data = await run_in_threadpool(
            self._post,
            f"{IDENTITY_TOOLKIT_URL}/accounts:signInWithIdp",
            {
                "requestUri": request_uri,
                "sessionId": self._pending_session_id,
                "returnSecureToken": True,
                "returnIdpCredential": True,
            },
        )
        if not data.get("idToken"):
            if data.get("needConfirmation"):
                raise IdentityError("Account already exists with a different sign-in provider")
            raise IdentityError("Identity provider returned no ID token")
        claims = await run_in_threadpool(verify_firebase_token, data["idToken"])

        self._pending_session_id = None
        self._session = Session(
            user=user_from_claims(claims, data),
            id_token=data["idToken"],
            refresh_token=data.get("refreshToken"),
        )
        logger.info("User %s signed in", self._session.user.id)
        self._emit(SIGNED_IN, self._session)
        return self._session

    async def refresh_session(self) -> Session:
        if self._session is None or not self._session.refresh_token:
            raise IdentityError("No session to refresh")

        data = await run_in_threadpool(
            self._post,
            SECURE_TOKEN_URL,
            None,
            {"grant_type": "refresh_token", "refresh_token": self._session.refresh_token},
        )
        if not data.get("id_token"):
            raise IdentityError("Token refresh returned no ID token")
        claims = await run_in_threadpool(verify_firebase_token, data["id_token"])

        previous = self._session.user
        self._session = Session(
            user=user_from_claims(claims, {
                "email": previous.email,
                "displayName": previous.display_name,
                "photoUrl": previous.avatar_url,
            }),
            id_token=data["id_token"],
            refresh_token=data.get("refresh_token", self._session.refresh_token),
        )
        self._emit(TOKEN_REFRESHED, self._session)
        return self._session

    async def sign_out(self):
        session = self._session
        self._session = None
        self._pending_session_id = None

        if session is not None:
            try:
                await run_in_threadpool(auth.revoke_refresh_tokens, session.user.id)
            except (ValueError, exceptions.FirebaseError) as e:
                logger.warning("Could not revoke tokens for %s: %s", session.user.id, e)

        self._emit(SIGNED_OUT, None)
