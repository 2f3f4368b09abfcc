"""
Firebase Authentication Module

Initializes the Firebase Admin SDK and verifies the ID tokens that the
identity provider issues after the OAuth handshake.
"""

import json
import logging
import os
from typing import Any, Dict, Optional

import firebase_admin
from firebase_admin import auth, credentials, exceptions

from studyhub.core.config import FIREBASE_SERVICE_ACCOUNT_PATH
from studyhub.core.errors import IdentityError
from studyhub.schemas.auth import SessionUser

logger = logging.getLogger(__name__)


def initialize_firebase():
    """
    Initialize Firebase Admin SDK

    This should be called once on application startup.
    Uses service account credentials from FIREBASE_SERVICE_ACCOUNT_PATH when
    the file exists, default credentials otherwise.
    """
    if firebase_admin._apps:
        return

    if FIREBASE_SERVICE_ACCOUNT_PATH and os.path.exists(FIREBASE_SERVICE_ACCOUNT_PATH):
        cred = credentials.Certificate(FIREBASE_SERVICE_ACCOUNT_PATH)
        firebase_admin.initialize_app(cred)
        logger.info("Firebase Admin initialized with service account file")
    else:
        try:
            firebase_admin.initialize_app()
            logger.info("Firebase Admin initialized with default credentials")
        except (ValueError, exceptions.FirebaseError) as e:
            logger.warning("Firebase Admin initialization warning: %s", e)


def verify_firebase_token(token: str) -> Dict[str, Any]:
    """
    Verify a Firebase ID token

    Returns the decoded claims (uid, email, name, picture, ...).

    Raises:
        IdentityError: if the token is invalid, expired or revoked
    """
    try:
        return auth.verify_id_token(token)
    except auth.ExpiredIdTokenError as e:
        raise IdentityError("Firebase token has expired. Please sign in again.") from e
    except auth.RevokedIdTokenError as e:
        raise IdentityError("Firebase token has been revoked. Please sign in again.") from e
    except auth.InvalidIdTokenError as e:
        raise IdentityError(f"Invalid Firebase token: {e}") from e
    except (ValueError, exceptions.FirebaseError) as e:
        logger.error("Firebase token verification failed: %s", e)
        raise IdentityError("Authentication failed. Please sign in again.") from e


def _identity_picture(identity_data: Optional[Dict[str, Any]]) -> Optional[str]:
    if not identity_data:
        return None
    raw = identity_data.get("rawUserInfo")
    if raw:
        try:
            picture = json.loads(raw).get("picture")
        except (TypeError, ValueError):
            picture = None
        if picture:
            return picture
    return identity_data.get("photoUrl")


def user_from_claims(
    claims: Dict[str, Any],
    identity_data: Optional[Dict[str, Any]] = None
) -> SessionUser:
    """
    Build the session user from verified token claims.

    The avatar comes from the user's own profile picture when set, else from
    the linked provider identity returned by the sign-in handshake.
    """
    identity_data = identity_data or {}
    return SessionUser(
        id=claims.get("uid") or claims.get("user_id") or claims["sub"],
        email=claims.get("email") or identity_data.get("email"),
        display_name=claims.get("name") or identity_data.get("displayName"),
        avatar_url=claims.get("picture") or _identity_picture(identity_data),
    )
