import logging
from typing import Callable, List, Optional

from studyhub.core.config import OAUTH_PROVIDER
from studyhub.core.errors import AuthError, IdentityError
from studyhub.schemas.auth import Session, SessionUser, SignInRedirect
from studyhub.schemas.views import HeaderView
from studyhub.services.identity import INITIAL_SESSION, SIGNED_OUT, Subscription

logger = logging.getLogger(__name__)

UserListener = Callable[[str, Optional[SessionUser]], None]


class SessionController:
    """
    Owns the current user for one client.

    The user is only ever replaced from identity provider results: the
    initial lookup and the change events that follow sign-in, sign-out and
    token refresh.
    """

    def __init__(self, identity, provider: str = OAUTH_PROVIDER):
        self.identity = identity
        self.provider = provider
        self.user: Optional[SessionUser] = None
        self.loading = True
        self._initialized = False
        self._listeners: List[UserListener] = []
        self._provider_subscription: Optional[Subscription] = None

    @property
    def can_contribute(self) -> bool:
        return self.user is not None

    async def initialize(self):
        if self._initialized:
            return
        self._initialized = True

        self._provider_subscription = self.identity.on_session_change(self._on_provider_change)
        try:
            session = await self.identity.get_current_session()
        except IdentityError as e:
            logger.warning("Initial session lookup failed: %s", e)
            session = None
        self._apply(INITIAL_SESSION, session)

    def subscribe(self, listener: UserListener) -> Subscription:
        self._listeners.append(listener)
        return Subscription(self._listeners, listener)

    def _on_provider_change(self, event: str, session: Optional[Session]):
        self._apply(event, session)

    def _apply(self, event: str, session: Optional[Session]):
        self.user = session.user if session is not None else None
        self.loading = False
        for listener in list(self._listeners):
            listener(event, self.user)

    async def sign_in(self) -> SignInRedirect:
        try:
            return await self.identity.sign_in_with_provider(self.provider)
        except IdentityError as e:
            raise AuthError(f"Lỗi đăng nhập: {e}") from e

    async def complete_sign_in(self, request_uri: str):
        # The signed-in user arrives through _on_provider_change
        try:
            await self.identity.complete_sign_in(request_uri)
        except IdentityError as e:
            raise AuthError(f"Lỗi đăng nhập: {e}") from e

    async def sign_out(self):
        await self.identity.sign_out()

    async def require_user(self) -> SessionUser:
        """
        The signed-in user, re-checked with the identity provider first.

        An expired token is refreshed there; a session that no longer
        verifies comes back as SIGNED_OUT through the subscription.
        """
        if self.user is not None:
            try:
                await self.identity.get_current_session()
            except IdentityError as e:
                logger.warning("Session re-validation failed: %s", e)
                self._apply(SIGNED_OUT, None)
        if self.user is None:
            raise AuthError("Bạn cần đăng nhập để tiếp tục")
        return self.user

    def header(self) -> HeaderView:
        if self.user is None:
            return HeaderView(signed_in=False)
        return HeaderView(
            signed_in=True,
            user=self.user,
            display_name=self.user.label,
            avatar_url=self.user.avatar_url,
        )

    def close(self):
        if self._provider_subscription is not None:
            self._provider_subscription.unsubscribe()
            self._provider_subscription = None
        self._listeners.clear()
