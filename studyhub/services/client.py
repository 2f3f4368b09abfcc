import logging
import time
import uuid
from collections import OrderedDict
from typing import Callable, Dict, Optional, Tuple

from studyhub.core.config import CLIENT_IDLE_SECONDS, MAX_CLIENTS
from studyhub.core.errors import ValidationError
from studyhub.schemas.views import LOADING_PLACEHOLDER, HomeView
from studyhub.services.documents import DocumentListManager
from studyhub.services.questions import QuestionBoardManager
from studyhub.services.session import SessionController

logger = logging.getLogger(__name__)

TABS = ("docs", "qa")


class StudyHubClient:
    """
    Everything one browser sees: its session plus the two content tabs.

    Only the active tab is mounted; mounting a tab fetches its list.
    """

    def __init__(
        self,
        session: SessionController,
        documents: DocumentListManager,
        questions: QuestionBoardManager
    ):
        self.session = session
        self.documents = documents
        self.questions = questions
        self.active_tab = "docs"

    def _manager(self, tab: str):
        return self.documents if tab == "docs" else self.questions

    async def start(self):
        await self.session.initialize()
        await self._manager(self.active_tab).refresh()

    async def switch_tab(self, tab: str):
        if tab not in TABS:
            raise ValidationError(f"Unknown tab: {tab}")
        self.active_tab = tab
        await self._manager(tab).refresh()

    def render(self, query: str = "") -> HomeView:
        if self.session.loading:
            return HomeView(loading=True, placeholder=LOADING_PLACEHOLDER)

        view = HomeView(
            loading=False,
            header=self.session.header(),
            active_tab=self.active_tab,
        )
        if self.active_tab == "docs":
            view.documents = self.documents.view(self.session.can_contribute, query)
        else:
            view.questions = self.questions.view(self.session.can_contribute)
        return view

    def close(self):
        self.session.close()


class ClientRegistry:
    """
    Clients keyed by the browser id cookie, built lazily from a factory.

    Unknown or missing cookies always get a freshly issued id. Clients idle
    for longer than idle_timeout seconds are dropped, and beyond max_clients
    the least recently used one goes first. A dropped client is closed so
    its provider subscription is released.
    """

    def __init__(
        self,
        factory: Callable[[], StudyHubClient],
        max_clients: int = MAX_CLIENTS,
        idle_timeout: float = CLIENT_IDLE_SECONDS,
        clock: Callable[[], float] = time.monotonic
    ):
        self._factory = factory
        self._max_clients = max_clients
        self._idle_timeout = idle_timeout
        self._clock = clock
        # Least recently used first
        self._clients: "OrderedDict[str, StudyHubClient]" = OrderedDict()
        self._last_seen: Dict[str, float] = {}

    def __len__(self):
        return len(self._clients)

    def get(self, client_id: Optional[str]) -> Optional[StudyHubClient]:
        if client_id is None:
            return None
        client = self._clients.get(client_id)
        if client is not None:
            self._touch(client_id)
        return client

    def _touch(self, client_id: str):
        self._clients.move_to_end(client_id)
        self._last_seen[client_id] = self._clock()

    def _drop(self, client_id: str):
        client = self._clients.pop(client_id)
        self._last_seen.pop(client_id, None)
        client.close()

    def evict(self) -> int:
        """Drop idle clients, then the oldest ones above the limit"""
        now = self._clock()
        evicted = 0
        for client_id in list(self._clients):
            if now - self._last_seen[client_id] <= self._idle_timeout:
                break
            self._drop(client_id)
            evicted += 1
        while len(self._clients) > self._max_clients:
            self._drop(next(iter(self._clients)))
            evicted += 1
        if evicted:
            logger.info("Evicted %d clients, %d remain", evicted, len(self._clients))
        return evicted

    async def get_or_create(self, client_id: Optional[str]) -> Tuple[str, StudyHubClient]:
        client = self.get(client_id)
        if client is not None:
            return client_id, client

        client_id = uuid.uuid4().hex
        client = self._factory()
        self._clients[client_id] = client
        self._touch(client_id)
        self.evict()
        await client.start()
        return client_id, client

    def close_all(self):
        for client in self._clients.values():
            client.close()
        logger.info("Closed %d clients", len(self._clients))
        self._clients.clear()
        self._last_seen.clear()
