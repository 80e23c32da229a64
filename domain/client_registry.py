"""Maps owning users to authorized platform clients."""
from __future__ import annotations

import logging
from typing import Callable, Dict, Iterable, Optional

from domain.models import User
from ports.adapter_error import AdapterError, ConfigurationError, ErrorCode
from ports.video_platform import VideoPlatform

logger = logging.getLogger(__name__)

# Key of the fallback client built when no users are known.
DEFAULT_ACCOUNT = None

ClientFactory = Callable[[Optional[User]], VideoPlatform]


class AccountClientRegistry:
    """
    Authorized platform client per user id.

    Built once at startup. A user whose client can't be created is left out,
    so their videos fail individually with NoClient instead of aborting
    startup.
    """

    def __init__(self, clients: Dict[Optional[int], VideoPlatform]):
        self._clients = dict(clients)

    @classmethod
    def build(cls, users: Iterable[User], client_factory: ClientFactory) -> "AccountClientRegistry":
        """
        Create one client per user.

        Args:
            users: Known users.
            client_factory: Returns an authorized client for a user
                (None for the default account).

        Returns:
            Registry keyed by user id, or holding a single DEFAULT_ACCOUNT
            client when there are no users.
        """
        clients: Dict[Optional[int], VideoPlatform] = {}
        users = list(users)

        for user in users:
            try:
                clients[user.id] = client_factory(user)
                logger.info(f"Client ready for user {user.id} ({user.youtube_account or 'no account'})")
            except AdapterError as e:
                logger.error(f"Could not create client for user {user.id}: {e}")

        if not users:
            logger.info("No users configured, creating default client")
            clients[DEFAULT_ACCOUNT] = client_factory(None)

        return cls(clients)

    def get(self, user_id: int) -> VideoPlatform:
        """
        Return the client of a user.

        Raises:
            ConfigurationError: NoClient if the user has no client.
        """
        client = self._clients.get(user_id)
        if client is None:
            raise ConfigurationError(
                code=ErrorCode.NO_CLIENT,
                message=f"No client for user {user_id}",
            )
        return client

    def __contains__(self, user_id: Optional[int]) -> bool:
        return user_id in self._clients

    def __len__(self) -> int:
        return len(self._clients)
