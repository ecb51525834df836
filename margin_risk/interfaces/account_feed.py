"""Account feed protocol — stream of account snapshots."""
from typing import AsyncIterator, Protocol

from ..models import AccountUpdate


class AccountFeed(Protocol):
    """Abstract source of account updates, delivered in order."""

    def updates(self) -> AsyncIterator[AccountUpdate]: ...
