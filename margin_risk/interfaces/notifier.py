"""Notifier protocol — delivery channel for risk notices."""
from typing import Protocol


class Notifier(Protocol):
    """A channel for risk notices.

    Alerts are for level escalations and must reach the user; logs carry
    routine snapshots and recoveries and may be delivered muted.
    Both return True when the channel accepted the message.
    """

    async def send_alert(self, message: str, subject: str = "") -> bool: ...

    async def send_log(self, message: str, silent: bool = True) -> bool: ...
