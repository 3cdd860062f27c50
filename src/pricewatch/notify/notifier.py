"""Abstract notifier interface."""

from abc import ABC, abstractmethod


class Notifier(ABC):
    """Delivers a plain-text message to a single recipient.

    Implementations raise NotificationFailure when the message could not be
    handed to the transport. Retrying is the implementation's concern; the
    monitoring engine never retries a send.
    """

    @abstractmethod
    async def send(self, to: str, subject: str, body: str) -> None:
        ...
