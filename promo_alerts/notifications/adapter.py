from abc import ABC, abstractmethod


class EmailDeliveryError(Exception):
    pass


class EmailAdapter(ABC):
    @abstractmethod
    async def send_email(
        self, recipients: list[str], subject: str, html: str
    ) -> str:
        """
        Returns the transport's message id.
        Raises EmailDeliveryError when the message was not accepted.
        """
        raise NotImplementedError
