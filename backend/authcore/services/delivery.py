# authcore/services/delivery.py
"""
Delivery collaborator port. The core only produces (recipient, token value,
purpose); getting the value to the user (email, SMS, ...) happens behind this
interface.
"""
import logging
from typing import Protocol

from authcore.models import TokenPurpose

logger = logging.getLogger(__name__)


class TokenDelivery(Protocol):
    async def send(self, recipient_email: str, token_value: str, purpose: TokenPurpose) -> None:
        ...


class LoggingTokenDelivery:
    """
    Default delivery: records that a token went out, without the value.
    Replace with a real mailer in deployments that send email.
    """

    async def send(self, recipient_email: str, token_value: str, purpose: TokenPurpose) -> None:
        logger.info("[delivery] %s token ready for %s", TokenPurpose(purpose).value, recipient_email)
