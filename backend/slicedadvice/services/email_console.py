import logging
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class ConsoleEmailService:
    """Email backend for local runs: logs the message instead of sending it."""

    def __init__(self, *_: Any, **__: Any) -> None:
        self.outbox: List[Dict[str, str]] = []

    def send_email(self, to_email: str, subject: str, text_content: str) -> Dict[str, Any]:
        message = {"to": to_email, "subject": subject, "text": text_content}
        self.outbox.append(message)
        logger.info("[console email] to=%s subject=%s\n%s", to_email, subject, text_content)
        return {"id": f"console-{len(self.outbox)}"}
