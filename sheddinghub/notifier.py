import logging
from abc import ABC, abstractmethod

log = logging.getLogger(__name__)


class Notifier(ABC):
    """Delivers user-facing alerts (push, vibration, e-mail ...)."""

    @abstractmethod
    def notify(self, title: str, message: str) -> None:
        ...


class LogNotifier(Notifier):
    """Default delivery: write the alert to the log."""

    def notify(self, title: str, message: str) -> None:
        log.warning(f"{title}: {message}")
