"""
Notification collaborator.

The session reports every user-visible outcome through a Notifier:
(message, severity, duration_ms). Presentation is up to the
implementation; LoggingNotifier forwards to the logging module and
RecordingNotifier keeps an in-memory history.
"""

import logging
from abc import ABC, abstractmethod
from typing import List

from pydantic import BaseModel, Field

from di_xml_export.types import Severity

logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    Severity.INFO: logging.INFO,
    Severity.WARNING: logging.WARNING,
    Severity.ERROR: logging.ERROR,
}


class Notification(BaseModel):
    """One user-facing message."""
    
    message: str
    severity: Severity
    duration_ms: int = Field(ge=0)


class Notifier(ABC):
    """Receives user-facing notifications."""
    
    @abstractmethod
    def notify(self, message: str, severity: Severity, duration_ms: int) -> None:
        pass


class LoggingNotifier(Notifier):
    """Writes notifications to a logger at the matching level."""
    
    def __init__(self, log: logging.Logger = logger):
        self.log = log
    
    def notify(self, message: str, severity: Severity, duration_ms: int) -> None:
        self.log.log(_LOG_LEVELS[Severity(severity)], message)


class RecordingNotifier(Notifier):
    """
    Keeps every notification in order (headless front ends, tests).
    
    Example:
        >>> notifier = RecordingNotifier()
        >>> notifier.notify('Dados exportados com sucesso!', Severity.INFO, 3000)
        >>> notifier.last.severity
        <Severity.INFO: 'info'>
    """
    
    def __init__(self):
        self.history: List[Notification] = []
    
    def notify(self, message: str, severity: Severity, duration_ms: int) -> None:
        self.history.append(
            Notification(message=message, severity=severity, duration_ms=duration_ms)
        )
    
    @property
    def last(self) -> Notification:
        return self.history[-1]
    
    def severities(self) -> List[Severity]:
        return [n.severity for n in self.history]
