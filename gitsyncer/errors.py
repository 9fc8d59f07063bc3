"""Error channel for gitsyncer orchestration.

Every failure detected while bootstrapping or syncing is funneled through an
``ErrorChannel``. The channel logs the messages and, for fatal reports, raises
``SyncAbort``. Only the top-level entry point turns an abort into a process
exit.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, Any, List, Optional, Union


class ErrorLevel(Enum):
    """Severity of a reported failure."""
    ERROR = "error"
    WARNING = "warning"


@dataclass
class ErrorInfo:
    """A single report sent to the error channel."""
    level: ErrorLevel
    message: Union[str, List[str]]
    should_exit: bool = False
    exit_code: Optional[int] = None

    @property
    def messages(self) -> List[str]:
        """The message normalized to a list."""
        if isinstance(self.message, (list, tuple)):
            return [str(item) for item in self.message]
        return [str(self.message)]


class SyncAbort(Exception):
    """Raised by the error channel when a report asks to stop."""

    def __init__(self, info: ErrorInfo):
        super().__init__("; ".join(info.messages))
        self.info = info

    @property
    def level(self) -> ErrorLevel:
        return self.info.level

    @property
    def exit_code(self) -> int:
        """Exit code the entry point should terminate with."""
        return self.info.exit_code or 0


class ErrorChannel:
    """Single sink for leveled failure reports."""

    def __init__(self, error_exit_code: int = 1, logger: Optional[logging.Logger] = None):
        self.error_exit_code = error_exit_code
        self.logger = logger or logging.getLogger('gitsyncer.errors')

    def report(self, info: ErrorInfo) -> None:
        """Log every message of ``info``; raise ``SyncAbort`` if it should exit."""
        for message in info.messages:
            if info.level is ErrorLevel.ERROR:
                self.logger.error(message)
            else:
                self.logger.warning(message)

        if info.should_exit:
            raise SyncAbort(info)

    def fail(self, message: Union[str, List[str]]) -> None:
        """Report a fatal error with the configured error exit code."""
        self.report(ErrorInfo(
            level=ErrorLevel.ERROR,
            message=message,
            should_exit=True,
            exit_code=self.error_exit_code
        ))

    def warn_and_stop(self, message: Union[str, List[str]]) -> None:
        """Report a warning and stop the current operation with exit code 0."""
        self.report(ErrorInfo(level=ErrorLevel.WARNING, message=message, should_exit=True))


@dataclass
class ErrorResponse:
    """Standardized error payload returned by the tool server."""
    error: str
    error_code: str
    level: str
    messages: List[str]
    exit_code: int
    timestamp: str = field(default_factory=lambda: datetime.now().isoformat())
    context: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert error response to dictionary format."""
        result = {
            "error": self.error,
            "error_code": self.error_code,
            "level": self.level,
            "messages": self.messages,
            "exit_code": self.exit_code,
            "timestamp": self.timestamp
        }
        if self.context:
            result["context"] = self.context
        return result


def error_response_from_abort(abort: SyncAbort, operation: str) -> ErrorResponse:
    """Build the server payload for an aborted lifecycle operation."""
    if abort.level is ErrorLevel.WARNING:
        error = f"{operation} stopped"
        error_code = "SYNC_STOPPED"
    else:
        error = f"{operation} failed"
        error_code = "SYNC_FAILED"

    return ErrorResponse(
        error=error,
        error_code=error_code,
        level=abort.level.value,
        messages=abort.info.messages,
        exit_code=abort.exit_code,
        context={"operation": operation}
    )


def create_success_response(operation: str, data: Dict[str, Any]) -> Dict[str, Any]:
    """Create a standardized success response for lifecycle operations."""
    return {
        "success": True,
        "operation": operation,
        "timestamp": datetime.now().isoformat(),
        "data": data
    }
