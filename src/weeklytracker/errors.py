from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    MISSING_TOKEN = "MISSING_TOKEN"
    HTTP_CLIENT_ERROR = "HTTP_CLIENT_ERROR"
    HTTP_FETCH_FAILED = "HTTP_FETCH_FAILED"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    INVALID_INPUT = "INVALID_INPUT"


class WeeklyTrackerError(Exception):
    """Raised for all expected failure conditions.

    Caught at the entrypoints only: the CLI turns it into a diagnostic and
    exit code 1, the web app serialises it into the error envelope. Business
    logic lets it propagate.
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        suggestion: str,
        recoverable: bool = False,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.suggestion = suggestion
        self.recoverable = recoverable

    def to_dict(self) -> dict:
        return {
            "error": {
                "code": self.code,
                "message": self.message,
                "suggestion": self.suggestion,
                "recoverable": self.recoverable,
            }
        }


def missing_token_error() -> WeeklyTrackerError:
    return WeeklyTrackerError(
        code=ErrorCode.MISSING_TOKEN,
        message="NOTION_TOKEN environment variable is required.",
        suggestion="Create a .env file with your Notion integration token: NOTION_TOKEN=your_token_here",
        recoverable=False,
    )
