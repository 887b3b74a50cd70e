"""Root of the Test Insight exception hierarchy."""

from typing import Mapping, Optional


class TestInsightError(Exception):
    """Any failure the CLI reports as a one-line error.

    ``details`` is key/value context appended to the message, such as the
    failing git command or the offending configuration key.
    """

    __test__ = False  # keep pytest from collecting this class

    def __init__(self, message: str, details: Optional[Mapping[str, object]] = None):
        super().__init__(message)
        self.message = message
        self.details = {key: str(value) for key, value in (details or {}).items()}

    def __str__(self) -> str:
        if not self.details:
            return self.message
        context = ", ".join(f"{key}={value}" for key, value in self.details.items())
        return f"{self.message} ({context})"
