"""Data models for the commit source."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Commit:
    hash: str
    author: str  # author e-mail
    timestamp: datetime  # author date, offset-aware
