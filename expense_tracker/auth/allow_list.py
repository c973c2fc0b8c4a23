"""
Email Allow-List

Decides whether an email may use the application. The list is built
from configuration when the app starts and can be edited at runtime;
edits live only as long as the process does.

Comparison is case-insensitive: everything is stored lower-cased.
"""

from collections.abc import Iterable


def normalize_email(email: str) -> str:
    return email.strip().lower()


class EmailAllowList:
    """In-process set of authorized emails, insertion-ordered."""

    def __init__(self, emails: Iterable[str] = ()):
        self._emails: list[str] = []
        for email in emails:
            self.add(email)

    @property
    def emails(self) -> list[str]:
        """Snapshot of the authorized emails."""
        return list(self._emails)

    def is_authorized(self, email: str) -> bool:
        return normalize_email(email) in self._emails

    def add(self, email: str) -> bool:
        """Add an email. Returns False if it was already present."""
        normalized = normalize_email(email)
        if not normalized or normalized in self._emails:
            return False
        self._emails.append(normalized)
        return True

    def remove(self, email: str) -> bool:
        """Remove an email. Returns False if it was not present."""
        normalized = normalize_email(email)
        if normalized not in self._emails:
            return False
        self._emails.remove(normalized)
        return True

    def __contains__(self, email: object) -> bool:
        return isinstance(email, str) and self.is_authorized(email)

    def __len__(self) -> int:
        return len(self._emails)
