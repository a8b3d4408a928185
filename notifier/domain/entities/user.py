"""Domain entity describing a notification recipient."""

from dataclasses import dataclass


@dataclass
class Recipient:
    """Directory entry used to address emails and personalise messages."""

    id: int
    email: str
    full_name: str | None = None
    is_active: bool = True

    @property
    def display_name(self) -> str:
        return self.full_name or self.email


__all__ = ["Recipient"]
