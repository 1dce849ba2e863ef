from dataclasses import dataclass, replace
from datetime import datetime

from django.db import models


class Kind(models.TextChoices):
    VIEWING = "viewing", "Viewing"
    PROPERTY_NEW = "property-new", "New property"
    SALE = "sale", "Sale"
    CLIENT_FOLLOWUP = "client-followup", "Client follow-up"


class Priority(models.TextChoices):
    LOW = "low", "Low"
    MEDIUM = "medium", "Medium"
    HIGH = "high", "High"


PRIORITY_RANK = {
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}


@dataclass(frozen=True)
class Notification:
    """
    A derived, user-facing notification.

    Notifications are NOT the source of truth and are never persisted:
    they are recomputed from viewings, properties and clients on every
    refresh. Only `read` is carried across refreshes, keyed by `id`.
    """

    # Kept as class attributes so callers can say Notification.Kind.SALE
    Kind = Kind
    Priority = Priority

    id: str
    kind: str
    title: str
    message: str
    timestamp: datetime
    priority: str
    read: bool = False
    action_url: str = ""

    @property
    def priority_rank(self):
        return PRIORITY_RANK[Priority(self.priority)]

    def as_read(self):
        if self.read:
            return self
        return replace(self, read=True)

    def with_read(self, read):
        if self.read == read:
            return self
        return replace(self, read=read)

    def to_dict(self):
        return {
            "id": self.id,
            "kind": self.kind,
            "title": self.title,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
            "priority": self.priority,
            "read": self.read,
            "action_url": self.action_url,
        }

    def __str__(self):
        return f"{self.kind.upper()} | {self.priority} | {self.title}"
