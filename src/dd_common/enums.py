"""Global enums — values are what gets persisted and returned over the API."""

from enum import Enum


class RoundStatus(str, Enum):
    PREVIEW = "preview"
    LIVE = "live"
    SETTLED = "settled"


class BettingStatus(str, Enum):
    OPEN = "open"
    LOCKED = "locked"
    NONE = "none"


class BettingTarget(str, Enum):
    LIVE = "live"
    NEXT = "next"


class StorageBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


# Winner sentinel recorded when the eligibility gate refunds a round
REFUNDED = "REFUNDED"
