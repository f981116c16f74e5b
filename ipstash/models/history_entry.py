"""History entry model read back from the Redis sorted set."""

from dataclasses import dataclass


@dataclass(frozen=True)
class HistoryEntry:
    """One recorded IP observation.

    Attributes:
        ip: IP literal stored as the sorted-set member.
        timestamp: Unix seconds stored as the member score.
    """

    ip: str
    timestamp: int

    @classmethod
    def from_member(cls, member: str, score: float) -> "HistoryEntry":
        """Build an entry from a (member, score) pair returned by ZRANGE."""
        return cls(ip=member, timestamp=int(score))
