"""Result of a single detect-and-propagate run."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class RunAction(Enum):
    """What the run did with the resolved IP."""

    DRY_RUN = "dry_run"  # Resolved only, nothing propagated
    PUBLISHED = "published"  # PUBLISH on a channel
    RECORDED = "recorded"  # ZADD into the bounded history set


@dataclass
class RunOutcome:
    """Outcome of a successful run.

    Attributes:
        ip: Resolved IP literal.
        action: Propagation performed.
        target: Channel or sorted-set key, None for dry runs.
        receivers: Subscriber count acknowledged by PUBLISH (publish mode only).
        history_size: Sorted-set size after trimming (history mode only).
        duration_ms: Wall time of the run in milliseconds.
    """

    ip: str
    action: RunAction
    target: Optional[str] = None
    receivers: Optional[int] = None
    history_size: Optional[int] = None
    duration_ms: int = 0

    def is_dry_run(self) -> bool:
        return self.action == RunAction.DRY_RUN
