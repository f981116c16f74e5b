"""Bounded history propagator backed by a Redis sorted set."""

import logging
import time
from typing import Optional

import redis

from ipstash.errors import PublishFailedError
from ipstash.models.history_entry import HistoryEntry
from ipstash.models.ip_address import IPAddress


logger = logging.getLogger(__name__)

DEFAULT_MAX_ENTRIES = 60


class HistoryRecorder:
    """Keeps the most recent IP observations in a capped sorted set.

    Members are IP literals, scores are Unix seconds. Recording an IP that is
    already present moves it to the new timestamp instead of adding a second
    entry, since sorted-set members are unique.
    """

    def __init__(
        self,
        client: redis.Redis,
        key: str,
        max_entries: int = DEFAULT_MAX_ENTRIES,
    ):
        """Initialize history recorder.

        Args:
            client: Open Redis client.
            key: Sorted-set key name.
            max_entries: Maximum number of entries kept (>= 1).

        Raises:
            ValueError: If max_entries is less than 1.
        """
        if max_entries < 1:
            raise ValueError("max_entries must be at least 1")
        self.client = client
        self.key = key
        self.max_entries = max_entries

    def record(self, ip: IPAddress, now: Optional[int] = None) -> int:
        """Insert the IP and trim the set to max_entries in one transaction.

        ZADD, ZREMRANGEBYRANK and ZCARD run inside MULTI/EXEC so overlapping
        runs cannot leave the set above the cap.

        Args:
            ip: Validated IP address.
            now: Observation time in Unix seconds (defaults to current time).

        Returns:
            int: Number of entries in the set after trimming.

        Raises:
            PublishFailedError: If the broker is unreachable or rejects the call.
        """
        timestamp = int(time.time()) if now is None else int(now)

        try:
            with self.client.pipeline(transaction=True) as pipe:
                pipe.zadd(self.key, {ip.value: timestamp})
                # Keep the newest max_entries members (rank 0 is the oldest)
                pipe.zremrangebyrank(self.key, 0, -(self.max_entries + 1))
                pipe.zcard(self.key)
                added, evicted, size = pipe.execute()
        except redis.RedisError as e:
            raise PublishFailedError(self.key, e) from e

        if not added:
            logger.debug(f"IP address {ip} already in '{self.key}', timestamp updated")
        if evicted:
            logger.info(f"Evicted {evicted} oldest entries from '{self.key}'")
        logger.info(
            f"IP address {ip} recorded in '{self.key}' at {timestamp} ({size}/{self.max_entries})"
        )
        return size

    def entries(self) -> list[HistoryEntry]:
        """Return all recorded entries, oldest first.

        Raises:
            PublishFailedError: If the broker is unreachable.
        """
        try:
            rows = self.client.zrange(self.key, 0, -1, withscores=True)
        except redis.RedisError as e:
            raise PublishFailedError(self.key, e) from e
        return [HistoryEntry.from_member(member, score) for member, score in rows]

    def latest(self) -> Optional[HistoryEntry]:
        """Return the most recently recorded entry, or None if the set is empty.

        Raises:
            PublishFailedError: If the broker is unreachable.
        """
        try:
            rows = self.client.zrange(self.key, -1, -1, withscores=True)
        except redis.RedisError as e:
            raise PublishFailedError(self.key, e) from e
        if not rows:
            return None
        member, score = rows[0]
        return HistoryEntry.from_member(member, score)
