"""Pub/sub propagator."""

import logging

import redis

from ipstash.errors import PublishFailedError
from ipstash.models.ip_address import IPAddress


logger = logging.getLogger(__name__)


class ChannelPublisher:
    """Publishes the resolved IP on a Redis pub/sub channel.

    Delivery is fire-and-forget: only subscribers connected at publish time
    receive the message. Every call publishes, even if the IP is unchanged.
    """

    def __init__(self, client: redis.Redis, channel: str):
        """Initialize channel publisher.

        Args:
            client: Open Redis client.
            channel: Pub/sub channel name.
        """
        self.client = client
        self.channel = channel

    def publish(self, ip: IPAddress) -> int:
        """Publish the IP string as a single message.

        Args:
            ip: Validated IP address.

        Returns:
            int: Number of subscribers the broker delivered to.

        Raises:
            PublishFailedError: If the broker is unreachable or rejects the call.
        """
        try:
            receivers = self.client.publish(self.channel, ip.value)
        except redis.RedisError as e:
            raise PublishFailedError(self.channel, e) from e

        if receivers == 0:
            logger.warning(
                f"IP address {ip} published to '{self.channel}' channel with no subscribers"
            )
        else:
            logger.info(
                f"IP address {ip} published to '{self.channel}' channel ({receivers} subscribers)"
            )
        return receivers
