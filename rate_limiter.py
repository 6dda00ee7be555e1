import time
import logging

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_INTERVAL = 0.5  # seconds before every outbound request


class RateLimiter:
    """Fixed-delay throttle applied before each request to the remote service."""

    def __init__(self, interval: float = DEFAULT_REQUEST_INTERVAL):
        if interval < 0:
            raise ValueError(f"Request interval must not be negative: {interval}")
        self.interval = interval
        self.wait_count = 0

    def wait(self) -> None:
        self.wait_count += 1
        if self.interval > 0:
            logger.debug(f"Rate limiting delay: {self.interval:.2f}s (request {self.wait_count})")
            time.sleep(self.interval)
