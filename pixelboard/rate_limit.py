"""
Rate limiting implementation using in-memory tracking
Keeps a single connection from flooding the board with claim_cell frames
"""

import logging
import time
from collections import defaultdict
from typing import Dict, Tuple

logger = logging.getLogger(__name__)


class RateLimiter:
    """
    Per-session sliding-window rate limiter
    Tracks requests in memory with periodic cleanup
    """

    def __init__(
        self,
        max_per_minute: int = 300,
        max_per_second: int = 10,
        block_duration: int = 5,
    ):
        """
        Initialize rate limiter

        Args:
            max_per_minute: Max limited frames per session per minute
            max_per_second: Max limited frames per session per second
            block_duration: How long to block after limit (seconds)
        """
        self.max_per_minute = max_per_minute
        self.max_per_second = max_per_second
        self.block_duration = block_duration

        # { session_id: { 'requests': [timestamp, ...], 'blocked_until': time } }
        self.request_history: Dict[str, Dict] = defaultdict(
            lambda: {"requests": [], "blocked_until": 0}
        )

    def forget(self, session_id: str):
        """Drop everything tracked for a session that has left"""
        self.request_history.pop(session_id, None)

    def is_blocked(self, session_id: str) -> bool:
        history = self.request_history.get(session_id)
        if history and history["blocked_until"] > time.time():
            return True
        return False

    def check(self, session_id: str) -> Tuple[bool, str]:
        """
        Check whether a frame should be processed

        Returns:
            Tuple[bool, str]: (is_allowed, reason)
                reason is an empty string when allowed
        """
        current_time = time.time()

        if self.is_blocked(session_id):
            return False, "Rate limit exceeded. Try again later."

        history = self.request_history[session_id]
        requests = history["requests"]

        requests[:] = [ts for ts in requests if current_time - ts < 60]

        recent_requests = [ts for ts in requests if current_time - ts < 1]
        if len(recent_requests) >= self.max_per_second:
            history["blocked_until"] = current_time + self.block_duration
            logger.warning(
                "Session %s exceeded per-second limit (%s req/sec)",
                session_id,
                self.max_per_second,
            )
            return False, "Rate limit exceeded (too many requests per second)"

        if len(requests) >= self.max_per_minute:
            history["blocked_until"] = current_time + self.block_duration
            logger.warning(
                "Session %s exceeded per-minute limit (%s req/min)",
                session_id,
                self.max_per_minute,
            )
            return False, "Rate limit exceeded (too many requests per minute)"

        requests.append(current_time)
        return True, ""

    def cleanup_old_data(self, max_age_seconds: int = 300):
        """Remove old data to prevent memory buildup (call periodically)"""
        current_time = time.time()
        cutoff_time = current_time - max_age_seconds

        to_delete = []
        for session_id, history in self.request_history.items():
            history["requests"][:] = [ts for ts in history["requests"] if ts > cutoff_time]
            if not history["requests"] and history["blocked_until"] < current_time:
                to_delete.append(session_id)
        for session_id in to_delete:
            del self.request_history[session_id]


__all__ = ["RateLimiter"]
