import logging
import uuid

from midpoint.services.errors import AllocationExhausted

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 10


def generate_meeting_param():
    return str(uuid.uuid4())


class IdentifierAllocator:
    """Issues meeting params that are not yet used by any stored meeting.

    ``exists`` is a callable answering whether a candidate is already taken.
    The store's unique constraint on ``meetings.param`` stays the final
    arbiter; this check only keeps collisions away from the write path.
    """

    def __init__(self, exists, generate=generate_meeting_param, max_attempts=None):
        self.exists = exists
        self.generate = generate
        self.max_attempts = max_attempts or DEFAULT_MAX_ATTEMPTS

    def allocate(self):
        for attempt in range(1, self.max_attempts + 1):
            param = self.generate()
            if not self.exists(param):
                return param
            logger.warning(
                "Meeting param collision on attempt %s/%s", attempt, self.max_attempts
            )

        raise AllocationExhausted(
            f"No unique meeting identifier after {self.max_attempts} attempts."
        )
