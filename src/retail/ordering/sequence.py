"""Order numbers — ``<prefix><YYMMDD><NNNN>``, sequential within a day.

Each day has its own ``OrderSequence`` counter, keyed by the prefix and date,
so numbering restarts at 0001 every day. A counter that does not exist yet is
seeded from the highest order number already stored for that day, which keeps
numbering continuous for data written before counters existed. Candidates that
are already taken are skipped, up to a configured number of attempts.
"""

from datetime import UTC, date, datetime

from protean.exceptions import ObjectNotFoundError
from protean.fields import Integer, String
from protean.utils.globals import current_domain

from retail.domain import logger, retail
from retail.errors import OrderNumberConflictError
from retail.ordering.order import Order

DEFAULT_PREFIX = "ORD"
DEFAULT_MAX_ATTEMPTS = 5


@retail.aggregate
class OrderSequence:
    name = String(identifier=True, max_length=20)
    sequence_value = Integer(default=0, min_value=0)

    def advance(self) -> int:
        self.sequence_value += 1
        return self.sequence_value


class OrderSequencer:
    def __init__(self, prefix: str | None = None, max_attempts: int | None = None):
        custom = current_domain.config.get("custom", {}) or {}
        self.prefix = prefix or custom.get("ORDER_NUMBER_PREFIX", DEFAULT_PREFIX)
        self.max_attempts = max_attempts or int(custom.get("ORDER_NUMBER_MAX_ATTEMPTS", DEFAULT_MAX_ATTEMPTS))

    def day_key(self, on: date | None = None) -> str:
        day = on or datetime.now(UTC).date()
        return f"{self.prefix}{day:%y%m%d}"

    def next_order_number(self, on: date | None = None) -> str:
        key = self.day_key(on)
        sequences = current_domain.repository_for(OrderSequence)

        try:
            counter = sequences.get(key)
        except ObjectNotFoundError:
            seed = self._highest_existing(key)
            counter = OrderSequence(name=key, sequence_value=seed)
            logger.info("Order sequence created", day_key=key, seeded_from=seed)

        candidate = None
        for _ in range(self.max_attempts):
            candidate = f"{key}{counter.advance():04d}"
            if not self._is_taken(candidate):
                sequences.add(counter)
                logger.info("Order number issued", order_number=candidate)
                return candidate
            logger.warning("Order number already taken, advancing", order_number=candidate)

        sequences.add(counter)
        logger.error("Order number generation gave up", day_key=key, attempts=self.max_attempts)
        raise OrderNumberConflictError(candidate)

    def _is_taken(self, order_number: str) -> bool:
        try:
            current_domain.repository_for(Order).get(order_number)
        except ObjectNotFoundError:
            return False
        return True

    def _highest_existing(self, key: str) -> int:
        highest = 0
        for number in current_domain.repository_for(Order).numbers_starting_with(key):
            suffix = number[len(key):]
            if suffix.isdigit():
                highest = max(highest, int(suffix))
        return highest
