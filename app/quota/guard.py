import math
from collections.abc import Callable
from datetime import datetime, timezone

from app.database.repositories.usage_repository import UsageRepository
from app.logging.logger import Log

ALERT_THRESHOLDS_PERCENT = (50, 80, 90, 100)


def current_period(now: datetime) -> str:
    """Usage periods are calendar months: YYYY-MM."""
    return now.strftime("%Y-%m")


class QuotaGuard:
    """Gate in front of every external extraction call."""

    def __init__(
        self,
        usage_repo: UsageRepository,
        monthly_limit: int,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._usage_repo = usage_repo
        self._monthly_limit = monthly_limit
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def try_consume(self) -> bool:
        """Consume one unit of this month's quota.

        The check and the increment happen in one statement in the usage
        store; a denied call leaves the counter untouched.
        """
        period = current_period(self._clock())
        count = self._usage_repo.try_increment(period, self._monthly_limit)
        if count is None:
            Log.warning(
                f"Usage limit reached for {period} ({self._monthly_limit} per month)"
            )
            return False
        self._alert_on_threshold(period, count)
        return True

    def _alert_on_threshold(self, period: str, count: int) -> None:
        for percent in reversed(ALERT_THRESHOLDS_PERCENT):
            if count == math.ceil(self._monthly_limit * percent / 100):
                Log.warning(
                    f"Extraction usage for {period} reached {percent}%: "
                    f"{count}/{self._monthly_limit}"
                )
                return
