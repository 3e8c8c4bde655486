import logging

from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from config import get_settings
from rate_limit import RateLimiter

logger = logging.getLogger(__name__)


class SchedulerManager:
    def __init__(self, rate_limiter: RateLimiter) -> None:
        settings = get_settings()
        self.rate_limiter = rate_limiter
        self.scheduler = BackgroundScheduler(timezone=settings.timezone)

    def _prune_rate_limits(self, source: str = "manual") -> int:
        pruned = self.rate_limiter.prune()
        logger.info(f"rate_limit_prune: source={source} windows_pruned={pruned}")
        return pruned

    def start(self) -> None:
        trigger = IntervalTrigger(seconds=max(self.rate_limiter.window_secs, 1))
        self.scheduler.add_job(
            self._prune_rate_limits,
            trigger,
            args=["interval"],
            id="rate_limit_prune",
            replace_existing=True,
            misfire_grace_time=30,
            coalesce=True,
        )

        self.scheduler.start()
        logger.info(
            f"Scheduler started with rate limit pruning every "
            f"{self.rate_limiter.window_secs:g}s"
        )

    def stop(self) -> None:
        if self.scheduler.running:
            self.scheduler.shutdown(wait=False)
            logger.info("Scheduler stopped")
