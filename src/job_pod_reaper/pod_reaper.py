import time
from datetime import datetime
from typing import Callable

from .collector import JobCollector
from .config import Config
from .expiry import ExpiryEvaluator, utc_now
from .finder import ResourceFinder
from .logger import get_logger
from .metrics import ReaperMetrics
from .models import RunResult
from .namespaces import resolve_namespaces
from .reaper import Reaper

logger = get_logger(__name__)


class PodReaper:
    """One reap run: resolve namespaces, collect candidates, find job objects, delete"""

    def __init__(self, cluster, config: Config, metrics: ReaperMetrics,
                 clock: Callable[[], datetime] = utc_now):
        self.cluster = cluster
        self.config = config
        self.metrics = metrics
        self.collector = JobCollector(cluster, ExpiryEvaluator.from_config(config, clock), metrics)
        self.finder = ResourceFinder(cluster, config.job_label, metrics)
        self.reaper = Reaper(cluster, metrics)

    def run_reap(self) -> RunResult:
        """Run one reap cycle.

        ``ClusterError`` from any list call propagates and aborts the run.
        Objects deleted before the abort stay deleted. The duration and error
        metrics are updated either way.
        """
        start_time = time.monotonic()
        result = None
        try:
            namespaces = resolve_namespaces(self.cluster, self.config)
            logger.debug("Resolved namespaces", namespaces=namespaces)

            candidates = self.collector.collect(
                namespaces, self.config.pod_selectors, self.config.reap_max
            )
            logger.info("Found pods to reap", count=len(candidates))

            resources = self.finder.find(candidates)
            result = self.reaper.reap(resources)
        finally:
            duration = time.monotonic() - start_time
            if result is not None:
                result.duration_seconds = duration
            self.metrics.record_run(result, duration)

        if not result.ok:
            logger.error(f"{result.errors} errors encountered during reap")
        logger.info("Reap run completed", duration=round(result.duration_seconds, 3))
        return result
