"""
Delete the objects of expired jobs
"""

from typing import Sequence

from .logger import get_logger
from .metrics import ReaperMetrics
from .models import ManagedResource, ResourceKind, RunResult

logger = get_logger(__name__)

_DISPLAY_NAMES = {
    ResourceKind.POD: "Pod",
    ResourceKind.SERVICE: "Service",
    ResourceKind.CONFIG_MAP: "ConfigMap",
    ResourceKind.SECRET: "Secret",
}


class Reaper:
    def __init__(self, cluster, metrics: ReaperMetrics):
        self.cluster = cluster
        self.metrics = metrics

    def reap(self, resources: Sequence[ManagedResource]) -> RunResult:
        """Delete every resource, counting deletions and failures per item.

        A failed deletion is logged and counted, then the next resource is
        attempted. Nothing is retried and this method never raises for a
        single failed deletion.
        """
        result = RunResult()
        for resource in resources:
            display = _DISPLAY_NAMES[resource.kind]
            log = logger.bind(job=resource.job_id, name=resource.name, namespace=resource.namespace)
            try:
                self.cluster.delete(resource.kind, resource.namespace, resource.name)
            except Exception as e:
                result.errors += 1
                self.metrics.record_error()
                log.error(f"Error deleting {display}", err=str(e))
                continue

            log.info(f"{display} deleted")
            result.deleted[resource.kind] += 1
            self.metrics.record_reaped(resource.kind)

        logger.info("Reap summary", errors=result.errors, **result.summary())
        return result
