"""
Find the objects that belong to the same job as a reap candidate
"""

from typing import List, Sequence

from .exceptions import ClusterError
from .logger import get_logger
from .metrics import ReaperMetrics
from .models import ManagedResource, ReapCandidate, ResourceKind

logger = get_logger(__name__)


class ResourceFinder:
    def __init__(self, cluster, job_label: str, metrics: ReaperMetrics):
        self.cluster = cluster
        self.job_label = job_label
        self.metrics = metrics
        self._lookups = (
            (ResourceKind.SERVICE, "services", cluster.list_services),
            (ResourceKind.CONFIG_MAP, "config maps", cluster.list_config_maps),
            (ResourceKind.SECRET, "secrets", cluster.list_secrets),
        )

    def find(self, candidates: Sequence[ReapCandidate]) -> List[ManagedResource]:
        """Every candidate pod, each followed by its services, config maps and secrets"""
        resources: List[ManagedResource] = []
        for candidate in candidates:
            resources.append(ManagedResource(
                kind=ResourceKind.POD,
                job_id=candidate.job_id,
                name=candidate.pod_name,
                namespace=candidate.namespace,
            ))
            resources.extend(self._find_job_objects(candidate))
        return resources

    def _find_job_objects(self, candidate: ReapCandidate) -> List[ManagedResource]:
        log = logger.bind(job=candidate.job_id, namespace=candidate.namespace)
        selector = f"{self.job_label}={candidate.job_id}"

        found: List[ManagedResource] = []
        for kind, description, lookup in self._lookups:
            try:
                items = lookup(candidate.namespace, selector)
            except ClusterError as e:
                log.error(f"Error getting {description}", err=str(e))
                self.metrics.record_error()
                raise
            for item in items:
                found.append(ManagedResource(
                    kind=kind,
                    job_id=candidate.job_id,
                    name=item.metadata.name,
                    namespace=item.metadata.namespace or candidate.namespace,
                ))
        return found
