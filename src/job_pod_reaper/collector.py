"""
Collect pods that are due for reaping
"""

from typing import List, Sequence

from .exceptions import ClusterError
from .expiry import ExpiryEvaluator
from .logger import get_logger
from .metrics import ReaperMetrics
from .models import ReapCandidate

logger = get_logger(__name__)


class JobCollector:
    def __init__(self, cluster, evaluator: ExpiryEvaluator, metrics: ReaperMetrics):
        self.cluster = cluster
        self.evaluator = evaluator
        self.metrics = metrics

    def collect(self, namespaces: Sequence[str], pod_selectors: Sequence[str],
                max_candidates: int = 0) -> List[ReapCandidate]:
        """Walk namespaces, then selectors, then listed pods, and gather candidates.

        Each selector is its own list call, so the selectors are OR-ed. A pod
        matched by more than one selector is collected once. Collection stops
        as soon as ``max_candidates`` candidates are gathered (0 means no cap).
        Any failed list call raises ``ClusterError`` and nothing is returned.
        """
        candidates: List[ReapCandidate] = []
        seen = set()
        now = self.evaluator.clock()

        for namespace in namespaces:
            for selector in pod_selectors:
                try:
                    pods = self.cluster.list_pods(namespace, selector)
                except ClusterError as e:
                    logger.error("Error getting pod list", label=selector, namespace=namespace, err=str(e))
                    self.metrics.record_error()
                    raise

                for pod in pods:
                    key = (pod.metadata.namespace, pod.metadata.name)
                    if key in seen:
                        continue

                    verdict = self.evaluator.evaluate(pod, now)
                    if verdict.parse_error:
                        self.metrics.record_error()
                    if not verdict.expired:
                        continue

                    seen.add(key)
                    candidates.append(ReapCandidate(
                        job_id=verdict.job_id,
                        pod_name=pod.metadata.name,
                        namespace=pod.metadata.namespace,
                    ))
                    if max_candidates and len(candidates) >= max_candidates:
                        logger.info("Max reap reached, skipping rest", max=max_candidates)
                        return candidates

        logger.debug("Collected reap candidates", count=len(candidates))
        return candidates
