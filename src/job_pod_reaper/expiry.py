"""
Decide whether a pod has outlived its declared lifetime
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from .config import Config
from .durations import parse_duration
from .logger import get_logger

logger = get_logger(__name__)

EVICTED_REASON = "Evicted"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class Verdict:
    """Result of evaluating one pod"""

    expired: bool
    reason: str
    job_id: Optional[str] = None
    parse_error: bool = False


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ExpiryEvaluator:
    def __init__(self, lifetime_annotation: str, job_label: str, reap_evicted: bool = False,
                 timestamp: str = "creation", clock: Callable[[], datetime] = utc_now):
        self.lifetime_annotation = lifetime_annotation
        self.job_label = job_label
        self.reap_evicted = reap_evicted
        self.timestamp = timestamp
        self.clock = clock

    @classmethod
    def from_config(cls, config: Config, clock: Callable[[], datetime] = utc_now) -> "ExpiryEvaluator":
        return cls(
            lifetime_annotation=config.lifetime_annotation,
            job_label=config.job_label,
            reap_evicted=config.reap_evicted_pods,
            timestamp=config.reap_timestamp,
            clock=clock,
        )

    def _reference_time(self, pod) -> Optional[datetime]:
        if self.timestamp == "start":
            start_time = pod.status.start_time if pod.status else None
            return _as_utc(start_time) if start_time else None
        created = pod.metadata.creation_timestamp
        return _as_utc(created) if created else None

    def evaluate(self, pod, now: Optional[datetime] = None) -> Verdict:
        metadata = pod.metadata
        log = logger.bind(pod=metadata.name, namespace=metadata.namespace)

        annotations = metadata.annotations or {}
        value = annotations.get(self.lifetime_annotation)
        if value is None:
            log.debug("Pod lacks reaper annotation, skipping", annotation=self.lifetime_annotation)
            return Verdict(False, "no lifetime annotation")

        log.debug("Found pod with reaper annotation", annotation=value)
        try:
            lifetime = parse_duration(value)
        except ValueError as e:
            log.error("Error parsing annotation, SKIPPING", annotation=value, err=str(e))
            return Verdict(False, "invalid lifetime annotation", parse_error=True)

        labels = metadata.labels or {}
        job_id = labels.get(self.job_label)
        if job_id is None:
            log.debug("Pod does not have job label, skipping", label=self.job_label)
            return Verdict(False, "no job label")
        log = log.bind(job=job_id)

        reference = self._reference_time(pod)
        if reference is None:
            log.debug("Pod has no timestamp to measure lifetime from, skipping", timestamp=self.timestamp)
            return Verdict(False, f"no {self.timestamp} time", job_id=job_id)

        now = _as_utc(now if now is not None else self.clock())
        current_lifetime = now - reference
        log.debug("Pod lifetime", lifetime=current_lifetime.total_seconds())

        if current_lifetime > lifetime:
            log.debug("Pod is past its lifetime and will be killed.")
            return Verdict(True, "lifetime exceeded", job_id=job_id)

        status_reason = pod.status.reason if pod.status else None
        if self.reap_evicted and status_reason and EVICTED_REASON in status_reason:
            log.debug("Pod is evicted and will be killed.", status_reason=status_reason)
            return Verdict(True, "evicted", job_id=job_id)

        return Verdict(False, "within lifetime", job_id=job_id)
