"""
Data model shared by the reaping stages
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict


class ResourceKind(Enum):
    """Kinds of objects the reaper deletes; values are used as metric labels"""

    POD = "pod"
    SERVICE = "service"
    CONFIG_MAP = "configmap"
    SECRET = "secret"


@dataclass(frozen=True)
class ReapCandidate:
    """A pod that has outlived its lifetime (or was evicted)"""

    job_id: str
    pod_name: str
    namespace: str


@dataclass(frozen=True)
class ManagedResource:
    """An object slated for deletion because it belongs to an expired job.

    ``job_id`` is not needed to delete the object, it is kept so log lines
    can be correlated back to the candidate that triggered the discovery.
    """

    kind: ResourceKind
    job_id: str
    name: str
    namespace: str


def _empty_counts() -> Dict[ResourceKind, int]:
    return {kind: 0 for kind in ResourceKind}


@dataclass
class RunResult:
    """Outcome of one reap run"""

    deleted: Dict[ResourceKind, int] = field(default_factory=_empty_counts)
    errors: int = 0
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.errors == 0

    @property
    def total_deleted(self) -> int:
        return sum(self.deleted.values())

    def summary(self) -> Dict[str, int]:
        """Deleted counts keyed by plural kind name, as shown in the run summary"""
        return {
            "pods": self.deleted[ResourceKind.POD],
            "services": self.deleted[ResourceKind.SERVICE],
            "configmaps": self.deleted[ResourceKind.CONFIG_MAP],
            "secrets": self.deleted[ResourceKind.SECRET],
        }
