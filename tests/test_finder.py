"""
Tests for associated resource discovery
"""

from datetime import timedelta

import pytest

from job_pod_reaper.exceptions import ClusterError
from job_pod_reaper.finder import ResourceFinder
from job_pod_reaper.models import ManagedResource, ReapCandidate, ResourceKind

from conftest import FakeCluster


def test_finds_pod_and_job_objects(cluster, metrics):
    candidate = ReapCandidate(job_id="1", pod_name="ondemand-job1", namespace="user-user1")
    resources = ResourceFinder(cluster, "job", metrics).find([candidate])

    assert resources == [
        ManagedResource(ResourceKind.POD, "1", "ondemand-job1", "user-user1"),
        ManagedResource(ResourceKind.SERVICE, "1", "service-job1", "user-user1"),
        ManagedResource(ResourceKind.CONFIG_MAP, "1", "configmap-job1", "user-user1"),
        ManagedResource(ResourceKind.SECRET, "1", "secret-job1", "user-user1"),
    ]
    assert cluster.calls == [
        ("list_services", "user-user1", "job=1"),
        ("list_config_maps", "user-user1", "job=1"),
        ("list_secrets", "user-user1", "job=1"),
    ]


def test_other_jobs_and_namespaces_are_ignored(metrics):
    fake = FakeCluster()
    fake.add_pod("job1", "user-a", lifetime="1h", labels={"job": "1"}, age=timedelta(hours=2))
    fake.add_service("svc-1", "user-a", {"job": "1"})
    fake.add_config_map("cm-2", "user-a", {"job": "2"})
    fake.add_secret("secret-1", "user-b", {"job": "1"})

    candidate = ReapCandidate(job_id="1", pod_name="job1", namespace="user-a")
    resources = ResourceFinder(fake, "job", metrics).find([candidate])

    assert [(r.kind, r.name) for r in resources] == [
        (ResourceKind.POD, "job1"),
        (ResourceKind.SERVICE, "svc-1"),
    ]


def test_uses_configured_job_label(metrics):
    fake = FakeCluster()
    fake.add_service("svc", "ns", {"batch": "7"})
    fake.add_service("svc-job", "ns", {"job": "7"})

    candidate = ReapCandidate(job_id="7", pod_name="pod", namespace="ns")
    resources = ResourceFinder(fake, "batch", metrics).find([candidate])

    assert [r.name for r in resources] == ["pod", "svc"]


def test_preserves_candidate_order(cluster, metrics):
    candidates = [
        ReapCandidate(job_id="2", pod_name="ondemand-job2", namespace="user-user2"),
        ReapCandidate(job_id="1", pod_name="ondemand-job1", namespace="user-user1"),
    ]
    resources = ResourceFinder(cluster, "job", metrics).find(candidates)

    assert [r.job_id for r in resources] == ["2"] * 4 + ["1"] * 4


@pytest.mark.parametrize("operation", ["list_services", "list_config_maps", "list_secrets"])
def test_lookup_failure_is_fatal(cluster, metrics, operation):
    cluster.fail_lists.add(operation)
    candidate = ReapCandidate(job_id="1", pod_name="ondemand-job1", namespace="user-user1")

    with pytest.raises(ClusterError):
        ResourceFinder(cluster, "job", metrics).find([candidate])
    assert metrics.sample("job_pod_reaper_errors_total") == 1
