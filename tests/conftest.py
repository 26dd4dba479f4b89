"""
Shared fixtures: an in-memory cluster built from real Kubernetes model objects
"""

from datetime import datetime, timedelta, timezone

import pytest
from kubernetes import client
from kubernetes.client.rest import ApiException

from job_pod_reaper.config import Config
from job_pod_reaper.exceptions import ClusterError
from job_pod_reaper.kubernetes_client import ALL_NAMESPACES
from job_pod_reaper.metrics import ReaperMetrics
from job_pod_reaper.models import ResourceKind

NOW = datetime(2020, 1, 1, 15, 0, 0, tzinfo=timezone.utc)
LIFETIME = "pod.kubernetes.io/lifetime"


def _matches(labels, selector):
    labels = labels or {}
    for term in filter(None, (t.strip() for t in selector.split(","))):
        if "!=" in term:
            key, value = term.split("!=", 1)
            if labels.get(key.strip()) == value.strip():
                return False
        elif "=" in term:
            key, value = term.replace("==", "=").split("=", 1)
            if labels.get(key.strip()) != value.strip():
                return False
        elif term.startswith("!"):
            if term[1:] in labels:
                return False
        elif term not in labels:
            return False
    return True


def make_pod(name, namespace, lifetime=None, labels=None, age=None, start_age=None, reason=None):
    annotations = {LIFETIME: lifetime} if lifetime is not None else {}
    created = NOW - age if age is not None else NOW
    start_time = NOW - start_age if start_age is not None else None
    return client.V1Pod(
        metadata=client.V1ObjectMeta(
            name=name,
            namespace=namespace,
            annotations=annotations,
            labels=labels or {},
            creation_timestamp=created,
        ),
        status=client.V1PodStatus(start_time=start_time, reason=reason),
    )


def make_object(model, name, namespace, labels=None):
    return model(metadata=client.V1ObjectMeta(name=name, namespace=namespace, labels=labels or {}))


class FakeCluster:
    """Implements the cluster operations the reaper uses, over in-memory objects"""

    def __init__(self):
        self.namespaces = []
        self.objects = {kind: [] for kind in ResourceKind}
        self.fail_lists = set()
        self.fail_deletes = set()
        self.calls = []

    def add_namespace(self, name, labels=None):
        self.namespaces.append(make_object(client.V1Namespace, name, None, labels))
        return self

    def add(self, kind, obj):
        self.objects[kind].append(obj)
        return self

    def add_pod(self, *args, **kwargs):
        return self.add(ResourceKind.POD, make_pod(*args, **kwargs))

    def add_service(self, name, namespace, labels=None):
        return self.add(ResourceKind.SERVICE, make_object(client.V1Service, name, namespace, labels))

    def add_config_map(self, name, namespace, labels=None):
        return self.add(ResourceKind.CONFIG_MAP, make_object(client.V1ConfigMap, name, namespace, labels))

    def add_secret(self, name, namespace, labels=None):
        return self.add(ResourceKind.SECRET, make_object(client.V1Secret, name, namespace, labels))

    def names(self, kind):
        return sorted(obj.metadata.name for obj in self.objects[kind])

    def _list(self, operation, kind, namespace, label_selector):
        self.calls.append((operation, namespace, label_selector))
        if operation in self.fail_lists:
            raise ClusterError(operation, namespace=namespace, label_selector=label_selector,
                               cause=ApiException(status=500, reason="Internal Server Error"))
        return [
            obj for obj in self.objects[kind]
            if namespace in (ALL_NAMESPACES, obj.metadata.namespace)
            and _matches(obj.metadata.labels, label_selector)
        ]

    def list_namespaces(self, label_selector=""):
        self.calls.append(("list_namespaces", None, label_selector))
        if "list_namespaces" in self.fail_lists:
            raise ClusterError("list namespaces", label_selector=label_selector)
        return [ns.metadata.name for ns in self.namespaces if _matches(ns.metadata.labels, label_selector)]

    def list_pods(self, namespace, label_selector=""):
        return self._list("list_pods", ResourceKind.POD, namespace, label_selector)

    def list_services(self, namespace, label_selector=""):
        return self._list("list_services", ResourceKind.SERVICE, namespace, label_selector)

    def list_config_maps(self, namespace, label_selector=""):
        return self._list("list_config_maps", ResourceKind.CONFIG_MAP, namespace, label_selector)

    def list_secrets(self, namespace, label_selector=""):
        return self._list("list_secrets", ResourceKind.SECRET, namespace, label_selector)

    def delete(self, kind, namespace, name):
        self.calls.append(("delete", namespace, name))
        if (kind, name) in self.fail_deletes:
            raise ApiException(status=403, reason="Forbidden")
        for obj in self.objects[kind]:
            if obj.metadata.namespace == namespace and obj.metadata.name == name:
                self.objects[kind].remove(obj)
                return
        raise ApiException(status=404, reason="Not Found")


@pytest.fixture
def cluster():
    """Namespaces and objects modelled on an Open OnDemand style deployment"""
    fake = FakeCluster()
    fake.add_namespace("non-job")
    fake.add_namespace("user-user1", {"app.kubernetes.io/name": "open-ondemand"})
    fake.add_namespace("user-user2", {"app.kubernetes.io/name": "foo"})
    fake.add_namespace("user-user3", {"app.kubernetes.io/name": "open-ondemand-test"})

    managed = {"app.kubernetes.io/managed-by": "open-ondemand"}
    fake.add_pod("non-job-pod", "non-job")
    fake.add_pod("ondemand-job1", "user-user1", lifetime="1h",
                 labels={"job": "1", **managed}, age=timedelta(hours=2), start_age=timedelta(hours=2))
    fake.add_pod("ondemand-job2", "user-user2", lifetime="30m",
                 labels={"job": "2", **managed}, age=timedelta(hours=2), start_age=timedelta(hours=2))
    fake.add_pod("ondemand-job3", "user-user3", lifetime="30m",
                 labels={"job": "3", **managed}, age=timedelta(minutes=10))

    fake.add_service("service-job1", "user-user1", {"job": "1"})
    fake.add_service("service-job2", "user-user2", {"job": "2"})
    fake.add_config_map("configmap-job1", "user-user1", {"job": "1"})
    fake.add_config_map("configmap-job2", "user-user2", {"job": "2"})
    fake.add_secret("secret-job1", "user-user1", {"job": "1"})
    fake.add_secret("secret-job2", "user-user2", {"job": "2"})
    return fake


@pytest.fixture
def metrics():
    return ReaperMetrics()


@pytest.fixture
def config():
    return Config(pods_labels="app.kubernetes.io/managed-by=open-ondemand")
