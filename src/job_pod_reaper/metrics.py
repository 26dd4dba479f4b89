"""
Prometheus metrics for Job Pod Reaper
"""

from typing import Optional, Tuple

import requests
from prometheus_client import (
    CollectorRegistry,
    Counter,
    Gauge,
    GCCollector,
    PlatformCollector,
    ProcessCollector,
    generate_latest,
    start_http_server,
)
from prometheus_client.exposition import CONTENT_TYPE_LATEST

from . import __version__
from .logger import get_logger
from .models import ResourceKind, RunResult

logger = get_logger(__name__)

METRICS_NAMESPACE = "job_pod_reaper"


def split_listen_address(address: str) -> Tuple[str, int]:
    """Split ``host:port`` (host optional, as in ``:8080``)"""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        raise ValueError(f"invalid listen address {address!r}")
    return host.strip("[]") or "0.0.0.0", int(port)


class ReaperMetrics:
    """Counters and gauges owned by the run loop, on a private registry"""

    def __init__(self, process_metrics: bool = False, registry: Optional[CollectorRegistry] = None):
        self.registry = registry or CollectorRegistry(auto_describe=True)

        self.build_info = Gauge(
            "build_info", "Build information",
            ["version"], namespace=METRICS_NAMESPACE, registry=self.registry,
        )
        self.reaped_total = Counter(
            "reaped", "Total number of object types reaped",
            ["type"], namespace=METRICS_NAMESPACE, registry=self.registry,
        )
        self.error = Gauge(
            "error", "Indicates an error was encountered",
            namespace=METRICS_NAMESPACE, registry=self.registry,
        )
        self.errors_total = Counter(
            "errors", "Total number of errors",
            namespace=METRICS_NAMESPACE, registry=self.registry,
        )
        self.duration = Gauge(
            "run_duration_seconds", "Last runtime duration in seconds",
            namespace=METRICS_NAMESPACE, registry=self.registry,
        )

        self.build_info.labels(version=__version__).set(1)
        for kind in ResourceKind:
            self.reaped_total.labels(type=kind.value)

        if process_metrics:
            ProcessCollector(registry=self.registry)
            PlatformCollector(registry=self.registry)
            GCCollector(registry=self.registry)

    def record_error(self) -> None:
        self.errors_total.inc()

    def record_reaped(self, kind: ResourceKind) -> None:
        self.reaped_total.labels(type=kind.value).inc()

    def record_run(self, result: Optional[RunResult], duration_seconds: float) -> None:
        """Publish the outcome of a run; ``result`` is None when the run aborted"""
        self.duration.set(duration_seconds)
        self.error.set(0 if result is not None and result.ok else 1)

    def sample(self, name: str, labels: Optional[dict] = None) -> Optional[float]:
        return self.registry.get_sample_value(name, labels or {})

    def serve(self, listen_address: str):
        """Start the background HTTP exposition endpoint"""
        host, port = split_listen_address(listen_address)
        server = start_http_server(port, addr=host, registry=self.registry)
        logger.info("Serving metrics", address=f"{host}:{port}", path="/metrics")
        return server

    def push(self, pushgateway_url: str, job_name: str) -> None:
        """Push the current metrics to a Prometheus Pushgateway"""
        url = f"{pushgateway_url.rstrip('/')}/metrics/job/{job_name}"
        try:
            response = requests.put(
                url,
                data=generate_latest(self.registry),
                headers={"Content-Type": CONTENT_TYPE_LATEST},
                timeout=10,
            )
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error("Failed to push to Pushgateway", url=url, err=str(e))
            raise
        logger.debug("Successfully pushed metrics to Pushgateway", url=url)
