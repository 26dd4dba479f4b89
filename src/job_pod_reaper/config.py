"""
Configuration management for Job Pod Reaper

The configuration is built once at start-up from command line flags, with
environment variables (and an optional ``.env`` file) supplying the defaults,
and is then handed to every component explicitly.
"""

import argparse
import os
from dataclasses import dataclass
from datetime import timedelta
from typing import List, Mapping, Optional, Sequence

from dotenv import load_dotenv

from . import __version__
from .durations import parse_duration
from .exceptions import ConfigError

LIFETIME_ANNOTATION = "pod.kubernetes.io/lifetime"

LOG_LEVELS = ("debug", "info", "warn", "error")
LOG_FORMATS = ("logfmt", "json", "console")
TIMESTAMP_MODES = ("creation", "start")


def split_list(value: Optional[str]) -> List[str]:
    """Split a comma separated setting, dropping blanks"""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


@dataclass
class Config:
    """Configuration class for Job Pod Reaper"""

    # Scheduling
    run_once: bool = False
    reap_interval: str = "60s"

    # Reaping behaviour
    reap_max: int = 30
    reap_evicted_pods: bool = False
    reap_timestamp: str = "creation"
    lifetime_annotation: str = LIFETIME_ANNOTATION
    job_label: str = "job"

    # Selection
    reap_namespaces: str = "all"
    namespace_labels: str = ""
    pods_labels: str = ""

    # Kubernetes configuration
    kubeconfig: Optional[str] = None

    # Metrics
    listen_address: str = ":8080"
    process_metrics: bool = True
    pushgateway_url: Optional[str] = None
    pushgateway_job: str = "job_pod_reaper"

    # Logging configuration
    log_level: str = "info"
    log_format: str = "logfmt"

    @property
    def interval(self) -> timedelta:
        return parse_duration(self.reap_interval)

    @property
    def namespace_selectors(self) -> List[str]:
        return split_list(self.namespace_labels)

    @property
    def pod_selectors(self) -> List[str]:
        """Pod label selectors, each one is its own list call.

        An empty setting still yields a single unfiltered selector so every
        pod in the scanned namespaces is considered.
        """
        return split_list(self.pods_labels) or [""]

    def validate(self) -> "Config":
        if self.log_level.lower() not in LOG_LEVELS:
            raise ConfigError(f"Unrecognized log level {self.log_level!r}, one of: {', '.join(LOG_LEVELS)}")
        if self.log_format.lower() not in LOG_FORMATS:
            raise ConfigError(f"Unrecognized log format {self.log_format!r}, one of: {', '.join(LOG_FORMATS)}")
        if self.reap_timestamp not in TIMESTAMP_MODES:
            raise ConfigError(
                f"Unrecognized reap timestamp {self.reap_timestamp!r}, one of: {', '.join(TIMESTAMP_MODES)}"
            )
        if self.reap_max < 0:
            raise ConfigError(f"reap-max must be zero or positive, got {self.reap_max}")
        if not self.job_label:
            raise ConfigError("job-label must not be empty")
        try:
            interval = self.interval
        except ValueError as e:
            raise ConfigError(f"Invalid reap interval: {e}") from e
        if interval.total_seconds() < 0:
            raise ConfigError(f"reap-interval must not be negative, got {self.reap_interval}")
        return self


def _env_bool(environ: Mapping[str, str], name: str, default: bool) -> bool:
    return environ.get(name, str(default)).lower() == "true"


def _env_int(environ: Mapping[str, str], name: str, default: int) -> int:
    value = environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {value!r}") from e


def build_parser(environ: Mapping[str, str]) -> argparse.ArgumentParser:
    """Command line flags; every flag falls back to its environment variable"""
    defaults = Config()
    parser = argparse.ArgumentParser(
        prog="job-pod-reaper",
        description="Delete pods past their lifetime together with the objects of the same job",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--run-once", action=argparse.BooleanOptionalAction,
        default=_env_bool(environ, "RUN_ONCE", defaults.run_once),
        help="Run once then exit, ie executed with cron",
    )
    parser.add_argument(
        "--reap-max", type=int,
        default=_env_int(environ, "REAP_MAX", defaults.reap_max),
        help="Maximum pods to reap in each run, 0 disables the limit",
    )
    parser.add_argument(
        "--reap-interval",
        default=environ.get("REAP_INTERVAL", defaults.reap_interval),
        help="Duration between reaper runs",
    )
    parser.add_argument(
        "--reap-evicted-pods", action=argparse.BooleanOptionalAction,
        default=_env_bool(environ, "REAP_EVICTED_PODS", defaults.reap_evicted_pods),
        help="Also reap evicted pods regardless of their lifetime",
    )
    parser.add_argument(
        "--reap-timestamp", choices=TIMESTAMP_MODES,
        default=environ.get("REAP_TIMESTAMP", defaults.reap_timestamp),
        help="Pod timestamp the lifetime is measured from",
    )
    parser.add_argument(
        "--reap-namespaces",
        default=environ.get("REAP_NAMESPACES", defaults.reap_namespaces),
        help="Namespaces to reap, ignored if --namespace-labels is set",
    )
    parser.add_argument(
        "--namespace-labels",
        default=environ.get("NAMESPACE_LABELS", defaults.namespace_labels),
        help="Labels to use when filtering namespaces, causes --reap-namespaces to be ignored",
    )
    parser.add_argument(
        "--pods-labels",
        default=environ.get("PODS_LABELS", defaults.pods_labels),
        help="Labels to use when filtering pods",
    )
    parser.add_argument(
        "--job-label",
        default=environ.get("JOB_LABEL", defaults.job_label),
        help="Label to associate pod job with other objects",
    )
    parser.add_argument(
        "--kubeconfig",
        default=environ.get("KUBECONFIG") or defaults.kubeconfig,
        help="Path to kubeconfig when running outside Kubernetes cluster",
    )
    parser.add_argument(
        "--listen-address",
        default=environ.get("LISTEN_ADDRESS", defaults.listen_address),
        help="Address to listen for HTTP metrics requests",
    )
    parser.add_argument(
        "--process-metrics", action=argparse.BooleanOptionalAction,
        default=_env_bool(environ, "PROCESS_METRICS", defaults.process_metrics),
        help="Collect metrics about the running process such as CPU and memory",
    )
    parser.add_argument(
        "--pushgateway-url",
        default=environ.get("PROMETHEUS_PUSHGATEWAY_URL") or defaults.pushgateway_url,
        help="Prometheus Pushgateway to push metrics to after a run-once execution",
    )
    parser.add_argument(
        "--pushgateway-job",
        default=environ.get("PROMETHEUS_JOB_NAME", defaults.pushgateway_job),
        help="Job name used when pushing to the Pushgateway",
    )
    parser.add_argument(
        "--log-level",
        default=environ.get("LOG_LEVEL", defaults.log_level),
        help=f"Log level, one of: {', '.join(LOG_LEVELS)}",
    )
    parser.add_argument(
        "--log-format",
        default=environ.get("LOG_FORMAT", defaults.log_format),
        help=f"Log format, one of: {', '.join(LOG_FORMATS)}",
    )
    return parser


def load_config(argv: Optional[Sequence[str]] = None,
                environ: Optional[Mapping[str, str]] = None) -> Config:
    """Build and validate the configuration for this process"""
    if environ is None:
        load_dotenv()
        environ = os.environ

    args = build_parser(environ).parse_args(argv)
    config = Config(
        run_once=args.run_once,
        reap_interval=args.reap_interval,
        reap_max=args.reap_max,
        reap_evicted_pods=args.reap_evicted_pods,
        reap_timestamp=args.reap_timestamp,
        job_label=args.job_label,
        reap_namespaces=args.reap_namespaces,
        namespace_labels=args.namespace_labels,
        pods_labels=args.pods_labels,
        kubeconfig=args.kubeconfig,
        listen_address=args.listen_address,
        process_metrics=args.process_metrics,
        pushgateway_url=args.pushgateway_url,
        pushgateway_job=args.pushgateway_job,
        log_level=args.log_level,
        log_format=args.log_format,
    )
    return config.validate()
