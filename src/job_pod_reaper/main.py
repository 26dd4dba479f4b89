#!/usr/bin/env python3
"""
Job Pod Reaper - Main Application
"""

import sys
import time
from typing import Callable, Optional, Sequence

import requests
from kubernetes.config.config_exception import ConfigException

from . import __version__
from .config import Config, load_config
from .durations import format_seconds
from .exceptions import ConfigError, ReaperError
from .kubernetes_client import KubernetesClient
from .logger import get_logger, setup_logging
from .metrics import ReaperMetrics
from .pod_reaper import PodReaper

logger = get_logger("main")


def run_loop(reaper: PodReaper, config: Config, metrics: ReaperMetrics,
             sleep: Callable[[float], None] = time.sleep) -> int:
    """Run reap cycles until stopped; in run-once mode return the exit status"""
    interval = config.interval
    cycle_count = 0
    while True:
        cycle_count += 1
        logger.debug("Starting reap cycle", cycle=cycle_count)
        try:
            errored = not reaper.run_reap().ok
        except ReaperError as e:
            logger.error("Reap run failed", err=str(e))
            errored = True
        except Exception:
            logger.exception("Unexpected error during reap run")
            errored = True

        if config.run_once:
            if config.pushgateway_url:
                try:
                    metrics.push(config.pushgateway_url, config.pushgateway_job)
                except requests.RequestException:
                    errored = True
            return 1 if errored else 0

        logger.debug("Sleeping for interval", interval=format_seconds(interval))
        sleep(interval.total_seconds())


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main application entry point"""
    try:
        config = load_config(argv)
    except ConfigError as e:
        setup_logging(Config())
        logger.error("Invalid configuration", err=str(e))
        return 1

    setup_logging(config)
    logger.info("Starting job-pod-reaper", version=__version__)

    try:
        cluster = KubernetesClient(config.kubeconfig)
    except ConfigException as e:
        logger.error("Unable to create Kubernetes client", err=str(e))
        return 1
    if not cluster.test_connection():
        logger.warning("Kubernetes connection test failed, continuing")

    metrics = ReaperMetrics(process_metrics=config.process_metrics)
    try:
        metrics.serve(config.listen_address)
    except (OSError, ValueError) as e:
        logger.error("Error starting HTTP server", address=config.listen_address, err=str(e))
        return 1

    reaper = PodReaper(cluster, config, metrics)
    try:
        return run_loop(reaper, config, metrics)
    except KeyboardInterrupt:
        logger.info("Received interrupt signal, shutting down...")
        return 0


if __name__ == "__main__":
    sys.exit(main())
