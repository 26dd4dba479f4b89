"""
Exceptions raised by Job Pod Reaper
"""

from typing import Optional


class ReaperError(Exception):
    """Base class for all reaper errors"""


class ConfigError(ReaperError):
    """Invalid configuration value"""


class ClusterError(ReaperError):
    """A list call against the cluster failed, the current run must abort"""

    def __init__(self, operation: str, namespace: Optional[str] = None,
                 label_selector: Optional[str] = None, cause: Optional[Exception] = None):
        self.operation = operation
        self.namespace = namespace
        self.label_selector = label_selector
        self.cause = cause

        message = f"{operation} failed"
        if namespace:
            message += f" in namespace {namespace}"
        if label_selector:
            message += f" with selector {label_selector!r}"
        if cause is not None:
            message += f": {cause}"
        super().__init__(message)
