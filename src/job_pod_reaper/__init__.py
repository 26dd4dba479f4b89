"""
Job Pod Reaper - Kubernetes Job Pod Lifetime Enforcer

A Python application that deletes pods which have outlived their declared
lifetime, along with the services, config maps and secrets of the same job.
"""

__version__ = "1.0.0"
__author__ = "Job Pod Reaper Team"
