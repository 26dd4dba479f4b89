import os
from typing import Callable, Dict, List, Optional

from kubernetes import client, config
from kubernetes.client.rest import ApiException
from kubernetes.config.config_exception import ConfigException

from .exceptions import ClusterError
from .logger import get_logger
from .models import ResourceKind

logger = get_logger(__name__)

# Empty namespace means every namespace, same as the API's own convention
ALL_NAMESPACES = ""


def load_kubernetes_config(kubeconfig_path: Optional[str] = None) -> None:
    """Load credentials from an explicit kubeconfig, in-cluster, or the default location"""
    if kubeconfig_path:
        if not os.path.exists(kubeconfig_path):
            raise ConfigException(f"kubeconfig {kubeconfig_path} does not exist")
        logger.info("Loading kubeconfig", kubeconfig=kubeconfig_path)
        config.load_kube_config(config_file=kubeconfig_path)
        return

    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except ConfigException:
        config.load_kube_config()
        logger.info("Loaded kubeconfig from default location")


class KubernetesClient:
    """The cluster operations the reaper depends on"""

    def __init__(self, kubeconfig_path: Optional[str] = None, v1: Optional[client.CoreV1Api] = None):
        if v1 is None:
            try:
                load_kubernetes_config(kubeconfig_path)
            except ConfigException as e:
                logger.error("Error loading kubeconfig", kubeconfig=kubeconfig_path, err=str(e))
                raise
            v1 = client.CoreV1Api()
        self.v1 = v1

        self._deleters: Dict[ResourceKind, Callable] = {
            ResourceKind.POD: self.v1.delete_namespaced_pod,
            ResourceKind.SERVICE: self.v1.delete_namespaced_service,
            ResourceKind.CONFIG_MAP: self.v1.delete_namespaced_config_map,
            ResourceKind.SECRET: self.v1.delete_namespaced_secret,
        }

    def list_namespaces(self, label_selector: str = "") -> List[str]:
        """Names of the namespaces matching a label selector"""
        try:
            namespaces = self.v1.list_namespace(label_selector=label_selector)
        except ApiException as e:
            raise ClusterError("list namespaces", label_selector=label_selector, cause=e) from e
        return [ns.metadata.name for ns in namespaces.items]

    def list_pods(self, namespace: str, label_selector: str = "") -> list:
        try:
            if namespace == ALL_NAMESPACES:
                pods = self.v1.list_pod_for_all_namespaces(label_selector=label_selector)
            else:
                pods = self.v1.list_namespaced_pod(namespace, label_selector=label_selector)
        except ApiException as e:
            raise ClusterError("list pods", namespace=namespace, label_selector=label_selector, cause=e) from e
        return pods.items

    def list_services(self, namespace: str, label_selector: str = "") -> list:
        try:
            return self.v1.list_namespaced_service(namespace, label_selector=label_selector).items
        except ApiException as e:
            raise ClusterError("list services", namespace=namespace, label_selector=label_selector, cause=e) from e

    def list_config_maps(self, namespace: str, label_selector: str = "") -> list:
        try:
            return self.v1.list_namespaced_config_map(namespace, label_selector=label_selector).items
        except ApiException as e:
            raise ClusterError("list config maps", namespace=namespace, label_selector=label_selector, cause=e) from e

    def list_secrets(self, namespace: str, label_selector: str = "") -> list:
        try:
            return self.v1.list_namespaced_secret(namespace, label_selector=label_selector).items
        except ApiException as e:
            raise ClusterError("list secrets", namespace=namespace, label_selector=label_selector, cause=e) from e

    def delete(self, kind: ResourceKind, namespace: str, name: str) -> None:
        """Delete one object, ApiException propagates to the caller"""
        self._deleters[kind](name=name, namespace=namespace, body=client.V1DeleteOptions())

    def test_connection(self) -> bool:
        """Test Kubernetes connection"""
        try:
            self.v1.get_api_resources()
            return True
        except Exception:
            return False
