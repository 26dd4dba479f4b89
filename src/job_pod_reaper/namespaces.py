"""
Resolve which namespaces a run scans
"""

from typing import List

from .config import Config, split_list
from .kubernetes_client import ALL_NAMESPACES
from .logger import get_logger

logger = get_logger(__name__)


def resolve_namespaces(cluster, config: Config) -> List[str]:
    """Turn the namespace settings into an ordered list of namespace names.

    Namespace label selectors, when given, take precedence over the explicit
    namespace list. Each selector is looked up separately and the results are
    merged in first-seen order. A failed lookup raises ``ClusterError``.

    A namespace list of just ``all`` yields ``[ALL_NAMESPACES]``.
    """
    selectors = config.namespace_selectors
    if selectors:
        namespaces: List[str] = []
        seen = set()
        for selector in selectors:
            logger.debug("Getting namespaces with label", label=selector)
            found = cluster.list_namespaces(selector)
            logger.debug("Namespaces returned", label=selector, count=len(found))
            for name in found:
                if name not in seen:
                    seen.add(name)
                    namespaces.append(name)
        return namespaces

    namespaces = split_list(config.reap_namespaces)
    if len(namespaces) == 1 and namespaces[0].lower() == "all":
        return [ALL_NAMESPACES]
    return namespaces
