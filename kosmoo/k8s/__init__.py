"""
Kubernetes access - client bootstrap and PersistentVolume correlation.
"""
from kosmoo.k8s.correlator import StorageMetadata, build_index, build_core_v1

__all__ = ["StorageMetadata", "build_index", "build_core_v1"]
