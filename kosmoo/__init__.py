"""
kosmoo - exports OpenStack resource state, correlated with Kubernetes
PersistentVolumes, as Prometheus gauges.
"""
__version__ = "1.0.0"
