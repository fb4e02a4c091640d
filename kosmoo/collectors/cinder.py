"""
Cinder (block storage) collector.

Publishes per-volume gauges enriched with the Kubernetes PersistentVolume
that is backed by the volume, plus the volume quota usage of the project.
"""
from typing import Dict, List

from kosmoo.collectors.base import ResourceCollector
from kosmoo.common.exceptions import CorrelationError
from kosmoo.common.logging_config import get_logger
from kosmoo.k8s.correlator import EMPTY_METADATA, StorageMetadata, build_index
from kosmoo.openstack.entities import Volume

logger = get_logger(__name__)

# possible cinder states, from cinder/objects/fields.py (VolumeStatus)
CINDER_STATES = (
    "creating", "available", "deleting", "error", "error-deleting",
    "error-managing", "managing", "attaching", "in-use", "detaching",
    "maintenance", "restoring-backup", "error-restoring", "reserved",
    "awaiting-transfer", "backing-up", "error-backing-up", "error-extending",
    "downloading", "uploading", "retyping", "extending",
)

# quota_set resource -> gauge family
CINDER_QUOTAS = (
    ("volumes", "cinder_quota_volume_disks"),
    ("gigabytes", "cinder_quota_volume_disk_gigabytes"),
)


class CinderCollector(ResourceCollector):
    domain = "cinder"
    request = "volume_list"
    families = (
        "cinder_volume_created_at",
        "cinder_volume_updated_at",
        "cinder_volume_status",
        "cinder_volume_size",
        "cinder_volume_attached_at",
    )
    states = CINDER_STATES
    entity = Volume

    def __init__(self, metrics, instrumentation, index_builder=build_index):
        super().__init__(metrics, instrumentation)
        self.index_builder = index_builder
        self._index: Dict[str, StorageMetadata] = {}

    def prepare(self, client, platform) -> None:
        self._index = {}
        if platform is None:
            return
        try:
            self._index = self.index_builder(platform)
        except Exception as e:
            logger.warning(f"Unable to list persistent volumes: {e}", extra={"domain": self.domain})
            raise CorrelationError(self.domain, f"unable to list pvs: {e}") from e

    def fetch(self, client) -> List[dict]:
        return client.list_volumes()

    def metadata_for(self, volume_id: str) -> StorageMetadata:
        return self._index.get(volume_id, EMPTY_METADATA)

    def publish(self, volume: Volume, client) -> None:
        k8s = list(self.metadata_for(volume.id).label_values())
        head = [volume.id, volume.description, volume.name]
        tail = [volume.availability_zone, volume.volume_type] + k8s
        labels = head + [volume.status] + tail

        self.metrics.set("cinder_volume_created_at", labels, volume.created_at)
        self.metrics.set("cinder_volume_updated_at", labels, volume.updated_at)
        self.metrics.set("cinder_volume_size", labels, volume.size)

        if not volume.attachments:
            self.metrics.set("cinder_volume_attached_at", labels + ["", "", ""], 0)
        for attachment in volume.attachments:
            self.metrics.set(
                "cinder_volume_attached_at",
                labels + [attachment.server_id, attachment.device, attachment.hostname],
                attachment.attached_at,
            )

        self.publish_one_hot("cinder_volume_status", head, volume.status, suffix=tail)

    def publish_quotas(self, client) -> None:
        quota_set = self.fetch_quota("volume_quota_get", client.get_volume_quota_usage)
        self.publish_quota_set(quota_set, CINDER_QUOTAS, allocated=True)
