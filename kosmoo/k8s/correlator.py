"""
Correlation of Cinder volumes with Kubernetes PersistentVolumes.

The index is rebuilt from a full PersistentVolume listing every cycle and
maps the Cinder volume id to the claim and storage metadata of the PV
backed by it. PVs reference their volume either through the legacy in-tree
``cinder`` plugin or through the Cinder CSI driver.
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from kubernetes import client, config

from kosmoo.common.exceptions import ClientConstructionError
from kosmoo.common.logging_config import get_logger

logger = get_logger(__name__)

CINDER_CSI_DRIVER = "cinder.csi.openstack.org"


@dataclass(frozen=True)
class StorageMetadata:
    """Kubernetes metadata attached to a volume's labels; empty when unmatched."""
    pvc_name: str = ""
    pvc_namespace: str = ""
    pv_name: str = ""
    storage_class: str = ""
    reclaim_policy: str = ""
    fs_type: str = ""

    def label_values(self) -> Tuple[str, ...]:
        return (
            self.pvc_name,
            self.pvc_namespace,
            self.pv_name,
            self.storage_class,
            self.reclaim_policy,
            self.fs_type,
        )


EMPTY_METADATA = StorageMetadata()


def build_core_v1(kubeconfig: Optional[str] = None) -> client.CoreV1Api:
    """
    Create a CoreV1Api from a kubeconfig file, or from the in-cluster
    service account when no path is given.

    Raises:
        ClientConstructionError: the configuration cannot be loaded
    """
    try:
        if kubeconfig:
            api_client = config.new_client_from_config(config_file=kubeconfig)
        else:
            configuration = client.Configuration()
            config.load_incluster_config(client_configuration=configuration)
            api_client = client.ApiClient(configuration)
    except config.ConfigException as err:
        raise ClientConstructionError(f"unable to get kubernetes config: {err}") from err
    except Exception as err:
        raise ClientConstructionError(f"error creating kubernetes client: {err}") from err
    return client.CoreV1Api(api_client=api_client)


def _cinder_volume_id(pv: Any) -> Optional[str]:
    spec = pv.spec
    # the in-tree cinder field is gone from newer client models
    cinder = getattr(spec, "cinder", None)
    if cinder is not None:
        return cinder.volume_id
    csi = getattr(spec, "csi", None)
    if csi is not None:
        if csi.driver == CINDER_CSI_DRIVER:
            return csi.volume_handle
        logger.debug(f"ignoring pv {pv.metadata.name}: unimplemented csi-driver {csi.driver}")
        return None
    logger.debug(f"ignoring pv {pv.metadata.name}: unimplemented volume plugin")
    return None


def extract_metadata(pv: Any) -> StorageMetadata:
    """Claim, class, reclaim policy and filesystem of a PersistentVolume."""
    spec = pv.spec
    cinder = getattr(spec, "cinder", None)
    csi = getattr(spec, "csi", None)
    if cinder is not None:
        fs_type = cinder.fs_type
    elif csi is not None:
        fs_type = csi.fs_type
    else:
        fs_type = None

    claim = spec.claim_ref
    return StorageMetadata(
        pvc_name=(claim.name if claim else None) or "",
        pvc_namespace=(claim.namespace if claim else None) or "",
        pv_name=pv.metadata.name or "",
        storage_class=spec.storage_class_name or "",
        reclaim_policy=spec.persistent_volume_reclaim_policy or "",
        fs_type=fs_type or "",
    )


def build_index(core_v1: client.CoreV1Api) -> Dict[str, StorageMetadata]:
    """
    List all PersistentVolumes and index the Cinder-backed ones.

    Returns:
        volume id -> StorageMetadata

    Raises:
        kubernetes.client.rest.ApiException: the listing failed
    """
    pv_list = core_v1.list_persistent_volume()

    index: Dict[str, StorageMetadata] = {}
    for pv in pv_list.items:
        volume_id = _cinder_volume_id(pv)
        if volume_id:
            index[volume_id] = extract_metadata(pv)

    logger.debug(f"Indexed {len(index)} of {len(pv_list.items)} persistent volumes")
    return index

