"""
Immutable per-cycle snapshots of OpenStack resources.

Each entity is built with ``from_resource`` from the plain mapping the
``OpenStackClient`` returns. Missing optional attributes become empty
strings / zero; a record that is not a mapping or lacks its id raises.
"""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple


def parse_timestamp(value: Any) -> float:
    """
    Convert an OpenStack timestamp to unix seconds.

    OpenStack returns ISO 8601 strings, with or without fractional seconds
    and with or without a zone; naive values are UTC. None and "" map to 0.
    """
    if value is None or value == "":
        return 0.0
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.timestamp()


def _text(data: Mapping[str, Any], key: str) -> str:
    value = data.get(key)
    return "" if value is None else str(value)


def _required(data: Mapping[str, Any], key: str = "id") -> str:
    if not isinstance(data, Mapping):
        raise TypeError(f"expected a mapping, got {type(data).__name__}")
    value = data.get(key)
    if not value:
        raise KeyError(f"resource without {key!r}")
    return str(value)


def _ids(items: Any) -> Tuple[str, ...]:
    """Extract ids from a list of ``{"id": ...}`` references (or bare ids)."""
    result = []
    for item in items or ():
        if isinstance(item, Mapping):
            result.append(_required(item))
        else:
            result.append(str(item))
    return tuple(result)


# ---------------------------------------------------------------------------
# Block storage
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class VolumeAttachment:
    server_id: str
    device: str
    hostname: str
    attached_at: float

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "VolumeAttachment":
        return cls(
            server_id=_text(data, "server_id"),
            device=_text(data, "device"),
            hostname=_text(data, "host_name"),
            attached_at=parse_timestamp(data.get("attached_at")),
        )


@dataclass(frozen=True)
class Volume:
    id: str
    name: str
    description: str
    status: str
    availability_zone: str
    volume_type: str
    size: float
    created_at: float
    updated_at: float
    attachments: Tuple[VolumeAttachment, ...] = field(default=())

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "Volume":
        return cls(
            id=_required(data),
            name=_text(data, "name"),
            description=_text(data, "description"),
            status=_text(data, "status"),
            availability_zone=_text(data, "availability_zone"),
            volume_type=_text(data, "volume_type"),
            size=float(data.get("size") or 0),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
            attachments=tuple(
                VolumeAttachment.from_resource(a) for a in data.get("attachments") or ()
            ),
        )


@dataclass(frozen=True)
class QuotaUsage:
    """Usage figures of one quota resource, passed through as reported."""
    in_use: float
    reserved: float
    limit: float
    allocated: Optional[float] = None

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "QuotaUsage":
        allocated = data.get("allocated")
        return cls(
            in_use=float(data["in_use"]),
            reserved=float(data["reserved"]),
            limit=float(data["limit"]),
            allocated=None if allocated is None else float(allocated),
        )

    def by_kind(self, allocated: bool = False) -> Tuple[Tuple[str, float], ...]:
        """
        (quota_type label, value) pairs for every figure present.

        With *allocated* the allocated figure is always included, 0 when the
        response omitted it.
        """
        kinds = [("in-use", self.in_use), ("reserved", self.reserved), ("limit", self.limit)]
        if allocated or self.allocated is not None:
            kinds.append(("allocated", self.allocated or 0.0))
        return tuple(kinds)


# ---------------------------------------------------------------------------
# Networking
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class FloatingIP:
    id: str
    floating_ip: str
    fixed_ip: str
    port_id: str
    status: str
    created_at: float
    updated_at: float

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "FloatingIP":
        return cls(
            id=_required(data),
            floating_ip=_text(data, "floating_ip_address"),
            fixed_ip=_text(data, "fixed_ip_address"),
            port_id=_text(data, "port_id"),
            status=_text(data, "status"),
            created_at=parse_timestamp(data.get("created_at")),
            updated_at=parse_timestamp(data.get("updated_at")),
        )


@dataclass(frozen=True)
class FirewallV1:
    id: str
    name: str
    description: str
    policy_id: str
    project_id: str
    status: str
    admin_state_up: bool

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "FirewallV1":
        return cls(
            id=_required(data),
            name=_text(data, "name"),
            description=_text(data, "description"),
            policy_id=_text(data, "firewall_policy_id"),
            project_id=_text(data, "project_id") or _text(data, "tenant_id"),
            status=_text(data, "status"),
            admin_state_up=bool(data.get("admin_state_up")),
        )


@dataclass(frozen=True)
class FirewallGroupV2:
    id: str
    name: str
    description: str
    ingress_policy_id: str
    egress_policy_id: str
    project_id: str
    status: str
    admin_state_up: bool

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "FirewallGroupV2":
        return cls(
            id=_required(data),
            name=_text(data, "name"),
            description=_text(data, "description"),
            ingress_policy_id=_text(data, "ingress_firewall_policy_id"),
            egress_policy_id=_text(data, "egress_firewall_policy_id"),
            project_id=_text(data, "project_id") or _text(data, "tenant_id"),
            status=_text(data, "status"),
            admin_state_up=bool(data.get("admin_state_up")),
        )


# ---------------------------------------------------------------------------
# Load balancing
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LoadBalancer:
    id: str
    name: str
    vip_address: str
    provider: str
    vip_port_id: str
    provisioning_status: str
    admin_state_up: bool
    pool_ids: Tuple[str, ...] = field(default=())

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "LoadBalancer":
        admin_state_up = data.get("is_admin_state_up", data.get("admin_state_up"))
        return cls(
            id=_required(data),
            name=_text(data, "name"),
            vip_address=_text(data, "vip_address"),
            provider=_text(data, "provider"),
            vip_port_id=_text(data, "vip_port_id"),
            provisioning_status=_text(data, "provisioning_status"),
            admin_state_up=bool(admin_state_up),
            pool_ids=_ids(data.get("pools")),
        )


@dataclass(frozen=True)
class Pool:
    id: str
    name: str
    provisioning_status: str
    member_ids: Tuple[str, ...] = field(default=())

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "Pool":
        return cls(
            id=_required(data),
            name=_text(data, "name"),
            provisioning_status=_text(data, "provisioning_status"),
            member_ids=_ids(data.get("members")),
        )


@dataclass(frozen=True)
class PoolMember:
    id: str
    name: str
    provisioning_status: str

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "PoolMember":
        return cls(
            id=_required(data),
            name=_text(data, "name"),
            provisioning_status=_text(data, "provisioning_status"),
        )


# ---------------------------------------------------------------------------
# Compute
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class Server:
    id: str
    name: str
    status: str
    attached_volume_ids: Tuple[str, ...] = field(default=())

    @classmethod
    def from_resource(cls, data: Mapping[str, Any]) -> "Server":
        volumes = data.get("attached_volumes")
        if volumes is None:
            volumes = data.get("os-extended-volumes:volumes_attached")
        return cls(
            id=_required(data),
            name=_text(data, "name"),
            status=_text(data, "status"),
            attached_volume_ids=_ids(volumes),
        )
