"""
Privilege type and the required-privilege catalog.

The catalog is a YAML file shipped inside this package. It is loaded and
validated once at startup (``load_privilege_catalog``) and the resulting
``PrivilegeCatalog`` is immutable for the life of the process. Its location is
fixed; it is not a deployment setting.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from pathlib import Path
from typing import Iterator, Mapping

import yaml

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_PATH = Path(__file__).with_name("cep_admin_privileges.yaml")


# ---- Data structures -----------------------------------------------------------------


@dataclass(frozen=True)
class Privilege:
    """A named capability scoped to a service; identity is the (name, service id) pair."""

    privilege_name: str
    service_id: str

    def to_dict(self) -> dict[str, str]:
        return {"privilegeName": self.privilege_name, "serviceId": self.service_id}


@dataclass(frozen=True)
class ServiceArea:
    """Human-readable description of a directory service id."""

    key: str
    id: str
    name: str
    description: str | None = None


@dataclass(frozen=True)
class PrivilegeCatalog:
    """Ordered, duplicate-free list of required privileges."""

    privileges: tuple[Privilege, ...]
    services: Mapping[str, ServiceArea]
    descriptions: Mapping[Privilege, str]

    def __iter__(self) -> Iterator[Privilege]:
        return iter(self.privileges)

    def __len__(self) -> int:
        return len(self.privileges)

    def __contains__(self, item: object) -> bool:
        return item in self.privileges

    def service_for(self, privilege: Privilege) -> ServiceArea | None:
        for service in self.services.values():
            if service.id == privilege.service_id:
                return service
        return None


# ---- Loader --------------------------------------------------------------------------


class CatalogError(ValueError):
    """Raised when the privilege catalog YAML is invalid."""


def _require_str(value: object, what: str) -> str:
    text = str(value).strip() if value is not None else ""
    if not text:
        raise CatalogError(f"{what} must be a non-empty string")
    return text


def load_privilege_catalog(path: Path = DEFAULT_CATALOG_PATH) -> PrivilegeCatalog:
    """
    Load and validate the catalog YAML.

    Expected shape:

        services:
          ORG_UNITS:
            id: 00haapch16h1ysv
            name: Organizational Units
        privileges:
          - privilegeName: ORGANIZATION_UNITS_RETRIEVE
            service: ORG_UNITS

    A privilege may name its service by key (``service``) or give the raw
    ``serviceId``.
    """

    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise CatalogError("catalog must be a mapping")

    services_raw = raw.get("services") or {}
    privileges_raw = raw.get("privileges") or []

    if not isinstance(services_raw, dict):
        raise CatalogError("services must be a mapping")
    if not isinstance(privileges_raw, list):
        raise CatalogError("privileges must be a list")

    services: dict[str, ServiceArea] = {}
    for key, val in services_raw.items():
        if not isinstance(val, dict):
            raise CatalogError(f"service {key!r} must be a mapping")
        description = val.get("description")
        services[str(key)] = ServiceArea(
            key=str(key),
            id=_require_str(val.get("id"), f"service {key!r}.id"),
            name=_require_str(val.get("name"), f"service {key!r}.name"),
            description=str(description) if description is not None else None,
        )

    privileges: list[Privilege] = []
    descriptions: dict[Privilege, str] = {}
    for entry in privileges_raw:
        if not isinstance(entry, dict):
            raise CatalogError("privileges entries must be mappings")
        name = _require_str(entry.get("privilegeName"), "privilegeName")

        service_key = entry.get("service")
        if service_key is not None:
            service = services.get(str(service_key))
            if service is None:
                raise CatalogError(f"privilege {name!r} references unknown service {service_key!r}")
            service_id = service.id
        else:
            service_id = _require_str(entry.get("serviceId"), f"privilege {name!r}.serviceId")

        privilege = Privilege(privilege_name=name, service_id=service_id)
        if privilege in privileges:
            raise CatalogError(f"duplicate privilege {name!r} for service {service_id!r}")
        privileges.append(privilege)
        if entry.get("description"):
            descriptions[privilege] = str(entry["description"])

    if not privileges:
        raise CatalogError("catalog must list at least one privilege")

    logger.debug("Loaded %d required privileges from %s", len(privileges), path)
    return PrivilegeCatalog(
        privileges=tuple(privileges),
        services=services,
        descriptions=descriptions,
    )
