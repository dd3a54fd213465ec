"""Chrome Enterprise Plus delegated-admin check: catalog, aggregation, decision."""

from .aggregator import aggregate_privileges
from .evaluator import AuthorizationResult, CepAdminEvaluator, evaluate_cep_admin, missing_privileges
from .privileges import (
    DEFAULT_CATALOG_PATH,
    CatalogError,
    Privilege,
    PrivilegeCatalog,
    ServiceArea,
    load_privilege_catalog,
)

__all__ = [
    "aggregate_privileges",
    "AuthorizationResult",
    "CepAdminEvaluator",
    "evaluate_cep_admin",
    "missing_privileges",
    "DEFAULT_CATALOG_PATH",
    "CatalogError",
    "Privilege",
    "PrivilegeCatalog",
    "ServiceArea",
    "load_privilege_catalog",
]
