from __future__ import annotations

from fastapi import APIRouter, Depends

from app.cep import CepAdminEvaluator, PrivilegeCatalog
from app.google_auth import CallerIdentity
from app.schemas.roles import CatalogPrivilegeOut, ErrorOut, PrivilegeCatalogOut, UserRolesOut
from app.security.dependencies import get_caller_identity, get_evaluator, get_privilege_catalog

router = APIRouter(tags=["roles"])


@router.post(
    "/getRoles",
    response_model=UserRolesOut,
    response_model_exclude_none=True,
    responses={401: {"model": ErrorOut}, 500: {"model": ErrorOut}},
)
def get_roles(
    caller: CallerIdentity = Depends(get_caller_identity),
    evaluator: CepAdminEvaluator = Depends(get_evaluator),
) -> dict[str, object]:
    # Request body (callable clients send {"data": null}) carries nothing we use.
    return evaluator.evaluate(caller.email).to_dict()


@router.get("/privileges", response_model=PrivilegeCatalogOut)
def list_required_privileges(catalog: PrivilegeCatalog = Depends(get_privilege_catalog)) -> PrivilegeCatalogOut:
    items: list[CatalogPrivilegeOut] = []
    for privilege in catalog:
        service = catalog.service_for(privilege)
        items.append(
            CatalogPrivilegeOut(
                privilegeName=privilege.privilege_name,
                serviceId=privilege.service_id,
                serviceName=service.name if service else None,
                description=catalog.descriptions.get(privilege),
            )
        )
    return PrivilegeCatalogOut(privileges=items)
