from __future__ import annotations

from fastapi import Depends, Request

from app.cep import CepAdminEvaluator, PrivilegeCatalog
from app.google_auth import CallerIdentity, FirebaseTokenValidator
from app.security.auth import authenticate, extract_bearer_token


def _state(request: Request, name: str):
    value = getattr(request.app.state, name, None)
    if value is None:
        raise RuntimeError(f"{name} not initialised. Did app startup run?")
    return value


def get_privilege_catalog(request: Request) -> PrivilegeCatalog:
    return _state(request, "privilege_catalog")


def get_token_validator(request: Request) -> FirebaseTokenValidator:
    return _state(request, "token_validator")


def get_evaluator(request: Request) -> CepAdminEvaluator:
    return _state(request, "evaluator")


def get_caller_identity(
    request: Request,
    validator: FirebaseTokenValidator = Depends(get_token_validator),
) -> CallerIdentity:
    """
    Authenticate the request before any role check runs.

    The evaluator itself only ever sees the verified email.
    """

    token = extract_bearer_token(request)
    identity = authenticate(token, validator)
    request.state.caller = identity
    return identity
