from fastapi import APIRouter, HTTPException, Request
from rentals_lib.accounts.auth import ACCOUNT_CREATE_FAILED_ERROR, DUPLICATE_ACCOUNT_ERROR
from rentals_lib.accounts.models import SignUpPayload, SignInPayload, AuthResult
from rentals_lib.services.resolver import resolve_service
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post('/auth/sign-up', response_model=AuthResult)
async def sign_up(payload: SignUpPayload, request: Request):
    logger.debug("Sign-up request for %s", payload.email)
    auth = resolve_service(request, 'auth_service')
    result = await auth.sign_up(payload.email, payload.password, payload.role)
    if not result.success:
        status = {DUPLICATE_ACCOUNT_ERROR: 409, ACCOUNT_CREATE_FAILED_ERROR: 503}.get(result.error, 400)
        raise HTTPException(status_code=status, detail=result.error)
    return result


@router.post('/auth/sign-in', response_model=AuthResult)
async def sign_in(payload: SignInPayload, request: Request):
    auth = resolve_service(request, 'auth_service')
    result = await auth.sign_in(payload.email, payload.password)
    if not result.success:
        raise HTTPException(status_code=401, detail=result.error)
    return result
