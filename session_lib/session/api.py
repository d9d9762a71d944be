from fastapi import APIRouter, HTTPException, Request
from pydantic import BaseModel
from typing import Optional
import logging

from session_lib.services.resolver import resolve_service
from session_lib.session.errors import AuthenticatorRejected, InvalidCredentialsInput, NotLoggedIn
from session_lib.storage.errors import StoreError

logger = logging.getLogger(__name__)
router = APIRouter()


class CredentialsPayload(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


@router.get('/1.0/CheckSession')
async def api_check_session(request: Request):
    mgr = resolve_service(request, 'session_manager')
    return mgr.check_session(request)


@router.get('/1.0/Deauthenticate')
async def api_deauthenticate(request: Request):
    mgr = resolve_service(request, 'session_manager')
    await mgr.de_authenticate_user(request)
    return {'Success': True}


@router.get('/1.0/CheckoutSessionToken')
async def api_checkout_session_token(request: Request):
    mgr = resolve_service(request, 'session_manager')
    try:
        token = await mgr.checkout_session_token(request)
    except NotLoggedIn as e:
        return {'Error': str(e)}
    except StoreError as e:
        logger.error('Session token checkout failed: %s', e)
        return {'Error': 'Session store unavailable'}
    return {'Token': token}


@router.post('/1.0/Authenticate')
async def api_authenticate(payload: CredentialsPayload, request: Request):
    mgr = resolve_service(request, 'session_manager')
    try:
        record = await mgr.authenticate_user(request, credentials=payload)
    except (InvalidCredentialsInput, AuthenticatorRejected) as e:
        raise HTTPException(status_code=401, detail={'Error': str(e)})
    return record.to_dict()
