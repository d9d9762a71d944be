from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from .health import get_health, get_version

router = APIRouter()


# load balancer checks; these paths are in the default pass-through URLs
@router.get('/ping.html', response_class=PlainTextResponse)
async def api_ping():
    return 'pong'


@router.get('/version')
async def api_version():
    return {'version': get_version()}


@router.get('/health')
async def api_health():
    return get_health()
