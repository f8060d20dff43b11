import logging

from fastapi import HTTPException, Request

from services.fanout import Mailer
from services.storage import StorageGateway

logger = logging.getLogger('uvicorn.error')


async def get_storage(request: Request) -> StorageGateway:
    if not getattr(request.app.state, 'storage', None):
        logger.error("Storage gateway not initialized or unavailable.")
        raise HTTPException(status_code=503, detail="Database service unavailable")
    return request.app.state.storage


async def get_mailer(request: Request) -> Mailer:
    if not getattr(request.app.state, 'mailer', None):
        logger.error("Mail gateway not initialized or unavailable.")
        raise HTTPException(status_code=503, detail="Mail service unavailable")
    return request.app.state.mailer
