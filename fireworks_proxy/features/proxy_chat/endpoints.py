from fastapi import APIRouter, Depends, Request
from fastapi.responses import Response
from .handler import ProxyChatHandler

router = APIRouter()

# Methods routed to the chat handler.
PROXY_METHODS = ["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"]


@router.api_route("/{path:path}", methods=PROXY_METHODS, response_model=None)
async def proxy_chat(
    request: Request,
    handler: ProxyChatHandler = Depends(ProxyChatHandler)
) -> Response:
    return await handler.handle(request)
