"""Chat endpoint: route GitHub messages through the tool pipeline."""

from typing import Any

from fastapi import APIRouter, Depends

from ...core.logging_config import get_logger
from ..schemas.chat import ChatReply, ChatRequest, ChatResponse
from ..services.chat_handler import GitHubChatHandler, is_github_request
from .deps import get_chat_handler

router = APIRouter(prefix="/chat", tags=["chat"])
logger = get_logger(__name__)


class CollectingReplyContext:
    """Buffer replies so they can be returned in one HTTP response."""

    def __init__(self) -> None:
        self.replies: list[ChatReply] = []

    async def send_text(self, text: str) -> None:
        self.replies.append(ChatReply(type="text", text=text))

    async def send_card(self, card: dict[str, Any]) -> None:
        self.replies.append(ChatReply(type="card", card=card))


@router.post("/", response_model=ChatResponse)
async def post_message(
    request: ChatRequest,
    handler: GitHubChatHandler = Depends(get_chat_handler),
) -> ChatResponse:
    if not is_github_request(request.message):
        logger.info("chat_message_ignored", user_id=request.user_id)
        return ChatResponse(handled=False)

    reply = CollectingReplyContext()
    await handler.handle(request.user_id, request.message, reply)
    logger.info(
        "chat_request_completed",
        user_id=request.user_id,
        replies=len(reply.replies),
    )
    return ChatResponse(handled=True, replies=reply.replies)
