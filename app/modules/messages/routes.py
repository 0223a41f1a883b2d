import asyncio
import logging
from fastapi import APIRouter, Depends, HTTPException, Query, WebSocket, status
from app.modules.messages.schemas import MessageCreate, MessageResponse, MarkReadResponse, UnreadCountResponse
from app.modules.messages.service import MessageService
from app.modules.messages.hub import message_hub
from app.modules.auth.service import AuthService
from app.core.dependencies import get_current_user_id, get_user_supabase, check_request_participant
from app.database.supabase_client import SupabaseClient, get_supabase
from supabase import Client
from typing import List, Dict

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/requests", tags=["messages"])


def get_message_service(supabase: Client = Depends(get_user_supabase)) -> MessageService:
    return MessageService(supabase)


@router.get("/{request_id}/messages", response_model=List[MessageResponse])
async def list_messages(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    """Conversation history, oldest first"""
    return service.list_messages(request_id, user_data)


@router.post("/{request_id}/messages", response_model=MessageResponse, status_code=201)
async def send_message(
    request_id: str,
    message_data: MessageCreate,
    user_data: Dict = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    """Send a message and push it to live subscribers of the conversation"""
    message = service.send_message(request_id, user_data, message_data)
    message_hub.publish(request_id, message.model_dump(mode="json"))
    return message


@router.post("/{request_id}/messages/read", response_model=MarkReadResponse)
async def mark_messages_read(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    return service.mark_read(request_id, user_data)


@router.get("/{request_id}/messages/unread", response_model=UnreadCountResponse)
async def unread_count(
    request_id: str,
    user_data: Dict = Depends(get_current_user_id),
    service: MessageService = Depends(get_message_service)
):
    return service.unread_count(request_id, user_data)


@router.websocket("/{request_id}/messages/ws")
async def message_stream(
    websocket: WebSocket,
    request_id: str,
    token: str = Query(...),
):
    """
    Live feed of new messages for one request.
    Authenticated with the access token as a query parameter; no replay on reconnect.
    """
    try:
        user_data = AuthService(get_supabase()).get_current_user(token)
        check_request_participant(request_id, user_data, SupabaseClient.for_user(token))
    except HTTPException as e:
        logger.info(f"Rejected message stream for request {request_id}: {e.detail}")
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()
    queue = message_hub.subscribe(request_id)

    async def pump():
        while True:
            message = await queue.get()
            await websocket.send_json(message)

    sender = asyncio.create_task(pump())
    try:
        while True:
            # Inbound frames of any kind are ignored; this only watches for disconnects
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
        logger.debug(f"Message stream for request {request_id} closed by {user_data['id']}")
    finally:
        sender.cancel()
        message_hub.unsubscribe(request_id, queue)
