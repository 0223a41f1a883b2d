from supabase import Client
from app.modules.messages.schemas import MessageCreate, MessageResponse, MarkReadResponse, UnreadCountResponse
from app.core.dependencies import check_request_participant
from typing import List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class MessageService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def send_message(self, request_id: str, user_data: dict, message_data: MessageCreate) -> MessageResponse:
        """Append a message to a request's conversation (participants only)"""
        try:
            check_request_participant(request_id, user_data, self.supabase)
            result = self.supabase.table("messages").insert({
                "skill_request_id": request_id,
                "sender_id": user_data["id"],
                "content": message_data.content,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to send message")

            return MessageResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_messages(self, request_id: str, user_data: dict) -> List[MessageResponse]:
        """Full conversation in commit order"""
        try:
            check_request_participant(request_id, user_data, self.supabase)
            result = self.supabase.table("messages")\
                .select("*")\
                .eq("skill_request_id", request_id)\
                .order("created_at", desc=False)\
                .execute()
            return [MessageResponse(**m) for m in (result.data or [])]
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def mark_read(self, request_id: str, user_data: dict) -> MarkReadResponse:
        """Mark the other participant's messages in this conversation as read"""
        try:
            check_request_participant(request_id, user_data, self.supabase)
            result = self.supabase.table("messages")\
                .update({"is_read": True})\
                .eq("skill_request_id", request_id)\
                .neq("sender_id", user_data["id"])\
                .eq("is_read", False)\
                .execute()
            return MarkReadResponse(skill_request_id=request_id, marked_count=len(result.data or []))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def unread_count(self, request_id: str, user_data: dict) -> UnreadCountResponse:
        try:
            check_request_participant(request_id, user_data, self.supabase)
            result = self.supabase.table("messages")\
                .select("id")\
                .eq("skill_request_id", request_id)\
                .neq("sender_id", user_data["id"])\
                .eq("is_read", False)\
                .execute()
            return UnreadCountResponse(skill_request_id=request_id, unread_count=len(result.data or []))
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
