"""
Chat API Router
Medication Q&A assistant
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

import models
from api.deps import get_db, get_current_user
from api.schemas.chat import ChatRequest, ChatResponse
from services.llm_service import llm_service


router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse)
async def chat(
    request: ChatRequest,
    user: models.User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Ask the assistant about the caller's medications

    The caller's medication list is added to the system prompt.
    """
    reply = await llm_service.chat_about_medications(user, request.message, db)
    return ChatResponse(reply=reply)
