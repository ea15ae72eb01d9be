"""
Chat Schemas
"""

from typing import Optional

from api.schemas import CamelModel


class ChatRequest(CamelModel):
    # Optional so an empty body reaches the service and gets the domain message
    message: Optional[str] = None


class ChatResponse(CamelModel):
    reply: str
