"""
LLM Service
Medication-aware chat assistant backed by an OpenAI-compatible chat completions API
"""

import asyncio
import logging
from typing import Dict, List, Optional, Any

import requests
from sqlalchemy.orm import Session

import models
from config import settings
from exceptions import ValidationError, ServiceUnavailableError
from services.medication_service import medication_service


logger = logging.getLogger(__name__)


ASSISTANT_PROMPT = """You are MedAssist, an AI assistant integrated into a medication adherence tracker.
Your job is to assist patients with simple, conversational explanations about their medications.

PATIENT MEDICATION LIST:
-------------------------
{medication_context}
-------------------------

RULES:
- Speak in clear, simple language.
- You MAY explain what a medication is generally used for.
- You MAY list common non-emergency side effects.
- You MUST NOT recommend dosage changes.
- You MUST NOT give emergency medical advice.
- If unsure, politely tell the patient to consult their provider.
- If asked about "when to take", use the frequency information.
- If asked about schedules, reference the provided schedule.
- Keep answers friendly and supportive.
"""

NO_MEDICATIONS = "This patient currently has no recorded medications."


def format_medication_context(medications: List[models.Medication]) -> str:
    """Render medications as a bullet list for the system prompt"""
    if not medications:
        return NO_MEDICATIONS

    blocks = []
    for med in medications:
        schedule = "; ".join(
            f"{entry.get('time')} on {', '.join(entry.get('days', []))}"
            for entry in (med.schedule or [])
        ) or "N/A"
        blocks.append(
            f"• {med.name}\n"
            f"  - Dosage: {med.dosage}\n"
            f"  - Frequency: {med.frequency.value if med.frequency else 'N/A'}\n"
            f"  - Schedule: {schedule}\n"
            f"  - Start: {med.start_date.isoformat() if med.start_date else 'N/A'}\n"
            f"  - End: {med.end_date.isoformat() if med.end_date else 'N/A'}\n"
            f"  - Instructions: {med.instructions or 'None'}"
        )
    return "\n".join(blocks)


class LLMService:
    """
    Service for interacting with the chat completions endpoint
    """

    def __init__(self):
        self.model_name = settings.LLM_MODEL
        self.temperature = settings.LLM_TEMPERATURE
        self.max_tokens = settings.LLM_MAX_TOKENS

        # Usage tracking
        self._total_tokens_used = 0
        self._request_count = 0

    @property
    def configured(self) -> bool:
        return bool(settings.LLM_API_KEY)

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> str:
        """
        Generate a response from the LLM

        Args:
            prompt: User prompt/message
            system_prompt: System instructions
            temperature: Sampling temperature (0-1)
            max_tokens: Maximum response tokens

        Returns:
            Generated text response
        """
        if not self.configured:
            raise ServiceUnavailableError("Chat assistant is not configured")

        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        payload = {
            "model": self.model_name,
            "messages": messages,
            "temperature": temperature if temperature is not None else self.temperature,
            "max_tokens": max_tokens if max_tokens is not None else self.max_tokens,
        }
        headers = {
            "Authorization": f"Bearer {settings.LLM_API_KEY}",
            "Content-Type": "application/json",
        }

        loop = asyncio.get_running_loop()
        try:
            resp = await loop.run_in_executor(
                None,
                lambda: requests.post(
                    f"{settings.LLM_BASE_URL}/chat/completions",
                    headers=headers,
                    json=payload,
                    timeout=settings.LLM_TIMEOUT_SECONDS,
                ),
            )
        except requests.RequestException as e:
            logger.error("LLM request failed: %s", e)
            raise ServiceUnavailableError("Internal chatbot error. Please try again.", error=str(e))

        if resp.status_code != 200:
            logger.error("LLM API error %s: %s", resp.status_code, resp.text)
            raise ServiceUnavailableError("Internal chatbot error. Please try again.")

        data = resp.json()
        choices = data.get("choices") or []
        if not choices:
            return ""

        usage = data.get("usage") or {}
        self._total_tokens_used += usage.get("total_tokens", 0)
        self._request_count += 1

        return choices[0].get("message", {}).get("content", "")

    async def chat_about_medications(
        self,
        user: models.User,
        message: Optional[str],
        db: Session
    ) -> str:
        """Answer a patient's question with their medication list as context"""
        if not message or not message.strip():
            raise ValidationError("Message is required")

        medications = await medication_service.get_patient_medications(user.id, db, active_only=False)
        logger.info(f"Chat request from user {user.id} with {len(medications)} medications in context")

        system_prompt = ASSISTANT_PROMPT.format(
            medication_context=format_medication_context(medications)
        )
        return await self.generate(message.strip(), system_prompt=system_prompt)

    def get_usage_stats(self) -> Dict[str, Any]:
        """Get usage statistics"""
        return {
            "model": self.model_name,
            "total_tokens": self._total_tokens_used,
            "request_count": self._request_count,
        }


# Singleton instance
llm_service = LLMService()
