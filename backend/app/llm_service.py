"""
OpenAI service for conversational prose.

The deterministic planner decides the flow; this service only rewords the
planner's next question into a warmer advisor reply, using the master
prompt built from the session state.

RESILIENCE DESIGN:
- NEVER raises: any provider error or empty output returns None
- Callers fall back to the deterministic question text on None
- The final itinerary is never sent to the model

Python 3.9 compatible - uses typing.Optional
"""

import logging
import os
from typing import Optional

from openai import AsyncOpenAI

from engine import ConversationState, build_master_prompt

logger = logging.getLogger(__name__)

# Maximum chars to log from a model reply on error
MAX_ERROR_LOG_CHARS = 2000

SYSTEM_MESSAGE = (
    "Tu es un conseiller voyage pour le Sénégal. "
    "Réponds uniquement avec du texte conversationnel, jamais de JSON ni de code."
)


class TripAdvisorLLM:
    """Wraps AsyncOpenAI for advisor replies.

    GUARANTEE: generate_reply() NEVER raises exceptions from the provider.
    """

    def __init__(self, api_key: Optional[str] = None, model: Optional[str] = None):
        api_key = api_key or os.getenv("OPENAI_API_KEY")
        if not api_key:
            raise RuntimeError("OPENAI_API_KEY is required")

        self.client = AsyncOpenAI(api_key=api_key)
        self.model = model or os.getenv("OPENAI_MODEL", "gpt-4o-mini")
        logger.info(f"OpenAI service configured with model: {self.model}")

    async def generate_reply(
        self,
        user_message: str,
        state: ConversationState,
        session_id: str = "unknown",
    ) -> Optional[str]:
        """
        Ask the model for the advisor's reply to this turn.

        Args:
            user_message: Raw user message
            state: Session state after this turn
            session_id: For log correlation

        Returns:
            Reply text, or None if the model failed or returned nothing
        """
        prompt = build_master_prompt(user_message, state)

        try:
            response = await self.client.chat.completions.create(
                model=self.model,
                messages=[
                    {"role": "system", "content": SYSTEM_MESSAGE},
                    {"role": "user", "content": prompt},
                ],
                temperature=0.7,
                max_tokens=400,
            )
        except Exception as e:
            logger.error(
                f"METRIC model_error error={type(e).__name__} sessionId={session_id}: {e}"
            )
            return None

        try:
            content = response.choices[0].message.content
        except (AttributeError, IndexError) as e:
            logger.warning(f"Malformed model response sessionId={session_id}: {e}")
            return None

        if not content or not content.strip():
            logger.warning(f"METRIC model_empty_reply sessionId={session_id}")
            return None

        logger.debug(f"Model reply sessionId={session_id}: {content[:MAX_ERROR_LOG_CHARS]}")
        return content.strip()
