"""
Claude AI client for interacting with Anthropic's API.
"""

import os
import logging
from typing import Optional
from anthropic import Anthropic

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "claude-3-sonnet-20240229"


class ClaudeClient:
    """Client for interacting with Claude AI."""

    def __init__(self, api_key: Optional[str] = None, model: str = DEFAULT_MODEL):
        """Initialize Claude client."""
        self.api_key = api_key or os.getenv("ANTHROPIC_API_KEY")
        if not self.api_key:
            raise ValueError("Anthropic API key is required")

        self.model = model
        self.client = Anthropic(api_key=self.api_key)

    async def generate_response(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        max_tokens: int = 1000,
    ) -> str:
        """
        Generate a response from Claude.

        Args:
            prompt: User prompt
            system_prompt: System prompt for context
            max_tokens: Maximum tokens to generate

        Returns:
            Generated response text
        """
        try:
            messages = [{"role": "user", "content": prompt}]

            kwargs = {"model": self.model, "max_tokens": max_tokens, "messages": messages}
            if system_prompt:
                kwargs["system"] = system_prompt
            response = self.client.messages.create(**kwargs)

            return response.content[0].text

        except Exception as e:
            logger.error(f"Error generating Claude response: {str(e)}")
            raise
