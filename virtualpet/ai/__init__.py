"""Gemini client and chat session."""

from virtualpet.ai.llm_client import ChatSession, LLMClient, extract_response_text

__all__ = ["ChatSession", "LLMClient", "extract_response_text"]
