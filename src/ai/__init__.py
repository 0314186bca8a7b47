"""
AI module for interfacing with Claude and other AI services.
"""

from .claude_client import ClaudeClient
from .analyzer import ClaudeAnalyzer

__all__ = ["ClaudeClient", "ClaudeAnalyzer"]
