"""
Core module for the dev terminal.
Contains the request pipeline, planning and step execution logic.
"""

from .pipeline import DevTerminalPipeline
from .executor import StepExecutor
from .config import Config

__all__ = ["DevTerminalPipeline", "StepExecutor", "Config"]
