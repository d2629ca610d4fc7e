"""
Agent layer: named agents with a purpose, a prompt and a response shape, each
backed by its own memory namespace and optional file/command actions.
"""

from .actions import CommandResult, CommandRunner, FileActions
from .agent import Agent, AgentResponse
from .definitions import MODEL_BY_PURPOSE, AgentDefinition, select_model
from .llm_client import OllamaClient

__all__ = [
    "Agent",
    "AgentResponse",
    "AgentDefinition",
    "MODEL_BY_PURPOSE",
    "select_model",
    "OllamaClient",
    "FileActions",
    "CommandRunner",
    "CommandResult"
]
