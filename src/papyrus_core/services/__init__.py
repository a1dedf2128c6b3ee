"""
Service layer for external collaborators.

Contains abstractions for:
- Artifact storage (local filesystem)
- Language-model completion (OpenAI)
"""

from .ai_client import CompletionClient, OpenAICompletionClient
from .storage_abstraction import ArtifactStorage, LocalArtifactStorage

__all__ = [
    "CompletionClient",
    "OpenAICompletionClient",
    "ArtifactStorage",
    "LocalArtifactStorage",
]
