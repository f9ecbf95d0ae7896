"""
Conversation state module.
"""

from .locks import ConversationLocks
from .state_manager import ConversationStore

__all__ = ["ConversationLocks", "ConversationStore"]
