"""
Conversation-related exceptions.
"""


class ConversationStateError(Exception):
    """Raised when a conversation state is missing the context it requires."""
    pass


class ConversationConflictError(ConversationStateError):
    """Raised when a conversation was written by someone else since it was loaded."""
    pass
