"""Custom exceptions for Trackport."""


class ImportRequestError(Exception):
    """Raised when an import or watermark request is malformed."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TrackerConflictError(Exception):
    """Raised when inserting a tracker for a conversation id that already exists."""

    def __init__(self, conversation_id: str):
        self.conversation_id = conversation_id
        super().__init__(f"Conversation {conversation_id} already exists")
