class SessionError(Exception):
    """Base exception for study sessions."""
    pass


class ItemNotInSessionError(SessionError, KeyError):
    """Raised when the rated item is not the session's current item."""
    pass
