class AtomicSimError(Exception):
    """Base class for all atomicsim exceptions."""
    pass

class ConfigurationError(AtomicSimError):
    """Raised when there is an error in the configuration."""
    def __init__(self, message: str, original_exception: Exception = None):
        super().__init__(message)
        self.original_exception = original_exception
        self.message = message

    def __str__(self) -> str:
        if self.original_exception:
            return f"{self.message} (Original: {str(self.original_exception)})"
        return self.message

class ValidationError(AtomicSimError, ValueError):
    """Raised when input validation fails."""
    pass

class CoordinatorError(AtomicSimError):
    """Base class for coordinator related errors."""
    pass

class CoordinatorFailedError(CoordinatorError):
    """Raised when a transaction is started on a failed coordinator."""
    def __init__(self, message: str = "coordinator has failed"):
        super().__init__(message)
        self.message = message

class InvalidParticipantIndexError(CoordinatorError, IndexError):
    """Raised when a participant index is outside [0, participant_count)."""
    def __init__(self, participant_index: int, participant_count: int):
        self.participant_index = participant_index
        self.participant_count = participant_count
        self.message = f"invalid participant ID: {participant_index}"
        super().__init__(self.message)

    def __str__(self) -> str:
        return f"{self.message} (expected 0..{self.participant_count - 1})"

class SessionError(AtomicSimError):
    """Raised when a simulation session cannot be found."""
    pass
