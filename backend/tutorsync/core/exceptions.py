class AppError(Exception):
    """Base class for all application exceptions."""
    def __init__(self, message: str, status_code: int = 500, details: dict = None):
        self.message = message
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)

class TimeFormatError(AppError, ValueError):
    """Raised when a time-of-day or weekday string cannot be parsed."""
    def __init__(self, value: object, reason: str = "Time must be in HH:MM 24-hour format"):
        super().__init__(reason, status_code=422, details={"value": value})

class TimeRangeError(AppError, ValueError):
    """Raised when a minute offset falls outside a single day."""
    def __init__(self, minutes: int):
        super().__init__(
            f"Minute offset {minutes} is outside [0, 1440)",
            status_code=500,
            details={"minutes": minutes},
        )

class CoordinationError(AppError):
    """Raised when the coordination engine is called with an invalid precondition."""
    def __init__(self, message: str, details: dict = None):
        super().__init__(message, status_code=400, details=details)

class ResourceNotFoundError(AppError):
    """Raised when a requested resource is not found."""
    def __init__(self, resource_type: str, resource_id: str):
        super().__init__(f"{resource_type} with id {resource_id} not found", status_code=404)

class SessionNotFoundError(ResourceNotFoundError):
    def __init__(self, session_id: str):
        super().__init__("Session", session_id)
        self.session_id = session_id

class StudentNotEnrolledError(AppError):
    def __init__(self, session_id: str, student_id: str):
        super().__init__(
            f"Student {student_id} is not enrolled in session {session_id}",
            status_code=409,
            details={"session_id": session_id, "student_id": student_id},
        )
