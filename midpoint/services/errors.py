class MeetingError(Exception):
    kind = "MeetingError"
    status_code = 500
    default_message = "Meeting operation failed."

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


class NotFound(MeetingError):
    kind = "NotFound"
    status_code = 404
    default_message = "The requested resource does not exist."


class Conflict(MeetingError):
    kind = "Conflict"
    status_code = 409
    default_message = "The request conflicts with existing data."


class AllocationExhausted(Conflict):
    default_message = "Could not allocate a unique meeting identifier."


class ParamCollision(Conflict):
    """A meeting param lost a race against the unique constraint; retryable."""

    default_message = "Meeting identifier already in use."


class CreationFailed(MeetingError):
    kind = "CreationFailed"
    status_code = 500
    default_message = "Meeting creation failed and was rolled back."


class Unauthorized(MeetingError):
    kind = "Unauthorized"
    status_code = 403
    default_message = "You are not allowed to change this meeting."


class InvalidInput(MeetingError):
    kind = "InvalidInput"
    status_code = 400
    default_message = "Invalid input."


class StorageFault(MeetingError):
    kind = "StorageFault"
    status_code = 503
    default_message = "The meeting store is unavailable."
