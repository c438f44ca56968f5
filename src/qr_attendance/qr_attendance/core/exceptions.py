from __future__ import annotations


class DomainError(Exception):
    """Anything the attendance station reports back to the instructor."""


class ValidationError(DomainError):
    """Bad request input (status, date, section) or a malformed backend body."""


class StaleSessionError(DomainError):
    """Raised when a ledger write targets a session that is no longer open."""


class ParseError(DomainError):
    """Raised when a scanned code cannot be read at all."""


class EmptyPayload(ParseError):
    def __init__(self, message: str = "Scanned code is empty"):
        super().__init__(message)


class ScanError(DomainError):
    """Raised when a readable payload cannot be applied to the open section."""


class MissingSectionContext(ScanError):
    def __init__(self, message: str = "No section is selected"):
        super().__init__(message)


class SectionMismatch(ScanError):
    def __init__(self, expected: str, got: str):
        self.expected = expected
        self.got = got
        super().__init__(f"Scanned code is for section {got!r}, expected {expected!r}")


class StudentNotFound(ScanError):
    def __init__(self, student_id: str):
        self.student_id = student_id
        super().__init__(f"Student {student_id!r} is not enrolled in this section")


class ScanInProgress(ScanError):
    def __init__(self, message: str = "Previous scan is still being submitted"):
        super().__init__(message)


class NetworkError(DomainError):
    """Transport-level failure: the backend gave no usable answer."""


class NetworkTimeout(NetworkError):
    pass


class NetworkUnreachable(NetworkError):
    pass


class ServerError(DomainError):
    """The backend answered, but refused the request."""


class ServerRejected(ServerError):
    def __init__(self, message: str, status_code: int | None = None):
        self.message = message
        self.status_code = status_code
        super().__init__(message)
