"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidInputError(DomainException):
    """Required field is missing or malformed"""

    pass


class DuplicateApplicationError(DomainException):
    """An application with this number already exists"""

    def __init__(self, application_number: str):
        super().__init__(f"Application {application_number!r} already exists")
        self.application_number = application_number


class ApplicationNotFoundError(DomainException):
    """No stored record for this application number"""

    def __init__(self, application_number: str):
        super().__init__(f"Could not find application {application_number!r}")
        self.application_number = application_number


class StoreFailureError(DomainException):
    """Record store rejected a read or write"""

    pass


class DeserializationError(DomainException):
    """Stored application record is corrupt or unreadable"""

    pass
