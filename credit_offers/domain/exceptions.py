"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class ValidationError(DomainException):
    """Input violates a value object, calculator or payload precondition"""

    pass


class NotFoundError(DomainException):
    """Institution or internal modality lookup returned nothing"""

    pass


class DuplicateStandardModalityError(DomainException):
    """A standard modality with the same code already exists"""

    pass


class DuplicateModalityMappingError(DomainException):
    """A mapping for the same (institution, external code) already exists"""

    pass
