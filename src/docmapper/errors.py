"""Error types recorded on sessions or raised by standalone helpers."""


class DocMapperError(Exception):
    """Base class for docmapper errors."""


class InvalidIdentifierError(DocMapperError):
    """Raised when an external identifier is not a well-formed hex ObjectId."""


class DocumentValidationError(DocMapperError):
    """Raised when a document lacks a usable identifier for the operation."""


class CastError(DocMapperError):
    """Raised when the store generates an identifier of an unexpected type."""


class DocumentNotFoundError(DocMapperError):
    """Raised when a single-document fetch matches nothing."""


class DecodeError(DocMapperError):
    """Raised when a stored document does not fit the target model."""


class StoreError(DocMapperError):
    """Raised when the store cannot be used, e.g. no client is bound."""


class RelationError(DocMapperError):
    """Raised when a relation is unknown or misconfigured."""


class FilterExpressionError(DocMapperError):
    """Raised in strict mode for query expressions that are not understood."""
