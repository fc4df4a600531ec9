# archdoc/errors.py


class ArchitectureError(Exception):
    pass


class MalformedPayloadError(ArchitectureError):
    """Input cannot be parsed into an object or an array."""
    pass


class UnsupportedSectionError(ArchitectureError):
    pass


class SectionHandledElsewhereError(UnsupportedSectionError):
    """
    The section is known, but the architecture document does not persist it
    (database entities are owned by the schema module).
    """
    pass


class DocumentNotFoundError(ArchitectureError):
    pass


class ValidationError(ArchitectureError):
    pass


class ItemNotFoundError(ArchitectureError):
    pass


class StaleDocumentError(ArchitectureError):
    """Optimistic update kept losing the version race and ran out of retries."""
    pass
