"""Exception types raised at the load and export boundaries."""


class ManualError(Exception):
    """Base class for manual editor errors."""


class DocumentLoadError(ManualError):
    """Persisted document data could not be parsed or validated."""


class ExportError(ManualError):
    """The slide deck could not be written."""
