class DataImportError(Exception):
    """Base class for import failures that the caller has to handle."""


class ImportDispatchError(DataImportError):
    """The requested import cannot be dispatched with the current inputs."""


class IngestError(DataImportError):
    """A CSV source could not be read at all (row problems are not raised)."""


__all__ = ["DataImportError", "ImportDispatchError", "IngestError"]
