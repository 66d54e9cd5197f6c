class CatalogError(Exception):
    """Base class for show catalog failures."""


class IngestionError(CatalogError):
    """Raised when a show ingestion run cannot complete."""


class ConnectivityError(IngestionError):
    pass


class UpstreamError(IngestionError):
    def __init__(self, status_code: int, message: str | None = None) -> None:
        self.status_code = status_code
        super().__init__(message or f"Upstream returned HTTP {status_code}.")


class ParseError(IngestionError):
    pass


class MalformedRecord(IngestionError):
    def __init__(self, index: int, message: str | None = None) -> None:
        self.index = index
        super().__init__(message or f"Show record at position {index} has no id.")


class StorageError(CatalogError):
    pass


class ShowNotFound(CatalogError):
    def __init__(self, show_id: int) -> None:
        self.show_id = show_id
        super().__init__(f"Show {show_id} not found.")


class ShowAlreadyExists(CatalogError):
    def __init__(self, show_id: int) -> None:
        self.show_id = show_id
        super().__init__(f"Show {show_id} already exists.")
