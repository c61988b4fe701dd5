"""Unified exception taxonomy.

Every domain exception raised by the ingestion pipeline, the import
writer, or the query side inherits from ``PipelineError`` and carries
structured context fields. Those fields drive the three places errors
surface: the import CLI (exit code + error dict), the HTTP handlers
(status code + ``{"error": ...}`` body), and the logs.

Taxonomy categories
-------------------
- ``ValidationError``: bad input (document, query parameters), never retryable.
- ``TransientError``: the store could not answer right now, retryable.
- ``PermanentError``: the operation cannot succeed as issued (rolled-back
  import, unknown placemark id).
- ``ContractError``: a stored row no longer matches the expected shape.

The core never retries on its own; ``retryable`` is advice for whoever
wraps the whole import or query call.
"""

from __future__ import annotations


class PipelineError(Exception):
    """Base exception for all pipeline-domain errors.

    Attributes:
        message: Human-readable error description.
        stage: Pipeline stage where the error occurred
            (e.g. ``"parse_kml"``, ``"import_placemarks"``, ``"query"``).
        code: Machine-readable error code (e.g. ``"KML_PARSE_FAILED"``).
        retryable: Whether a caller may retry the whole operation.
        correlation_id: Import run or request identifier, when known.
    """

    #: Default stage for subclasses (override via class attribute or kwarg).
    default_stage: str = ""
    #: Default code for subclasses (override via class attribute or kwarg).
    default_code: str = ""
    #: Category label reported by ``to_error_dict``; ``""`` means "derive it".
    category_label: str = ""
    #: HTTP status the API layer answers with for this error.
    http_status: int = 500

    def __init__(
        self,
        message: str = "",
        *,
        stage: str = "",
        code: str = "",
        retryable: bool = False,
        correlation_id: str = "",
    ) -> None:
        self.message = message
        self.stage = stage or self.default_stage
        self.code = code or self.default_code
        self.retryable = retryable
        self.correlation_id = correlation_id
        super().__init__(message)

    @property
    def category(self) -> str:
        """Return the error category of the concrete class."""
        if self.category_label:
            return self.category_label
        return "transient" if self.retryable else "permanent"

    def to_error_dict(self) -> dict[str, object]:
        """Return a structured error payload with stable keys."""
        return {
            "category": self.category,
            "code": self.code,
            "stage": self.stage,
            "message": self.message,
            "retryable": self.retryable,
            "correlation_id": self.correlation_id,
        }


# ---------------------------------------------------------------------------
# Category base classes
# ---------------------------------------------------------------------------


class ValidationError(PipelineError):
    """Input validation failure. Never retryable."""

    category_label = "validation"
    http_status = 400

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class TransientError(PipelineError):
    """Temporary failure that may succeed on retry."""

    category_label = "transient"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", True)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class PermanentError(PipelineError):
    """Unrecoverable domain failure. Not retryable."""

    category_label = "permanent"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]


class ContractError(PipelineError):
    """Stored data or payload no longer matches its expected shape."""

    category_label = "contract"

    def __init__(self, message: str = "", **kwargs: object) -> None:
        kwargs.setdefault("retryable", False)
        super().__init__(message, **kwargs)  # type: ignore[arg-type]
