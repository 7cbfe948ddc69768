from __future__ import annotations


class CellTemplateError(Exception):
    """Base exception class for all celltemplate errors.

    Every error raised by this package derives from this class so callers can
    catch template problems at their own boundary while letting unrelated
    exceptions propagate.

    Attributes:
        message: Human-readable error message describing what went wrong.

    Example:
        ```python
        try:
            settings = load_settings()
        except CellTemplateError as e:
            logger.error("template_setup_failed", error=e.message)
        ```
    """

    def __init__(self, message: str) -> None:
        """Initialize the CellTemplateError.

        Args:
            message: Human-readable error message.
        """
        self.message = message
        super().__init__(message)
