"""
Centralized exception definitions for template-smd.
"""


class ErrorContext:
    """Context information for errors."""

    def __init__(self, component: str = None, operation: str = None, **kwargs):
        self.component = component
        self.operation = operation
        self.details = kwargs


class TemplateSMDError(Exception):
    """Base class for all template-smd errors."""

    def __init__(self, message: str, context: ErrorContext = None, details: dict = None):
        super().__init__(message)
        self.context = context or ErrorContext()
        self.details = details or {}

    def __str__(self):
        base_str = super().__str__()
        if self.context.component and self.context.operation:
            return f"{base_str} [in {self.context.component}.{self.context.operation}]"
        return base_str


class ConfigurationError(TemplateSMDError):
    """Error in configuration."""
    pass


class ValidationError(TemplateSMDError):
    """Error in input validation."""
    pass


class TemplateError(TemplateSMDError):
    """Error in template handling."""
    pass


class PartialRecursionError(TemplateError):
    """Partial inclusion nested deeper than the configured ceiling."""

    def __init__(self, name: str, depth: int, context: ErrorContext = None):
        super().__init__(
            f"Partial recursion limit exceeded while including '{name}' (depth {depth})",
            context=context,
            details={"name": name, "depth": depth},
        )
        self.name = name
        self.depth = depth


class StorageError(TemplateSMDError):
    """Error in storage operations."""
    pass


class TemplateReadError(StorageError):
    """A template file could not be read."""

    def __init__(self, path: str, reason: str = "", context: ErrorContext = None):
        message = f"Template file could not be read: {path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, context=context, details={"path": path})
        self.path = path
