"""Errors raised while mapping paragraphs to records and back."""


class ControlError(ValueError):
    """Base error for this package."""


class SchemaError(ControlError):
    """Raised when a record type carries malformed field metadata."""


class ParseError(ControlError):
    """Raised when paragraph text cannot be tokenized."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(f"controlmap: {message}")
        self.line_number = line_number


class RequiredFieldError(ControlError):
    """Raised when a required key is missing from the source paragraph."""

    def __init__(self, field: str, key: str) -> None:
        super().__init__(f"controlmap: required field {field} ({key!r}) missing")
        self.field = field
        self.key = key


class ConversionError(ControlError):
    """Raised when a raw value cannot be converted to a scalar type."""

    def __init__(self, field: str, value: object, reason: str) -> None:
        super().__init__(f"controlmap: cannot convert {field} value {value!r}: {reason}")
        self.field = field
        self.value = value


class UnsupportedTypeError(ControlError):
    """Raised for a shape with no built-in handling and no registered codec."""

    def __init__(self, field: str | None, shape: object) -> None:
        name = getattr(shape, "__name__", repr(shape))
        where = f" for field {field}" if field else ""
        super().__init__(f"controlmap: unsupported type {name}{where}")
        self.field = field
        self.shape = shape


class CodecError(ControlError):
    """Raised when a registered parse or format function fails."""

    def __init__(self, field: str, value: object, error: Exception, action: str = "parse") -> None:
        super().__init__(f"controlmap: failed to {action} {field} from {value!r}: {error}")
        self.field = field
        self.value = value
        self.action = action
