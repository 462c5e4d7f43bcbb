from .models import (
    DEFAULT_ADDRESS,
    DEFAULT_PORT,
    VALID_OPTIONS,
    OptionContext,
    RemoteOptions,
    is_valid_option,
    validate_options,
)

__all__ = [
    "DEFAULT_ADDRESS",
    "DEFAULT_PORT",
    "VALID_OPTIONS",
    "OptionContext",
    "RemoteOptions",
    "is_valid_option",
    "validate_options",
]
