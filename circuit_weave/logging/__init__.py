from .logging import (  # noqa: F401
    CircuitWeaveJSONFormatter,
    RotatingFileHandlerWithDir,
    setup_logging,
)
