"""PDF statement export package."""

from cabledger.services.statement.pdf_statement import (
    StatementBuilder,
    StatementError,
    driver_label,
    statement_filename,
)

__all__ = [
    "StatementBuilder",
    "StatementError",
    "driver_label",
    "statement_filename",
]
