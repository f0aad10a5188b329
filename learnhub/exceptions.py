"""
learnhub/exceptions.py
Custom exceptions for the progress/statistics layer

Storage failures are NOT wrapped: SQLAlchemy's own exceptions propagate
to the caller unchanged. The types below cover defects detected by this
package itself.
"""


class LearnHubException(Exception):
    """Base exception for learnhub"""
    
    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class MalformedAggregateRowError(LearnHubException):
    """
    Raised when an aggregate row from storage has an unexpected shape.
    
    Examples:
    - A count column is missing or NULL
    - A count is non-numeric text ("abc") or fractional ("2.5")
    - A count is negative
    
    Treated as schema drift / programming error: never coerced to zero.
    """
    
    def __init__(self, message: str = "Malformed aggregate row", field: str = None, value=None):
        self.field = field
        self.value = value
        super().__init__(message)


class SchemaProbeError(LearnHubException):
    """
    Raised when a table-existence probe returns no row or misses a flag.
    
    Only ever raised inside the availability check, which treats it
    like any other probe failure (fail closed, not cached).
    """
    
    def __init__(self, message: str = "Table existence probe returned an unusable result"):
        super().__init__(message)


class UnsupportedDialectError(LearnHubException):
    """Raised when an operation needs SQL the session's database dialect lacks (e.g. ON CONFLICT upserts)."""
    
    def __init__(self, dialect_name: str, operation: str = "Upsert"):
        self.dialect_name = dialect_name
        super().__init__(f"{operation} is not supported for dialect '{dialect_name}'")
