from .client import QueryResult, ValhallaDB, connect
from .errors import ValhallaClosedError, ValhallaConfigError, ValhallaError
from .result import Err, Ok, Result

__all__ = [
    "ValhallaDB",
    "QueryResult",
    "connect",
    "Ok",
    "Err",
    "Result",
    "ValhallaError",
    "ValhallaConfigError",
    "ValhallaClosedError",
]
