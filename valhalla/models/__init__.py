from .base import Base
from .request import Request
from .response import Response
from .feedback import Feedback

__all__ = [
    "Base",
    "Request",
    "Response",
    "Feedback",
]
