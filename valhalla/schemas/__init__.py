from .records import ValhallaFeedback, ValhallaRequest, ValhallaResponse

__all__ = [
    "ValhallaFeedback",
    "ValhallaRequest",
    "ValhallaResponse",
]
