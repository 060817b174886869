"""
errors.py – the three failure kinds the co-pilot reports
"""


class CopilotError(Exception):
    """Base class for every error raised by the co-pilot packages."""


class InvalidInput(CopilotError, ValueError):
    """Bad symbol / side / price – rejected synchronously."""


class Unavailable(CopilotError):
    """An external adapter call failed or timed out."""


class NotFound(CopilotError, KeyError):
    """Unknown session id."""

    def __str__(self) -> str:  # KeyError repr-quotes its message
        return str(self.args[0]) if self.args else "not found"
