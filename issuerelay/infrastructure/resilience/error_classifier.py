"""Classifies transport error messages as transient or terminal.

The transport only surfaces free-text diagnostics, so classification is a
case-insensitive match against an ordered set of known transient signatures.
Anything that matches none of them is terminal (e.g. authentication failures
or malformed requests).
"""

import logging
import re
from typing import Iterable, List, Optional, Pattern, Tuple, Union

logger = logging.getLogger(__name__)

# (name, pattern) pairs; order is the order they are tried in.
DEFAULT_RETRYABLE_SIGNATURES: Tuple[Tuple[str, str], ...] = (
    ("timeout", r"timeout|timed out|ETIMEDOUT"),
    ("network_error", r"network.*error"),
    ("server_error", r"server.*error"),
    ("http_5xx", r"\b5\d{2}\b"),
    ("connection_failed", r"connection.*(failed|refused)|ECONNREFUSED"),
    ("dns_failure", r"getaddrinfo.*fail|ENOTFOUND|name resolution"),
    ("connection_reset", r"ECONNRESET|connection reset"),
)


class ErrorClassifier:
    """Retryability predicate over unstructured error messages."""

    def __init__(
        self,
        signatures: Iterable[Tuple[str, str]] = DEFAULT_RETRYABLE_SIGNATURES,
    ):
        self._signatures: List[Tuple[str, Pattern[str]]] = []
        for name, pattern in signatures:
            self.add_pattern(pattern, name=name)

    @property
    def signature_names(self) -> List[str]:
        return [name for name, _ in self._signatures]

    def add_pattern(self, pattern: Union[str, Pattern[str]], name: Optional[str] = None) -> None:
        """Registers an additional transient signature (appended last).

        Args:
            pattern: A regex string or compiled pattern. Strings are compiled
                case-insensitively.
            name: Label used in debug logs; defaults to the pattern text.
        """
        compiled = re.compile(pattern, re.IGNORECASE) if isinstance(pattern, str) else pattern
        self._signatures.append((name or compiled.pattern, compiled))

    def match(self, message: Optional[str]) -> Optional[str]:
        """Returns the name of the first signature matching ``message``, if any."""
        if not message:
            return None
        for name, compiled in self._signatures:
            if compiled.search(message):
                return name
        return None

    def is_retryable(self, message: Optional[str]) -> bool:
        signature = self.match(message)
        if signature:
            logger.debug(f"Error classified as transient ({signature}): {message}")
            return True
        logger.debug(f"Error classified as terminal: {message}")
        return False
