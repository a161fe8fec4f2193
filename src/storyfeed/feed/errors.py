"""Failure taxonomy for feed loading and per-item rendering."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Optional

from loguru import logger

TRANSIENT_MESSAGE = "Error loading posts. Please try again."
TERMINAL_MESSAGE = "These posts could not be loaded."

RETRYABLE_STATUS_CODES = frozenset({429, 500, 502, 503, 504})


class FeedError(Exception):
    """Base class for every failure raised by a data source."""


class NetworkError(FeedError):
    """The backend could not be reached or did not answer in time."""


class ServerError(FeedError):
    """The backend answered with an HTTP error status."""

    def __init__(self, message: str, status_code: int):
        super().__init__(message)
        self.status_code = status_code


class ValidationError(FeedError):
    """The request or the returned payload was rejected."""


class NotFoundError(ValidationError):
    pass


class ErrorKind(Enum):
    TRANSIENT_FETCH = "TransientFetchError"
    TERMINAL = "TerminalError"
    RENDER = "RenderError"
    STALE_RESPONSE = "StaleResponseDiscard"

    @property
    def retryable(self) -> bool:
        return self is ErrorKind.TRANSIENT_FETCH


def classify_error(error: BaseException) -> ErrorKind:
    """Decide whether a fetch failure may be retried by the user.

    Network failures and throttling/5xx answers are transient. Validation
    problems, missing resources and anything unexpected are terminal.
    """
    if isinstance(error, NetworkError):
        return ErrorKind.TRANSIENT_FETCH
    if isinstance(error, ServerError):
        if error.status_code in RETRYABLE_STATUS_CODES or error.status_code >= 500:
            return ErrorKind.TRANSIENT_FETCH
        return ErrorKind.TERMINAL
    if isinstance(error, ValidationError):
        return ErrorKind.TERMINAL

    logger.opt(exception=error).error("Unexpected error while fetching posts")
    return ErrorKind.TERMINAL


def message_for(kind: ErrorKind) -> str:
    if kind is ErrorKind.TRANSIENT_FETCH:
        return TRANSIENT_MESSAGE
    return TERMINAL_MESSAGE


@dataclass(frozen=True)
class RenderOutcome:
    value: Any
    error: Optional[Exception] = None

    @property
    def failed(self) -> bool:
        return self.error is not None


def render_safely(
    render: Callable[[Any, Any], Any],
    item: Any,
    position: Any,
    fallback: Callable[[Any, Any, Exception], Any],
) -> RenderOutcome:
    """Build one item's renderable, substituting a placeholder if it fails.

    The isolation boundary is a single item: a failure here never reaches
    the caller, so sibling items keep rendering.

    Args:
        render: Callable building the renderable for ``(item, position)``.
        item: The item to render.
        position: Position style handed through to ``render``.
        fallback: Callable building the placeholder for ``(item, position, error)``.

    Returns:
        RenderOutcome holding either the rendered value or the placeholder and the error.
    """
    try:
        return RenderOutcome(render(item, position))
    except Exception as e:
        logger.opt(exception=e).error(
            f"{ErrorKind.RENDER.value}: item {_describe(item)} could not be rendered"
        )
        return RenderOutcome(fallback(item, position, e), e)


def _describe(item: Any) -> str:
    if isinstance(item, dict):
        return repr(item.get("id"))
    return repr(getattr(item, "id", None))
