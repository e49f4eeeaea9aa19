from __future__ import annotations

import dataclasses
import inspect
import logging
import reprlib
from functools import wraps
from typing import Any, Callable, Iterable, MutableMapping, Optional, Sequence, Set, TypeVar, cast

import numpy as np

F = TypeVar("F", bound=Callable[..., Any])

_repr = reprlib.Repr()
_repr.maxother = 120
_repr.maxlist = 8
_repr.maxtuple = 8
_repr.maxdict = 8


def configure_logging(level: str = "INFO") -> None:
    """Install a root handler at ``level`` (name such as ``"DEBUG"``)."""

    log_level = getattr(logging, str(level).upper(), logging.INFO)
    logging.basicConfig(
        level=log_level,
        format="%(levelname)s:%(name)s:%(message)s",
    )


def summarize(value: Any, *, max_items: int = 6, max_length: int = 300) -> str:
    """Return a short, log-friendly rendering of ``value``.

    Arrays are reduced to shape, dtype and range so that logging a Jacobian
    does not dump thousands of numbers.
    """

    if isinstance(value, np.ndarray):
        head = f"ndarray(shape={tuple(value.shape)}, dtype={value.dtype})"
        if value.size == 0:
            return head
        if value.size <= max_items:
            return f"{head} values={_repr.repr(value.tolist())}"
        if not np.issubdtype(value.dtype, np.number):
            return head
        finite = value[np.isfinite(value)]
        if finite.size == 0:
            return f"{head} all-nonfinite"
        return f"{head} min={float(finite.min()):.6g} max={float(finite.max()):.6g}"

    if isinstance(value, np.random.Generator):
        return "Generator(...)"

    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = []
        for idx, field in enumerate(dataclasses.fields(value)):
            if idx >= max_items:
                fields.append("...")
                break
            fields.append(f"{field.name}={summarize(getattr(value, field.name))}")
        return f"{type(value).__name__}({', '.join(fields)})"

    if isinstance(value, (list, tuple)):
        open_br, close_br = ("(", ")") if isinstance(value, tuple) else ("[", "]")
        items = [summarize(item) for item in value[:max_items]]
        if len(value) > max_items:
            items.append("...")
        return f"{open_br}{', '.join(items)}{close_br}"

    rendered = _repr.repr(value)
    if len(rendered) > max_length:
        return rendered[:max_length] + "... (truncated)"
    return rendered


def _format_call(args: Sequence[Any], kwargs: MutableMapping[str, Any]) -> str:
    parts = [summarize(arg) for arg in args]
    parts.extend(f"{key}={summarize(value)}" for key, value in kwargs.items())
    return ", ".join(parts) if parts else "no-args"


def debug_log_call(
    logger: logging.Logger, *, name: Optional[str] = None, log_result: bool = True
) -> Callable[[F], F]:
    """Return a decorator that logs entry, exit and exceptions at DEBUG."""

    def decorator(func: F) -> F:
        if getattr(func, "_debug_logging_wrapped", False):
            return func

        qualname = name or getattr(func, "__qualname__", getattr(func, "__name__", "<callable>"))

        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any):
            if not logger.isEnabledFor(logging.DEBUG):
                return func(*args, **kwargs)
            logger.debug("Entering %s (%s)", qualname, _format_call(args, kwargs))
            try:
                result = func(*args, **kwargs)
            except Exception:
                logger.debug("Exception in %s", qualname, exc_info=True)
                raise
            if log_result:
                logger.debug("Exiting %s -> %s", qualname, summarize(result))
            else:
                logger.debug("Exiting %s", qualname)
            return result

        setattr(wrapper, "_debug_logging_wrapped", True)
        return cast(F, wrapper)

    return decorator


def apply_debug_logging(
    namespace: MutableMapping[str, Any],
    *,
    logger: Optional[logging.Logger] = None,
    skip: Optional[Iterable[str]] = None,
) -> None:
    """Wrap the public and private functions defined in a module namespace.

    Only functions whose ``__module__`` matches the namespace are wrapped, so
    re-exported helpers from other modules are left alone. Names in ``skip``
    (typically hot inner loops) are not wrapped.
    """

    module_name = namespace.get("__name__")
    if not isinstance(module_name, str):
        module_name = None
    logger = logger or logging.getLogger(module_name or __name__)
    skip_set: Set[str] = set(skip or [])

    for attr, value in list(namespace.items()):
        if attr in skip_set or attr.startswith("__"):
            continue
        if inspect.isfunction(value) and getattr(value, "__module__", None) == module_name:
            namespace[attr] = debug_log_call(logger, name=attr)(value)


__all__ = [
    "apply_debug_logging",
    "configure_logging",
    "debug_log_call",
    "summarize",
]
