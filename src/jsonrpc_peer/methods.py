"""Method table: name -> handler.

Any mapping of names to callables works as a method table. ``MethodTable``
adds a registration decorator and lets a handler opt into receiving the
invocation context as its first argument.

Usage:
    methods = MethodTable()

    @methods.register()
    def add(x, y):
        return x + y

    @methods.register("session/open", pass_context=True)
    async def open_session(ctx, name):
        ...
"""

from __future__ import annotations

import inspect
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass
from typing import Any

from .errors import INVALID_PARAMS, JsonRpcProtocolError

MethodHandler = Callable[..., Any]


@dataclass(frozen=True)
class RegisteredMethod:
    """A handler plus how to call it."""

    name: str
    func: MethodHandler
    pass_context: bool = False

    def bind(self, params: Any, context: Any = None) -> tuple[tuple[Any, ...], dict[str, Any]]:
        """Turn request params into call arguments.

        Lists become positional arguments, objects become keyword
        arguments, and any other value is passed as a single argument.

        Raises:
            JsonRpcProtocolError: INVALID_PARAMS if the arguments do not fit
                the handler's signature.
        """
        if params is None:
            args: tuple[Any, ...] = ()
            kwargs: dict[str, Any] = {}
        elif isinstance(params, (list, tuple)):
            args, kwargs = tuple(params), {}
        elif isinstance(params, Mapping):
            args, kwargs = (), dict(params)
        else:
            args, kwargs = (params,), {}

        if self.pass_context:
            args = (context, *args)

        try:
            signature = inspect.signature(self.func)
        except (TypeError, ValueError):
            # Builtins without introspectable signatures
            return args, kwargs

        try:
            signature.bind(*args, **kwargs)
        except TypeError as e:
            raise JsonRpcProtocolError(
                code=INVALID_PARAMS.code,
                message=INVALID_PARAMS.message,
                data=str(e),
            ) from e
        return args, kwargs

    def invoke(self, params: Any, context: Any = None) -> Any:
        """Call the handler. Returns its value, awaitable, or Deferred as-is."""
        args, kwargs = self.bind(params, context)
        return self.func(*args, **kwargs)


class MethodTable(Mapping[str, RegisteredMethod]):
    """Read-only mapping of registered methods, populated at setup time."""

    def __init__(self, methods: Mapping[str, MethodHandler] | None = None) -> None:
        self._methods: dict[str, RegisteredMethod] = {}
        for name, func in (methods or {}).items():
            self.add(name, func)

    def __getitem__(self, name: str) -> RegisteredMethod:
        return self._methods[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._methods)

    def __len__(self) -> int:
        return len(self._methods)

    def add(self, name: str, func: MethodHandler, *, pass_context: bool = False) -> RegisteredMethod:
        """Register ``func`` under ``name``."""
        if not callable(func):
            raise TypeError(f"Method handler for {name!r} is not callable")
        if name in self._methods:
            raise ValueError(f"Method already registered: {name}")
        method = RegisteredMethod(name=name, func=func, pass_context=pass_context)
        self._methods[name] = method
        return method

    def register(
        self, name: str | None = None, *, pass_context: bool = False
    ) -> Callable[[MethodHandler], MethodHandler]:
        """Decorator form of ``add``; defaults to the function's name."""

        def decorator(func: MethodHandler) -> MethodHandler:
            self.add(name or func.__name__, func, pass_context=pass_context)
            return func

        return decorator


def resolve_method(methods: Mapping[str, Any], name: str) -> RegisteredMethod | None:
    """Look up ``name``; ``None`` when absent or not invocable."""
    if not isinstance(name, str):
        return None
    entry = methods.get(name)
    if isinstance(entry, RegisteredMethod):
        return entry
    if entry is None or not callable(entry):
        return None
    return RegisteredMethod(name=name, func=entry)
