from __future__ import annotations

import functools
import inspect
import logging
import types
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from layerkit.core.errors import InvalidAdviceKind

ADVICE_KINDS = ("before", "around", "after")

_log = logging.getLogger("layerkit.interceptors")


@dataclass
class AdviceRegistration:
    name: str
    kind: str
    handler: Callable[..., Any]
    sort_order: int = 10


def is_interceptable(value: Any) -> bool:
    """Functions and other callables can be advised; classes are passed through."""
    return callable(value) and not inspect.isclass(value)


def _bind(original: Callable[..., Any], receiver: Any) -> Callable[..., Any]:
    if receiver is None or not inspect.isfunction(original):
        return original
    return types.MethodType(original, receiver)


async def _resolve(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class InterceptedModule:
    """
    Export surface routed through an InterceptionRegistry.

    Entries are fixed when the wrapper is built: one delegating callable per
    interceptable export, every other export exposed as-is.
    """

    def __init__(self, namespace: str, entries: Dict[str, Any]):
        self.__dict__["_namespace"] = namespace
        self.__dict__["_entries"] = entries

    def __getattr__(self, name: str) -> Any:
        try:
            return self.__dict__["_entries"][name]
        except KeyError:
            raise AttributeError(f"{self._namespace!r} does not export {name!r}") from None

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("intercepted module is read-only")

    def __getitem__(self, name: str) -> Any:
        return self._entries[name]

    def __contains__(self, name: object) -> bool:
        return name in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __dir__(self) -> List[str]:
        return list(self._entries)

    def __repr__(self) -> str:
        return f"<InterceptedModule {self._namespace} exports={list(self._entries)}>"


class InterceptionRegistry:
    """
    Per-method before/around/after advice, keyed "<target identifier>::<method>".

    Execution order for one call:
      before (ascending sort_order, may replace args)
      around (first registered outermost, original innermost)
      after  (ascending sort_order, receives result + pre-before args)
    """

    def __init__(self) -> None:
        self._table: Dict[str, Dict[str, List[AdviceRegistration]]] = {}

    def add_advice(
        self,
        method_key: str,
        name: str,
        kind: str,
        handler: Callable[..., Any],
        sort_order: int = 10,
    ) -> None:
        if kind not in ADVICE_KINDS:
            raise InvalidAdviceKind(kind)
        lists = self._table.setdefault(method_key, {k: [] for k in ADVICE_KINDS})
        lists[kind].append(AdviceRegistration(name=name, kind=kind, handler=handler, sort_order=sort_order))
        # list.sort is stable: equal sort_order keeps registration order
        lists[kind].sort(key=lambda a: a.sort_order)
        _log.debug("advice.add key=%s name=%s kind=%s sort_order=%s", method_key, name, kind, sort_order)

    def advice_for(self, method_key: str) -> Dict[str, List[AdviceRegistration]]:
        lists = self._table.get(method_key)
        if lists is None:
            return {k: [] for k in ADVICE_KINDS}
        return {k: list(v) for k, v in lists.items()}

    def method_keys(self) -> List[str]:
        return sorted(self._table.keys())

    # --- execution ---

    def execute_sync(self, method_key: str, original: Callable[..., Any], receiver: Any, *args: Any, **kwargs: Any) -> Any:
        target = _bind(original, receiver)
        chain = self._table.get(method_key)
        if chain is None:
            return target(*args, **kwargs)

        original_args = args
        for advice in chain["before"]:
            out = advice.handler(*args, **kwargs)
            if isinstance(out, (list, tuple)):
                args = tuple(out)

        call = target
        for advice in reversed(chain["around"]):
            call = self._around_sync(advice.handler, call)

        result = call(*args, **kwargs)

        for advice in chain["after"]:
            result = advice.handler(result, *original_args, **kwargs)
        return result

    async def execute(self, method_key: str, original: Callable[..., Any], receiver: Any, *args: Any, **kwargs: Any) -> Any:
        target = _bind(original, receiver)
        chain = self._table.get(method_key)
        if chain is None:
            return await _resolve(target(*args, **kwargs))

        original_args = args
        for advice in chain["before"]:
            out = await _resolve(advice.handler(*args, **kwargs))
            if isinstance(out, (list, tuple)):
                args = tuple(out)

        async def innermost(*a: Any, **kw: Any) -> Any:
            return await _resolve(target(*a, **kw))

        call: Callable[..., Any] = innermost
        for advice in reversed(chain["around"]):
            call = self._around_async(advice.handler, call)

        result = await call(*args, **kwargs)

        for advice in chain["after"]:
            result = await _resolve(advice.handler(result, *original_args, **kwargs))
        return result

    @staticmethod
    def _around_sync(handler: Callable[..., Any], proceed: Callable[..., Any]) -> Callable[..., Any]:
        def step(*args: Any, **kwargs: Any) -> Any:
            def proceed_with(*a: Any, **kw: Any) -> Any:
                return proceed(*a, **{**kwargs, **kw})

            return handler(proceed_with, *args, **kwargs)

        return step

    @staticmethod
    def _around_async(handler: Callable[..., Any], proceed: Callable[..., Any]) -> Callable[..., Any]:
        async def step(*args: Any, **kwargs: Any) -> Any:
            async def proceed_with(*a: Any, **kw: Any) -> Any:
                return await proceed(*a, **{**kwargs, **kw})

            return await _resolve(handler(proceed_with, *args, **kwargs))

        return step

    # --- wrapping ---

    def wrap(self, exports: Mapping[str, Any], namespace: str, use_async: Optional[bool] = None) -> InterceptedModule:
        """
        Build the interception object for an export surface.

        ``use_async=None`` routes coroutine functions through ``execute`` and
        everything else through ``execute_sync``.
        """
        entries: Dict[str, Any] = {}
        for name, value in exports.items():
            if is_interceptable(value):
                entries[name] = self._delegate(f"{namespace}::{name}", value, use_async)
            else:
                entries[name] = value
        return InterceptedModule(namespace, entries)

    def _delegate(self, method_key: str, original: Callable[..., Any], use_async: Optional[bool]) -> Callable[..., Any]:
        if use_async is None:
            use_async = inspect.iscoroutinefunction(original)

        if use_async:
            async def intercepted(*args: Any, **kwargs: Any) -> Any:
                return await self.execute(method_key, original, None, *args, **kwargs)
        else:
            def intercepted(*args: Any, **kwargs: Any) -> Any:
                return self.execute_sync(method_key, original, None, *args, **kwargs)

        functools.update_wrapper(intercepted, original)
        intercepted.__layerkit_method_key__ = method_key  # type: ignore[attr-defined]
        return intercepted
