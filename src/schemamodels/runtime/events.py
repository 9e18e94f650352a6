"""Synchronous event hooks shared by models, collections and validation records."""

from typing import Any, Callable, Dict, List, Optional

Listener = Callable[..., object]

# Listeners registered under this name receive every event, prefixed by its name
ALL_EVENTS = "all"


class Events:
    """Mixin adding ``on``/``off``/``trigger`` to a class."""

    def _listeners(self) -> Dict[str, List[Listener]]:
        listeners = self.__dict__.get("_event_listeners")
        if listeners is None:
            listeners = {}
            self.__dict__["_event_listeners"] = listeners
        return listeners

    def on(self, event: str, callback: Listener) -> None:
        """Subscribe ``callback`` to ``event`` (or to every event with ``"all"``)."""
        if not callable(callback):
            raise ValueError("callback must be callable")
        self._listeners().setdefault(event, []).append(callback)

    def off(self, event: Optional[str] = None, callback: Optional[Listener] = None) -> None:
        """Remove listeners; with no arguments every listener is removed."""
        listeners = self._listeners()
        if event is None and callback is None:
            listeners.clear()
            return

        names = [event] if event is not None else list(listeners)
        for name in names:
            if callback is None:
                listeners.pop(name, None)
                continue
            remaining = [cb for cb in listeners.get(name, []) if cb is not callback]
            if remaining:
                listeners[name] = remaining
            else:
                listeners.pop(name, None)

    def trigger(self, event: str, *args: Any) -> None:
        listeners = self._listeners()
        for callback in tuple(listeners.get(event, ())):
            callback(*args)
        if event != ALL_EVENTS:
            for callback in tuple(listeners.get(ALL_EVENTS, ())):
                callback(event, *args)
