"""Identity map: one live model instance per (natural id, schema id)."""

import weakref
from dataclasses import dataclass
from typing import Any, Callable, Optional
from schemamodels.config.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class IdentityResult:
    instance: Any
    created: bool


class IdentityMap:
    """
    Registry of model instances keyed by ``"<natural id>|<schema id>"``.

    Entries are weak: an instance no longer referenced anywhere else drops
    out of the map. ``evict`` removes an entry explicitly.
    """

    def __init__(self):
        self._instances: "weakref.WeakValueDictionary[str, Any]" = weakref.WeakValueDictionary()

    @staticmethod
    def key_for(natural_id: Any, schema_id: str) -> str:
        return f"{natural_id}|{schema_id}"

    def lookup(self, natural_id: Any, schema_id: str) -> Optional[Any]:
        return self._instances.get(self.key_for(natural_id, schema_id))

    def get_or_create(
        self,
        natural_id: Any,
        schema_id: str,
        create: Callable[[], Any],
        bypass: bool = False,
    ) -> IdentityResult:
        """
        Return the registered instance, or register the one ``create`` builds.

        With ``bypass`` the lookup is skipped and a fresh instance is always
        built; it is registered only when the key is still free, so an
        existing entry is never replaced.
        """
        key = self.key_for(natural_id, schema_id)
        if not bypass:
            existing = self._instances.get(key)
            if existing is not None:
                logger.debug(f"Identity map hit for {key}")
                return IdentityResult(existing, False)

        instance = create()
        if self._instances.get(key) is None:
            self._instances[key] = instance
        return IdentityResult(instance, True)

    def evict(self, instance: Any) -> bool:
        """Remove ``instance`` if it is the registered entry for its key."""
        for key, registered in list(self._instances.items()):
            if registered is instance:
                del self._instances[key]
                return True
        return False

    def discard(self, natural_id: Any, schema_id: str) -> None:
        self._instances.pop(self.key_for(natural_id, schema_id), None)

    def clear(self) -> None:
        self._instances.clear()

    def __len__(self) -> int:
        return len(self._instances)

    def __contains__(self, key: str) -> bool:
        return key in self._instances
