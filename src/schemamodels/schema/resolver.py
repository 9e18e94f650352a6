"""Expansion of raw schema documents into fully dereferenced schema graphs."""

import json
from typing import Any, Callable, Dict, Optional, Set
from schemamodels.config.logging import get_logger
from schemamodels.utils.json_pointer import JSONPointer
from .validators import extend_schema

logger = get_logger(__name__)

SchemaNode = Dict[str, Any]

# Keywords whose values are subschemas (single node or list of nodes)
SUBSCHEMA_KEYWORDS = ("items", "anyOf", "allOf", "not")


def remove_trailing_hash(schema_id: Optional[str]) -> Optional[str]:
    """Strip one trailing ``#`` from a schema id; empty ids become None."""
    if not schema_id:
        return None
    if schema_id.endswith("#"):
        schema_id = schema_id[:-1]
    return schema_id or None


def anonymous_schema_id(schema: SchemaNode) -> str:
    """Derive a stable id for a schema without one from its serialized content."""
    try:
        return json.dumps(schema, sort_keys=True, default=str)
    except ValueError:
        # Already-resolved nodes can contain cycles; fall back to object identity
        return f"anonymous:{id(schema)}"


class SchemaResolver:
    """
    Resolves ``$ref`` and ``extends`` in place, preserving node identity.

    Every node reachable from a resolved schema is the same object wherever
    it is referenced, including across documents and through cycles.
    """

    def __init__(self, fetch_schema: Callable[[str], SchemaNode]):
        """
        Args:
            fetch_schema: Returns the raw document for a schema id, raising
                UnresolvedReferenceError when it cannot be found
        """
        self._fetch_schema = fetch_schema
        self._by_id: Dict[str, SchemaNode] = {}
        self._by_ref: Dict[str, Any] = {}
        self._pending_refs: Set[str] = set()

    def resolve(self, schema: SchemaNode) -> SchemaNode:
        """
        Fully resolve a root schema.

        Schemas without an id receive one derived from their content, which
        also makes them cacheable.
        """
        if not schema.get("id"):
            schema["id"] = anonymous_schema_id(schema)
        return self._resolve(schema, schema)

    def cached(self, schema_id: str) -> Optional[SchemaNode]:
        return self._by_id.get(remove_trailing_hash(schema_id))

    def invalidate(self, schema_id: str) -> None:
        """Forget the resolution of one schema id and of references into it."""
        schema_id = remove_trailing_hash(schema_id)
        self._by_id.pop(schema_id, None)
        prefix = f"{schema_id}#"
        for key in [k for k in self._by_ref if k.startswith(prefix)]:
            del self._by_ref[key]

    def clear(self) -> None:
        self._by_id.clear()
        self._by_ref.clear()
        self._pending_refs.clear()

    def _resolve(self, schema: Any, root: SchemaNode) -> Any:
        if schema is None:
            return None
        if isinstance(schema, str):
            # Shorthand: "extends": "other-schema#"
            schema = {"$ref": schema}
        if not isinstance(schema, dict):
            return schema

        schema_id = remove_trailing_hash(schema.get("id"))
        if schema_id and schema_id in self._by_id:
            return self._by_id[schema_id]

        reference = schema.get("$ref")
        if reference is not None:
            # A reference node carries no sibling keywords worth processing
            return self._resolve_reference(reference, root)

        # Register the node before visiting children so that cycles re-entering
        # this schema get the same (still incomplete) object back
        if schema_id:
            self._by_id[schema_id] = schema

        properties = schema.get("properties")
        if isinstance(properties, dict):
            for key in list(properties):
                properties[key] = self._resolve(properties[key], root)

        for keyword in SUBSCHEMA_KEYWORDS:
            value = schema.get(keyword)
            if isinstance(value, list):
                for index, item in enumerate(value):
                    value[index] = self._resolve(item, root)
            elif isinstance(value, dict):
                schema[keyword] = self._resolve(value, root)

        extensions = schema.pop("extends", None)
        if extensions is not None:
            if not isinstance(extensions, list):
                extensions = [extensions]
            for extension in extensions:
                expanded = self._resolve(extension, root)
                if isinstance(expanded, dict):
                    extend_schema(schema, {k: v for k, v in expanded.items() if k != "id"})

        return schema

    def _resolve_reference(self, reference: str, root: SchemaNode) -> Any:
        if reference == "#":
            return root

        target_id, _, fragment = reference.partition("#")
        root_id = remove_trailing_hash(root.get("id")) or ""
        key = f"{target_id or root_id}#{fragment}"
        if key in self._by_ref:
            return self._by_ref[key]
        if key in self._pending_refs:
            logger.warning(f"Reference '{reference}' points back to itself")
            return None

        self._pending_refs.add(key)
        try:
            if target_id == "":
                target = root
            else:
                fetched = self._fetch_schema(target_id)
                target = self._resolve(fetched, fetched)

            result = JSONPointer(target).get(fragment) if fragment else target
            if isinstance(result, dict) and "$ref" in result:
                # The fragment landed on another, not yet resolved, reference
                result = self._resolve(result, target)
        finally:
            self._pending_refs.discard(key)

        if result is None:
            logger.warning(f"Reference '{reference}' does not resolve to a schema")
            return None

        if isinstance(result, dict) and not result.get("id"):
            if reference.startswith("#"):
                result["id"] = f"{target.get('id')}{reference}"
            else:
                result["id"] = reference
        self._by_ref[key] = result
        return result
