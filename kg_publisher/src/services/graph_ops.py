"""Graph op construction for knowledge graph edits."""

from __future__ import annotations

from datetime import datetime, timezone
import uuid
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.graph import DataType, Op

BASE58_ALPHABET = "123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz"
ID_NAMESPACE = uuid.UUID("5b1e2f7a-3c4d-4e8f-9a0b-6c7d8e9f0a1b")


def encode_base58(raw: bytes) -> str:
    value = int.from_bytes(raw, "big")
    encoded = ""
    while value:
        value, remainder = divmod(value, 58)
        encoded = BASE58_ALPHABET[remainder] + encoded
    padding = len(raw) - len(raw.lstrip(b"\0"))
    return BASE58_ALPHABET[0] * padding + encoded


def generate_id() -> str:
    """Fresh base58-encoded UUIDv4."""
    return encode_base58(uuid.uuid4().bytes)


def derive_id(*parts: str) -> str:
    """Deterministic base58-encoded UUIDv5 for the given name parts."""
    return encode_base58(uuid.uuid5(ID_NAMESPACE, "/".join(parts)).bytes)


def serialize_date(value: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    value = value.astimezone(timezone.utc)
    return value.strftime("%Y-%m-%dT%H:%M:%S.") + f"{value.microsecond // 1000:03d}Z"


# Well-known system ids shared by every edit.
NAME_PROPERTY = derive_id("system", "name")
DESCRIPTION_PROPERTY = derive_id("system", "description")
TYPES_PROPERTY = derive_id("system", "types")
PROPERTIES = derive_id("system", "properties")
SCHEMA_TYPE = derive_id("system", "schema-type")


class GraphOpsBuilder:
    """
    Builds the ops that create properties, types, entities and relations.

    Every ``create_*`` call returns ``(id, ops)``; callers are responsible
    for collecting the ops in the order they want them applied.
    """

    def generate_id(self) -> str:
        return generate_id()

    def derive_id(self, *parts: str) -> str:
        return derive_id(*parts)

    def serialize_date(self, value: datetime) -> str:
        return serialize_date(value)

    def _relation_op(
        self,
        *,
        relation_id: str,
        from_entity: str,
        to_entity: str,
        relation_type: str,
        to_space: Optional[str] = None,
        position: Optional[str] = None,
    ) -> Op:
        relation: Dict[str, Any] = {
            "id": relation_id,
            "type": relation_type,
            "fromEntity": from_entity,
            "toEntity": to_entity,
        }
        if to_space:
            relation["toSpace"] = to_space
        if position:
            relation["position"] = position
        return {"type": "CREATE_RELATION", "relation": relation}

    def _update_entity_op(self, entity_id: str, values: Iterable[Tuple[str, str]]) -> Op:
        return {
            "type": "UPDATE_ENTITY",
            "entity": {
                "id": entity_id,
                "values": [{"property": prop, "value": value} for prop, value in values],
            },
        }

    def create_property(self, *, name: str, data_type: DataType, id: str | None = None) -> Tuple[str, List[Op]]:
        property_id = id or self.generate_id()
        ops: List[Op] = [
            {"type": "CREATE_PROPERTY", "property": {"id": property_id, "dataType": data_type.value}},
            self._update_entity_op(property_id, [(NAME_PROPERTY, name)]),
        ]
        return property_id, ops

    def create_type(
        self, *, name: str, properties: Sequence[str] = (), id: str | None = None
    ) -> Tuple[str, List[Op]]:
        type_id = id or self.generate_id()
        ops: List[Op] = [
            self._update_entity_op(type_id, [(NAME_PROPERTY, name)]),
            self._relation_op(
                relation_id=self.generate_id(),
                from_entity=type_id,
                to_entity=SCHEMA_TYPE,
                relation_type=TYPES_PROPERTY,
            ),
        ]
        for property_id in properties:
            ops.append(
                self._relation_op(
                    relation_id=self.generate_id(),
                    from_entity=type_id,
                    to_entity=property_id,
                    relation_type=PROPERTIES,
                )
            )
        return type_id, ops

    def create_entity(
        self,
        *,
        name: str,
        description: str = "",
        types: Sequence[str] = (),
        values: Sequence[Tuple[str, str]] = (),
        id: str | None = None,
    ) -> Tuple[str, List[Op]]:
        entity_id = id or self.generate_id()
        entity_values = [(NAME_PROPERTY, name)]
        if description:
            entity_values.append((DESCRIPTION_PROPERTY, description))
        entity_values.extend(values)

        ops: List[Op] = [self._update_entity_op(entity_id, entity_values)]
        for type_id in types:
            ops.append(
                self._relation_op(
                    relation_id=self.generate_id(),
                    from_entity=entity_id,
                    to_entity=type_id,
                    relation_type=TYPES_PROPERTY,
                )
            )
        return entity_id, ops

    def create_relation(
        self,
        *,
        from_entity: str,
        to_entity: str,
        relation_type: str,
        to_space: str | None = None,
        position: str | None = None,
        id: str | None = None,
    ) -> Tuple[str, List[Op]]:
        relation_id = id or self.generate_id()
        op = self._relation_op(
            relation_id=relation_id,
            from_entity=from_entity,
            to_entity=to_entity,
            relation_type=relation_type,
            to_space=to_space,
            position=position,
        )
        return relation_id, [op]


__all__ = [
    "GraphOpsBuilder",
    "derive_id",
    "encode_base58",
    "generate_id",
    "serialize_date",
]
