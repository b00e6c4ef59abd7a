################################################################################
#  Licensed to the Apache Software Foundation (ASF) under one
#  or more contributor license agreements.  See the NOTICE file
#  distributed with this work for additional information
#  regarding copyright ownership.  The ASF licenses this file
#  to you under the Apache License, Version 2.0 (the
#  "License"); you may not use this file except in compliance
#  with the License.  You may obtain a copy of the License at
#
#      http://www.apache.org/licenses/LICENSE-2.0
#
#  Unless required by applicable law or agreed to in writing, software
#  distributed under the License is distributed on an "AS IS" BASIS,
#  WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
#  See the License for the specific language governing permissions and
# limitations under the License.
################################################################################
import json
from typing import Any, Dict, Iterable, List, Optional

from pyfilescan.schema.types import (IcebergType, ListType, MapType,
                                     NestedField, StructType, primitive_type)


class Schema:
    """An ordered set of top-level fields with a schema id."""

    def __init__(self, *fields: NestedField, schema_id: int = 0):
        self.fields = tuple(fields)
        self.schema_id = schema_id
        self._struct = StructType(*fields)

    def as_struct(self) -> StructType:
        return self._struct

    def column_names(self) -> List[str]:
        return [f.name for f in self.fields]

    def find_field(self, name: str, case_sensitive: bool = True) -> Optional[NestedField]:
        return self._struct.field_by_name(name, case_sensitive)

    def find_column_name(self, field_id: int) -> Optional[str]:
        nested = self._struct.field(field_id)
        return nested.name if nested else None

    def select(self, names: Iterable[str], case_sensitive: bool = True) -> "Schema":
        """Project top-level columns; order follows this schema, not ``names``."""
        wanted = list(names)
        selected = []
        for name in wanted:
            if self.find_field(name, case_sensitive) is None:
                raise ValueError(f"Cannot find column '{name}' in schema: {self}")
        lookup = set(wanted) if case_sensitive else {n.lower() for n in wanted}
        for nested in self.fields:
            key = nested.name if case_sensitive else nested.name.lower()
            if key in lookup:
                selected.append(nested)
        return Schema(*selected, schema_id=self.schema_id)

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Schema):
            return False
        return self.schema_id == other.schema_id and self.fields == other.fields

    def __hash__(self) -> int:
        return hash((self.schema_id, self.fields))

    def __repr__(self) -> str:
        return "table {\n" + "\n".join(f"  {f}" for f in self.fields) + "\n}"


class SchemaParser:
    """Converts schemas to and from their JSON form."""

    @staticmethod
    def to_json(schema: Schema) -> str:
        data = SchemaParser.type_to_dict(schema.as_struct())
        data["schema-id"] = schema.schema_id
        return json.dumps(data)

    @staticmethod
    def from_json(json_str: str) -> Schema:
        return SchemaParser.from_dict(json.loads(json_str))

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Schema:
        struct = SchemaParser.dict_to_type(data)
        if not isinstance(struct, StructType):
            raise ValueError(f"Schema must be a struct, got: {data}")
        return Schema(*struct.fields, schema_id=data.get("schema-id", 0))

    @staticmethod
    def type_to_dict(field_type: IcebergType) -> Any:
        if isinstance(field_type, StructType):
            fields = []
            for nested in field_type.fields:
                field_dict = {
                    "id": nested.field_id,
                    "name": nested.name,
                    "required": nested.required,
                    "type": SchemaParser.type_to_dict(nested.field_type),
                }
                if nested.doc:
                    field_dict["doc"] = nested.doc
                fields.append(field_dict)
            return {"type": "struct", "fields": fields}
        if isinstance(field_type, ListType):
            return {
                "type": "list",
                "element-id": field_type.element_id,
                "element": SchemaParser.type_to_dict(field_type.element_type),
                "element-required": field_type.element_required,
            }
        if isinstance(field_type, MapType):
            return {
                "type": "map",
                "key-id": field_type.key_id,
                "key": SchemaParser.type_to_dict(field_type.key_type),
                "value-id": field_type.value_id,
                "value": SchemaParser.type_to_dict(field_type.value_type),
                "value-required": field_type.value_required,
            }
        return str(field_type)

    @staticmethod
    def dict_to_type(data: Any) -> IcebergType:
        if isinstance(data, str):
            return primitive_type(data)

        kind = data.get("type")
        if kind == "struct":
            return StructType(*[
                NestedField(
                    field_id=f["id"],
                    name=f["name"],
                    field_type=SchemaParser.dict_to_type(f["type"]),
                    required=f.get("required", False),
                    doc=f.get("doc"),
                )
                for f in data.get("fields", [])
            ])
        if kind == "list":
            return ListType(
                element_id=data["element-id"],
                element_type=SchemaParser.dict_to_type(data["element"]),
                element_required=data.get("element-required", True),
            )
        if kind == "map":
            return MapType(
                key_id=data["key-id"],
                key_type=SchemaParser.dict_to_type(data["key"]),
                value_id=data["value-id"],
                value_type=SchemaParser.dict_to_type(data["value"]),
                value_required=data.get("value-required", True),
            )
        raise ValueError(f"Cannot parse type from JSON: {data}")
