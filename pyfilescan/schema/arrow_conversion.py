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
"""
Conversion of table schemas and rows to pyarrow.

Field ids are carried in the ``PARQUET:field_id`` field metadata. Map values
are handed to pyarrow as lists of key/value tuples.
"""

from typing import Any, Dict, Iterable, List

import pyarrow as pa

from pyfilescan.schema.schema import Schema
from pyfilescan.schema.types import (IcebergType, ListType, MapType,
                                     NestedField, PrimitiveType, StructType)

PYARROW_FIELD_ID_KEY = b"PARQUET:field_id"

_PRIMITIVES = {
    "boolean": pa.bool_(),
    "int": pa.int32(),
    "long": pa.int64(),
    "float": pa.float32(),
    "double": pa.float64(),
    "date": pa.date32(),
    "time": pa.time64("us"),
    "timestamp": pa.timestamp("us"),
    "timestamptz": pa.timestamp("us", tz="UTC"),
    "string": pa.large_string(),
    "uuid": pa.binary(16),
    "binary": pa.large_binary(),
}


def schema_to_pyarrow(schema: Schema) -> pa.Schema:
    return pa.schema([field_to_pyarrow(f) for f in schema.fields])


def field_to_pyarrow(nested: NestedField) -> pa.Field:
    return pa.field(
        name=nested.name,
        type=type_to_pyarrow(nested.field_type),
        nullable=not nested.required,
        metadata={PYARROW_FIELD_ID_KEY: str(nested.field_id)},
    )


def type_to_pyarrow(field_type: IcebergType) -> pa.DataType:
    if isinstance(field_type, StructType):
        return pa.struct([field_to_pyarrow(f) for f in field_type.fields])
    if isinstance(field_type, ListType):
        element = pa.field("element", type_to_pyarrow(field_type.element_type),
                           nullable=not field_type.element_required,
                           metadata={PYARROW_FIELD_ID_KEY: str(field_type.element_id)})
        return pa.large_list(element)
    if isinstance(field_type, MapType):
        key = pa.field("key", type_to_pyarrow(field_type.key_type), nullable=False,
                       metadata={PYARROW_FIELD_ID_KEY: str(field_type.key_id)})
        value = pa.field("value", type_to_pyarrow(field_type.value_type),
                         nullable=not field_type.value_required,
                         metadata={PYARROW_FIELD_ID_KEY: str(field_type.value_id)})
        return pa.map_(key, value)
    if isinstance(field_type, PrimitiveType):
        name = field_type.type_name
        if name in _PRIMITIVES:
            return _PRIMITIVES[name]
        if name.startswith("fixed["):
            return pa.binary(int(name[len("fixed["):-1]))
        if name.startswith("decimal("):
            precision, scale = name[len("decimal("):-1].split(",")
            return pa.decimal128(int(precision), int(scale))
    raise TypeError(f"Unsupported type: {field_type}")


def _to_pyarrow_value(value: Any, field_type: IcebergType) -> Any:
    if value is None:
        return None
    if isinstance(field_type, StructType):
        return {f.name: _to_pyarrow_value(value.get(f.name), f.field_type) for f in field_type.fields}
    if isinstance(field_type, ListType):
        return [_to_pyarrow_value(v, field_type.element_type) for v in value]
    if isinstance(field_type, MapType):
        return [(k, _to_pyarrow_value(v, field_type.value_type)) for k, v in value.items()]
    return value


def rows_to_pyarrow(rows: Iterable[Dict[str, Any]], schema: Schema) -> pa.Table:
    """Build a table from ``rows`` keyed by column name; extra keys are ignored."""
    pyarrow_schema = schema_to_pyarrow(schema)
    converted: List[Dict[str, Any]] = [
        {f.name: _to_pyarrow_value(row.get(f.name), f.field_type) for f in schema.fields}
        for row in rows
    ]
    return pa.Table.from_pylist(converted, schema=pyarrow_schema)
