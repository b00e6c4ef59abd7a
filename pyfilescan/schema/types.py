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
Type model for table and metadata-table schemas.

Types are immutable values; two types are equal when their structure is.
Primitive types are identified by their JSON name (``long``, ``string``,
``fixed[16]``, ``decimal(9,2)``).
"""

from dataclasses import dataclass, field
from typing import Optional, Tuple


class IcebergType:

    def is_primitive(self) -> bool:
        return False

    def is_struct(self) -> bool:
        return False


@dataclass(frozen=True)
class PrimitiveType(IcebergType):
    type_name: str

    def is_primitive(self) -> bool:
        return True

    def __str__(self) -> str:
        return self.type_name


BooleanType = PrimitiveType("boolean")
IntegerType = PrimitiveType("int")
LongType = PrimitiveType("long")
FloatType = PrimitiveType("float")
DoubleType = PrimitiveType("double")
DateType = PrimitiveType("date")
TimeType = PrimitiveType("time")
TimestampType = PrimitiveType("timestamp")
TimestamptzType = PrimitiveType("timestamptz")
StringType = PrimitiveType("string")
UUIDType = PrimitiveType("uuid")
BinaryType = PrimitiveType("binary")

PRIMITIVE_TYPES = {
    t.type_name: t for t in (
        BooleanType, IntegerType, LongType, FloatType, DoubleType, DateType, TimeType,
        TimestampType, TimestamptzType, StringType, UUIDType, BinaryType,
    )
}


@dataclass(frozen=True)
class NestedField:
    field_id: int
    name: str
    field_type: IcebergType
    required: bool = False
    doc: Optional[str] = field(default=None, compare=False)

    def __str__(self) -> str:
        requirement = "required" if self.required else "optional"
        return f"{self.field_id}: {self.name}: {requirement} {self.field_type}"


@dataclass(frozen=True)
class StructType(IcebergType):
    fields: Tuple[NestedField, ...] = ()

    def __init__(self, *fields: NestedField):
        object.__setattr__(self, "fields", tuple(fields))

    def is_struct(self) -> bool:
        return True

    def field(self, field_id: int) -> Optional[NestedField]:
        for nested in self.fields:
            if nested.field_id == field_id:
                return nested
        return None

    def field_by_name(self, name: str, case_sensitive: bool = True) -> Optional[NestedField]:
        for nested in self.fields:
            if nested.name == name or (not case_sensitive and nested.name.lower() == name.lower()):
                return nested
        return None

    def __str__(self) -> str:
        return "struct<" + ", ".join(str(f) for f in self.fields) + ">"


@dataclass(frozen=True)
class ListType(IcebergType):
    element_id: int
    element_type: IcebergType
    element_required: bool = True

    def __str__(self) -> str:
        return f"list<{self.element_type}>"


@dataclass(frozen=True)
class MapType(IcebergType):
    key_id: int
    key_type: IcebergType
    value_id: int
    value_type: IcebergType
    value_required: bool = True

    def __str__(self) -> str:
        return f"map<{self.key_type}, {self.value_type}>"


def primitive_type(type_name: str) -> PrimitiveType:
    if type_name in PRIMITIVE_TYPES:
        return PRIMITIVE_TYPES[type_name]
    if type_name.startswith("fixed[") or type_name.startswith("decimal("):
        return PrimitiveType(type_name)
    raise ValueError(f"Unknown primitive type: {type_name}")
