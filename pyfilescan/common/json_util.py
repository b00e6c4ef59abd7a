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
JSON helpers for dataclasses whose JSON keys differ from attribute names.

    @dataclass
    class Snapshot:
        snapshot_id: int = json_field("snapshot-id", default=None)

    JSON.from_json('{"snapshot-id": 3}', Snapshot)
"""

import dataclasses
import json
from typing import Any, Dict, Type, TypeVar

T = TypeVar("T")

JSON_NAME = "json_name"


def json_field(json_name: str, default: Any = dataclasses.MISSING):
    """Declare a dataclass field serialized under ``json_name``."""
    if isinstance(default, (dict, list)):
        value = default
        return dataclasses.field(default_factory=lambda: type(value)(value),
                                 metadata={JSON_NAME: json_name})
    return dataclasses.field(default=default, metadata={JSON_NAME: json_name})


class JSON:

    @staticmethod
    def to_dict(obj: Any) -> Dict[str, Any]:
        result = {}
        for field in dataclasses.fields(obj):
            name = field.metadata.get(JSON_NAME, field.name)
            value = getattr(obj, field.name)
            if dataclasses.is_dataclass(value):
                value = JSON.to_dict(value)
            result[name] = value
        return result

    @staticmethod
    def to_json(obj: Any, indent: int = None) -> str:
        return json.dumps(JSON.to_dict(obj), indent=indent)

    @staticmethod
    def from_dict(data: Dict[str, Any], cls: Type[T]) -> T:
        kwargs = {}
        for field in dataclasses.fields(cls):
            name = field.metadata.get(JSON_NAME, field.name)
            if name in data:
                kwargs[field.name] = data[name]
        return cls(**kwargs)

    @staticmethod
    def from_json(json_str: str, cls: Type[T]) -> T:
        return JSON.from_dict(json.loads(json_str), cls)
