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
from dataclasses import dataclass, field
from typing import Any, Dict

from pyfilescan.schema.partition_spec import PartitionSpec, PartitionSpecParser
from pyfilescan.schema.schema import Schema, SchemaParser

METADATA_FILE = "metadata/table.json"


@dataclass
class TableMetadata:
    """Schema, partition spec and properties of a table, as stored in ``metadata/table.json``."""

    location: str
    schema: Schema
    spec: PartitionSpec = field(default_factory=PartitionSpec.unpartitioned)
    properties: Dict[str, str] = field(default_factory=dict)
    format_version: int = 1

    def to_json(self) -> str:
        return json.dumps({
            "format-version": self.format_version,
            "location": self.location,
            "schema": json.loads(SchemaParser.to_json(self.schema)),
            "partition-spec": PartitionSpecParser.to_dict(self.spec),
            "properties": self.properties,
        }, indent=2)

    @staticmethod
    def from_json(json_str: str) -> "TableMetadata":
        data: Dict[str, Any] = json.loads(json_str)
        for required in ("location", "schema"):
            if required not in data:
                raise ValueError(f"Table metadata is missing '{required}'")
        return TableMetadata(
            location=data["location"],
            schema=SchemaParser.from_dict(data["schema"]),
            spec=PartitionSpecParser.from_dict(data.get("partition-spec", {})),
            properties=dict(data.get("properties", {})),
            format_version=data.get("format-version", 1),
        )
