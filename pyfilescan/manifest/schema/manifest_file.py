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
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple

from pyfilescan.schema.schema import Schema
from pyfilescan.schema.types import (BinaryType, BooleanType, IntegerType,
                                     ListType, LongType, NestedField,
                                     StringType, StructType)

PARTITION_FIELD_SUMMARY_TYPE = StructType(
    NestedField(509, "contains_null", BooleanType, required=True),
    NestedField(518, "contains_nan", BooleanType, required=False),
    NestedField(510, "lower_bound", BinaryType, required=False),
    NestedField(511, "upper_bound", BinaryType, required=False),
)

MANIFEST_FILE_TYPE = StructType(
    NestedField(500, "manifest_path", StringType, required=True, doc="Location URI with FS scheme"),
    NestedField(501, "manifest_length", LongType, required=True, doc="Total file size in bytes"),
    NestedField(502, "partition_spec_id", IntegerType, required=True, doc="Spec ID used to write"),
    NestedField(503, "added_snapshot_id", LongType, required=False, doc="Snapshot ID that added the manifest"),
    NestedField(504, "added_files_count", IntegerType, required=False, doc="Added entry count"),
    NestedField(505, "existing_files_count", IntegerType, required=False, doc="Existing entry count"),
    NestedField(506, "deleted_files_count", IntegerType, required=False, doc="Deleted entry count"),
    NestedField(512, "added_rows_count", LongType, required=False, doc="Added rows count"),
    NestedField(513, "existing_rows_count", LongType, required=False, doc="Existing rows count"),
    NestedField(514, "deleted_rows_count", LongType, required=False, doc="Deleted rows count"),
    NestedField(507, "partitions", ListType(508, PARTITION_FIELD_SUMMARY_TYPE, element_required=True),
                required=False, doc="Summary for each partition"),
)

MANIFEST_FILE_SCHEMA = Schema(*MANIFEST_FILE_TYPE.fields)


@dataclass(frozen=True)
class PartitionFieldSummary:
    contains_null: bool
    contains_nan: Optional[bool] = None
    lower_bound: Optional[bytes] = None
    upper_bound: Optional[bytes] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "PartitionFieldSummary":
        return cls(
            contains_null=record.get("contains_null"),
            contains_nan=record.get("contains_nan"),
            lower_bound=record.get("lower_bound"),
            upper_bound=record.get("upper_bound"),
        )


@dataclass(frozen=True)
class ManifestFile:
    """One entry of a manifest list: a manifest file and its summary counts."""

    manifest_path: str
    manifest_length: int
    partition_spec_id: int = 0
    added_snapshot_id: Optional[int] = None
    added_files_count: Optional[int] = None
    existing_files_count: Optional[int] = None
    deleted_files_count: Optional[int] = None
    added_rows_count: Optional[int] = None
    existing_rows_count: Optional[int] = None
    deleted_rows_count: Optional[int] = None
    partitions: Tuple[PartitionFieldSummary, ...] = field(default=())

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ManifestFile":
        return cls(
            manifest_path=record.get("manifest_path"),
            manifest_length=record.get("manifest_length"),
            partition_spec_id=record.get("partition_spec_id", 0),
            added_snapshot_id=record.get("added_snapshot_id"),
            added_files_count=record.get("added_files_count"),
            existing_files_count=record.get("existing_files_count"),
            deleted_files_count=record.get("deleted_files_count"),
            added_rows_count=record.get("added_rows_count"),
            existing_rows_count=record.get("existing_rows_count"),
            deleted_rows_count=record.get("deleted_rows_count"),
            partitions=tuple(record.get("partitions") or ()),
        )

    def has_added_files(self) -> bool:
        return self.added_files_count is None or self.added_files_count > 0

    def has_existing_files(self) -> bool:
        return self.existing_files_count is None or self.existing_files_count > 0
