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
from enum import Enum
from typing import Any, Dict, List, Optional

from pyfilescan.exceptions import DecodeError
from pyfilescan.manifest.schema.manifest_file import ManifestFile
from pyfilescan.schema.types import (BinaryType, IntegerType, ListType,
                                     LongType, MapType, NestedField,
                                     StringType, StructType)


class FileFormat(str, Enum):
    AVRO = "AVRO"
    PARQUET = "PARQUET"
    ORC = "ORC"

    @classmethod
    def from_string(cls, value: str) -> "FileFormat":
        try:
            return cls(value.upper())
        except ValueError:
            raise ValueError(f"Unsupported file format: {value}") from None


def get_type(partition_type: StructType) -> StructType:
    """Row type of the files metadata table for a table partitioned by ``partition_type``."""
    return StructType(
        NestedField(100, "file_path", StringType, required=True, doc="Location URI with FS scheme"),
        NestedField(101, "file_format", StringType, required=True, doc="File format name: avro, orc, or parquet"),
        NestedField(102, "partition", partition_type, required=True, doc="Partition data tuple"),
        NestedField(103, "record_count", LongType, required=True, doc="Number of records in the file"),
        NestedField(104, "file_size_in_bytes", LongType, required=True, doc="Total file size in bytes"),
        NestedField(108, "column_sizes", MapType(117, IntegerType, 118, LongType),
                    required=False, doc="Map of column id to total size on disk"),
        NestedField(109, "value_counts", MapType(119, IntegerType, 120, LongType),
                    required=False, doc="Map of column id to total count, including null and NaN"),
        NestedField(110, "null_value_counts", MapType(121, IntegerType, 122, LongType),
                    required=False, doc="Map of column id to null value count"),
        NestedField(137, "nan_value_counts", MapType(138, IntegerType, 139, LongType),
                    required=False, doc="Map of column id to number of NaN values in the column"),
        NestedField(125, "lower_bounds", MapType(126, IntegerType, 127, BinaryType),
                    required=False, doc="Map of column id to lower bound"),
        NestedField(128, "upper_bounds", MapType(129, IntegerType, 130, BinaryType),
                    required=False, doc="Map of column id to upper bound"),
        NestedField(131, "key_metadata", BinaryType, required=False, doc="Encryption key metadata blob"),
        NestedField(132, "split_offsets", ListType(133, LongType, element_required=True),
                    required=False, doc="Splittable offsets"),
        NestedField(140, "sort_order_id", IntegerType, required=False, doc="Sort order ID"),
    )


@dataclass
class DataFile:
    """A physical data file and its statistics; one row of the files table."""

    file_path: str
    file_format: FileFormat
    record_count: int
    file_size_in_bytes: int
    partition: Dict[str, Any] = field(default_factory=dict)
    column_sizes: Optional[Dict[int, int]] = None
    value_counts: Optional[Dict[int, int]] = None
    null_value_counts: Optional[Dict[int, int]] = None
    nan_value_counts: Optional[Dict[int, int]] = None
    lower_bounds: Optional[Dict[int, bytes]] = None
    upper_bounds: Optional[Dict[int, bytes]] = None
    key_metadata: Optional[bytes] = None
    split_offsets: Optional[List[int]] = None
    sort_order_id: Optional[int] = None

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "DataFile":
        return cls(
            file_path=record.get("file_path"),
            file_format=FileFormat.from_string(record.get("file_format")),
            record_count=record.get("record_count"),
            file_size_in_bytes=record.get("file_size_in_bytes"),
            partition=dict(record.get("partition") or {}),
            column_sizes=record.get("column_sizes"),
            value_counts=record.get("value_counts"),
            null_value_counts=record.get("null_value_counts"),
            nan_value_counts=record.get("nan_value_counts"),
            lower_bounds=record.get("lower_bounds"),
            upper_bounds=record.get("upper_bounds"),
            key_metadata=record.get("key_metadata"),
            split_offsets=record.get("split_offsets"),
            sort_order_id=record.get("sort_order_id"),
        )

    @staticmethod
    def from_manifest(manifest: ManifestFile) -> "DataFile":
        """Describe a manifest file itself as an (unpartitioned) Avro data file."""
        if manifest.added_files_count is None or manifest.existing_files_count is None:
            raise DecodeError(manifest.manifest_path, "data file counts are missing")
        return DataFile(
            file_path=manifest.manifest_path,
            file_format=FileFormat.AVRO,
            record_count=manifest.added_files_count + manifest.existing_files_count,
            file_size_in_bytes=manifest.manifest_length,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "file_path": self.file_path,
            "file_format": self.file_format.value,
            "partition": dict(self.partition),
            "record_count": self.record_count,
            "file_size_in_bytes": self.file_size_in_bytes,
            "column_sizes": self.column_sizes,
            "value_counts": self.value_counts,
            "null_value_counts": self.null_value_counts,
            "nan_value_counts": self.nan_value_counts,
            "lower_bounds": self.lower_bounds,
            "upper_bounds": self.upper_bounds,
            "key_metadata": self.key_metadata,
            "split_offsets": self.split_offsets,
            "sort_order_id": self.sort_order_id,
        }
