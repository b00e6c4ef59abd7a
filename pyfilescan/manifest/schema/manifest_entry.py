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
from dataclasses import dataclass
from enum import IntEnum
from typing import Any, Dict, Optional

from pyfilescan.manifest.schema import data_file
from pyfilescan.manifest.schema.data_file import DataFile
from pyfilescan.schema.types import (IntegerType, LongType, NestedField,
                                     StructType)


class ManifestEntryStatus(IntEnum):
    EXISTING = 0
    ADDED = 1
    DELETED = 2


def get_type(partition_type: StructType) -> StructType:
    return StructType(
        NestedField(0, "status", IntegerType, required=True),
        NestedField(1, "snapshot_id", LongType, required=False),
        NestedField(2, "data_file", data_file.get_type(partition_type), required=True),
    )


@dataclass
class ManifestEntry:
    status: ManifestEntryStatus
    snapshot_id: Optional[int]
    data_file: DataFile

    @classmethod
    def from_record(cls, record: Dict[str, Any]) -> "ManifestEntry":
        return cls(
            status=ManifestEntryStatus(record.get("status")),
            snapshot_id=record.get("snapshot_id"),
            data_file=record.get("data_file"),
        )

    def is_live(self) -> bool:
        return self.status != ManifestEntryStatus.DELETED
