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
from typing import Dict, Optional

from pyfilescan.common.json_util import json_field


@dataclass
class Snapshot:
    """An immutable table state; points at the manifest list describing its files."""

    snapshot_id: int = json_field("snapshot-id", default=None)
    parent_snapshot_id: Optional[int] = json_field("parent-snapshot-id", default=None)
    timestamp_ms: int = json_field("timestamp-ms", default=None)
    manifest_list: str = json_field("manifest-list", default=None)
    schema_id: Optional[int] = json_field("schema-id", default=None)
    summary: Dict[str, str] = json_field("summary", default={})

    @property
    def id(self) -> int:
        return self.snapshot_id

    def manifest_list_location(self) -> str:
        return self.manifest_list
