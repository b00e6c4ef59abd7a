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
from typing import Union

from pyfilescan.table.base_table import BaseTable
from pyfilescan.table.metadata.base_metadata_table import BaseMetadataTable
from pyfilescan.table.metadata.data_files_table import DataFilesTable
from pyfilescan.table.metadata.metadata_table_type import MetadataTableType


def create_metadata_table(table: BaseTable, table_type: Union[MetadataTableType, str]) -> BaseMetadataTable:
    """Create the metadata table ``table_type`` (an enum member or its name) of ``table``."""
    if isinstance(table_type, str):
        table_type = MetadataTableType.from_name(table_type)
    name = f"{table.name()}.{table_type.value}"
    if table_type == MetadataTableType.FILES:
        return DataFilesTable(table.operations(), table, name)
    raise ValueError(f"Unsupported metadata table type: {table_type}")
