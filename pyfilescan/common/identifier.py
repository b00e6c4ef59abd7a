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
from typing import List, Optional

from pyfilescan.common.json_util import json_field

SYSTEM_TABLE_SPLITTER = '$'


@dataclass
class Identifier:
    """Names a table as ``database.table``, optionally suffixed ``$<metadata table>``."""

    database: str = json_field("database", default=None)
    object: str = json_field("object", default=None)

    @classmethod
    def create(cls, database: str, object: str) -> "Identifier":
        return cls(database, object)

    @classmethod
    def from_string(cls, full_name: str) -> "Identifier":
        """
        Parse ``db.table``, ``db.table$files`` or backtick-quoted segments.

        Without backticks the name is split on the first period only, so
        ``db.my.table`` names the table ``my.table``. A database name that
        itself contains periods must be quoted: ```my.db`.table``.

        Raises:
            ValueError: If the name is empty or does not have two parts
        """
        if not full_name or not full_name.strip():
            raise ValueError("Table name cannot be empty")

        if '`' in full_name:
            parts = cls._split_quoted(full_name)
        else:
            parts = full_name.split(".", 1)

        if len(parts) != 2 or not parts[0] or not parts[1]:
            raise ValueError(f"Invalid table identifier: {full_name}")
        return cls(parts[0], parts[1])

    @staticmethod
    def _split_quoted(full_name: str) -> List[str]:
        parts = []
        current = ""
        quoted = False
        for char in full_name:
            if char == '`':
                quoted = not quoted
            elif char == '.' and not quoted:
                parts.append(current)
                current = ""
            else:
                current += char
        if quoted:
            raise ValueError(f"Unclosed backtick in identifier: {full_name}")
        if current:
            parts.append(current)
        return parts

    def get_full_name(self) -> str:
        return f"{self.database}.{self.object}"

    def get_database_name(self) -> str:
        return self.database

    def get_object_name(self) -> str:
        return self.object

    def get_table_name(self) -> str:
        return self.object.split(SYSTEM_TABLE_SPLITTER, 1)[0]

    def get_system_table_name(self) -> Optional[str]:
        if not self.is_system_table():
            return None
        return self.object.split(SYSTEM_TABLE_SPLITTER, 1)[1]

    def is_system_table(self) -> bool:
        return SYSTEM_TABLE_SPLITTER in self.object
