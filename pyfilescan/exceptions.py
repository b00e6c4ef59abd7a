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
Exceptions raised while scanning table metadata.

Storage failures are reported with the builtin OSError family
(FileNotFoundError when a manifest or snapshot file is missing).
"""


class NoSnapshotError(RuntimeError):
    """The table has no committed snapshot yet."""

    def __init__(self, table_name: str):
        super().__init__(f"Table {table_name} has no snapshot")
        self.table_name = table_name


class DecodeError(ValueError):
    """A manifest or manifest list contains a malformed or incompatible record."""

    def __init__(self, location: str, message: str):
        super().__init__(f"Failed to decode {location}: {message}")
        self.location = location
