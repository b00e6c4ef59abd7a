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
Tests for Identifier parsing, including backticks and metadata table suffixes.
"""

import unittest

from pyfilescan.common.identifier import Identifier


class IdentifierTest(unittest.TestCase):
    """Tests for Identifier.from_string()."""

    def test_simple_identifier(self):
        identifier = Identifier.from_string("mydb.mytable")
        self.assertEqual(identifier.database, "mydb")
        self.assertEqual(identifier.object, "mytable")

    def test_split_on_first_period(self):
        """Periods after the first one belong to the table name."""
        identifier = Identifier.from_string("mydb.my.table.name")
        self.assertEqual(identifier.database, "mydb")
        self.assertEqual(identifier.object, "my.table.name")

    def test_backtick_quoted_database_name_with_period(self):
        identifier = Identifier.from_string("`analytics.private`.page_views")
        self.assertEqual(identifier.database, "analytics.private")
        self.assertEqual(identifier.object, "page_views")

    def test_backtick_quoted_both_parts(self):
        identifier = Identifier.from_string("`db.name`.`table.name`")
        self.assertEqual(identifier.database, "db.name")
        self.assertEqual(identifier.object, "table.name")

    def test_get_full_name(self):
        identifier = Identifier.create("mydb", "mytable")
        self.assertEqual(identifier.get_full_name(), "mydb.mytable")

    def test_plain_table_is_not_system_table(self):
        identifier = Identifier.from_string("mydb.orders")
        self.assertFalse(identifier.is_system_table())
        self.assertEqual(identifier.get_table_name(), "orders")
        self.assertIsNone(identifier.get_system_table_name())

    def test_files_table_suffix(self):
        identifier = Identifier.from_string("mydb.orders$files")
        self.assertTrue(identifier.is_system_table())
        self.assertEqual(identifier.get_object_name(), "orders$files")
        self.assertEqual(identifier.get_table_name(), "orders")
        self.assertEqual(identifier.get_system_table_name(), "files")

    def test_backtick_database_with_files_suffix(self):
        identifier = Identifier.from_string("`my.db`.orders$files")
        self.assertEqual(identifier.get_database_name(), "my.db")
        self.assertEqual(identifier.get_system_table_name(), "files")

    def test_empty_string_raises_error(self):
        with self.assertRaises(ValueError):
            Identifier.from_string("")

    def test_whitespace_only_raises_error(self):
        with self.assertRaises(ValueError):
            Identifier.from_string("   ")

    def test_no_period_raises_error(self):
        with self.assertRaises(ValueError):
            Identifier.from_string("nodothere")

    def test_unclosed_backtick_raises_error(self):
        with self.assertRaises(ValueError):
            Identifier.from_string("`unclosed.db.mytable")

    def test_too_many_quoted_parts_raises_error(self):
        with self.assertRaises(ValueError):
            Identifier.from_string("`a`.`b`.`c`")


if __name__ == '__main__':
    unittest.main()
