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
Decoder for Avro manifest lists and manifest files.

Avro resolves nested records by name, and writers have not always agreed on
those names: iceberg-style writers name a nested record after the id of the
field holding it (``r508`` for the partition summaries of a manifest list),
others after the field itself (``partitions``). A decode therefore takes a
remap table from wire record names to ``RecordKind``; each kind is bound to
one record class. A wire name with no remap falls through unchanged and is
resolved by its own name. A record that resolves to no kind is returned as
a plain dict, except a projected root record, which must resolve to one.

Fields are projected onto a target ``StructType`` by field id when both sides
carry one, otherwise by name, so renamed fields written by older versions
still land on the current names.
"""

import json
import logging
import zlib
from enum import Enum
from typing import Any, Callable, Dict, Iterator, List, Optional

import fastavro

from pyfilescan.exceptions import DecodeError
from pyfilescan.manifest.schema.data_file import DataFile
from pyfilescan.manifest.schema.manifest_entry import ManifestEntry
from pyfilescan.manifest.schema.manifest_file import (ManifestFile,
                                                      PartitionFieldSummary)
from pyfilescan.schema.types import (IcebergType, ListType, MapType,
                                     StructType)

logger = logging.getLogger(__name__)

# fastavro reports malformed input through these rather than one base class
_READ_ERRORS = (ValueError, EOFError, IndexError, KeyError, TypeError, zlib.error)


class RecordKind(Enum):
    MANIFEST_FILE = "manifest_file"
    PARTITION_FIELD_SUMMARY = "partition_field_summary"
    MANIFEST_ENTRY = "manifest_entry"
    DATA_FILE = "data_file"
    PARTITION_DATA = "partition_data"


RECORD_CLASSES: Dict[RecordKind, Callable[[Dict[str, Any]], Any]] = {
    RecordKind.MANIFEST_FILE: ManifestFile.from_record,
    RecordKind.PARTITION_FIELD_SUMMARY: PartitionFieldSummary.from_record,
    RecordKind.MANIFEST_ENTRY: ManifestEntry.from_record,
    RecordKind.DATA_FILE: DataFile.from_record,
    RecordKind.PARTITION_DATA: dict,
}

_KINDS_BY_NAME = {kind.value: kind for kind in RecordKind}


class AvroDecoder:
    """Decodes Avro container streams into typed records, lazily."""

    def __init__(self, record_classes: Dict[RecordKind, Callable[[Dict[str, Any]], Any]] = None):
        self.record_classes = RECORD_CLASSES if record_classes is None else record_classes

    def read(
        self,
        file_io,
        location: str,
        target_type: Optional[StructType] = None,
        name_remap: Optional[Dict[str, RecordKind]] = None,
        reuse_containers: bool = False,
    ) -> Iterator[Any]:
        """
        Open ``location`` and decode it.

        The file is opened on the first ``next()`` and closed when the
        iterator is exhausted, closed early, or fails.
        """
        with file_io.new_input_stream(location) as input_stream:
            yield from self.decode(input_stream, target_type, name_remap, reuse_containers, location)

    def decode(
        self,
        input_stream,
        target_type: Optional[StructType] = None,
        name_remap: Optional[Dict[str, RecordKind]] = None,
        reuse_containers: bool = False,
        location: str = "<stream>",
    ) -> Iterator[Any]:
        """
        Decode an Avro container stream into records.

        Args:
            input_stream: Readable binary stream positioned at the container header
            target_type: Projection; None keeps every field the writer wrote
            name_remap: Wire record name to RecordKind
            reuse_containers: Permits the decoder to reuse record storage between
                items. Records are currently always fresh objects, so callers that
                pass False may keep every record after the iterator advances.
            location: Used in error messages

        Raises:
            DecodeError: On a malformed container or a record the projection rejects
        """
        name_remap = name_remap or {}
        try:
            reader = fastavro.reader(input_stream)
            writer_schema = json.loads(reader.metadata["avro.schema"])
        except _READ_ERRORS as e:
            raise DecodeError(location, f"invalid Avro container: {e}") from e

        named_types: Dict[str, Any] = {}
        self._collect_named_types(writer_schema, None, named_types)
        root = self._resolve(writer_schema, named_types)
        if not isinstance(root, dict) or root.get("type") != "record":
            raise DecodeError(location, f"expected a record schema, got {writer_schema}")

        context = _DecodeContext(location, named_types, name_remap)
        logger.debug("Decoding %s as %s", location, root.get("name"))
        if target_type is not None and self.record_classes.get(self._record_kind(root["name"], context)) is None:
            raise DecodeError(location, f"record {root['name']} has no record kind to project onto")
        records = iter(reader)
        while True:
            try:
                datum = next(records)
            except StopIteration:
                return
            except _READ_ERRORS as e:
                raise DecodeError(location, str(e)) from e
            yield self._read_record(datum, root, target_type, context)

    def _collect_named_types(self, schema: Any, namespace: Optional[str], named: Dict[str, Any]) -> None:
        if isinstance(schema, list):
            for branch in schema:
                self._collect_named_types(branch, namespace, named)
        elif isinstance(schema, dict):
            kind = schema.get("type")
            if kind in ("record", "enum", "fixed", "error"):
                name = schema["name"]
                namespace = schema.get("namespace", namespace)
                named[name.rsplit(".", 1)[-1]] = schema
                full_name = name if "." in name or not namespace else f"{namespace}.{name}"
                named[full_name] = schema
                for f in schema.get("fields", []):
                    self._collect_named_types(f["type"], namespace, named)
            elif kind == "array":
                self._collect_named_types(schema["items"], namespace, named)
            elif kind == "map":
                self._collect_named_types(schema["values"], namespace, named)
            elif isinstance(kind, (dict, list)):
                self._collect_named_types(kind, namespace, named)

    @staticmethod
    def _resolve(schema: Any, named: Dict[str, Any]) -> Any:
        if isinstance(schema, str) and schema in named:
            return named[schema]
        if isinstance(schema, dict) and isinstance(schema.get("type"), (dict, list)):
            return AvroDecoder._resolve(schema["type"], named)
        if isinstance(schema, dict) and isinstance(schema.get("type"), str) and schema["type"] in named:
            return named[schema["type"]]
        return schema

    def _record_kind(self, wire_name: str, context: "_DecodeContext") -> Optional[RecordKind]:
        short_name = wire_name.rsplit(".", 1)[-1]
        for name in (wire_name, short_name):
            if name in context.name_remap:
                return context.name_remap[name]
        return _KINDS_BY_NAME.get(short_name)

    def _read_record(self, datum: Dict[str, Any], schema: Dict[str, Any],
                     target: Optional[StructType], context: "_DecodeContext") -> Any:
        writer_fields: List[Dict[str, Any]] = schema.get("fields", [])
        values: Dict[str, Any] = {}

        if target is None:
            for writer_field in writer_fields:
                values[writer_field["name"]] = self._read_value(
                    datum.get(writer_field["name"]), writer_field["type"], None, context)
        else:
            for target_field in target.fields:
                writer_field = self._match_field(writer_fields, target_field.field_id, target_field.name)
                value = None
                if writer_field is not None:
                    value = self._read_value(
                        datum.get(writer_field["name"]), writer_field["type"], target_field.field_type, context)
                if value is None and target_field.required:
                    raise DecodeError(
                        context.location,
                        f"required field '{target_field.name}' is missing from record {schema.get('name')}"
                    )
                values[target_field.name] = value

        kind = self._record_kind(schema["name"], context)
        record_class = self.record_classes.get(kind) if kind is not None else None
        if record_class is None:
            return values
        try:
            return record_class(values)
        except (ValueError, TypeError, AttributeError) as e:
            raise DecodeError(context.location, f"cannot read {kind.value} record: {e}") from e

    @staticmethod
    def _match_field(writer_fields: List[Dict[str, Any]], field_id: int, name: str) -> Optional[Dict[str, Any]]:
        for writer_field in writer_fields:
            if writer_field.get("field-id") == field_id:
                return writer_field
        for writer_field in writer_fields:
            if writer_field["name"] == name and "field-id" not in writer_field:
                return writer_field
        return None

    def _read_value(self, datum: Any, schema: Any, target: Optional[IcebergType],
                    context: "_DecodeContext") -> Any:
        if datum is None:
            return None
        schema = self._resolve(schema, context.named_types)

        if isinstance(schema, list):
            branches = [b for b in schema if b != "null"]
            if len(branches) == 1:
                return self._read_value(datum, branches[0], target, context)
            return datum

        if not isinstance(schema, dict):
            return datum

        kind = schema.get("type")
        if kind == "record":
            struct = target if isinstance(target, StructType) else None
            return self._read_record(datum, schema, struct, context)

        if kind == "array":
            items = self._resolve(schema["items"], context.named_types)
            if schema.get("logicalType") == "map" and isinstance(items, dict) and items.get("type") == "record":
                key_schema, value_schema = self._key_value_schemas(items)
                value_target = target.value_type if isinstance(target, MapType) else None
                return {
                    self._read_value(item["key"], key_schema, None, context):
                        self._read_value(item.get("value"), value_schema, value_target, context)
                    for item in datum
                }
            element_target = target.element_type if isinstance(target, ListType) else None
            return [self._read_value(item, items, element_target, context) for item in datum]

        if kind == "map":
            value_target = target.value_type if isinstance(target, MapType) else None
            return {k: self._read_value(v, schema["values"], value_target, context) for k, v in datum.items()}

        return datum

    @staticmethod
    def _key_value_schemas(items: Dict[str, Any]):
        fields = {f["name"]: f["type"] for f in items.get("fields", [])}
        return fields.get("key"), fields.get("value")


class _DecodeContext:

    def __init__(self, location: str, named_types: Dict[str, Any], name_remap: Dict[str, RecordKind]):
        self.location = location
        self.named_types = named_types
        self.name_remap = name_remap
