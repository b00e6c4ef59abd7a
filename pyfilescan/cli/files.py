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
pyfilescan files command implementation.

Lists the data files of a table snapshot, one row per live manifest entry.
"""

import logging
import sys
from argparse import Namespace
from contextlib import closing
from datetime import datetime

from pyfilescan.catalog.catalog_factory import CatalogFactory
from pyfilescan.cli.utils import (OutputFormatter, get_formatter,
                                  parse_filters, parse_position)
from pyfilescan.common.identifier import SYSTEM_TABLE_SPLITTER, Identifier
from pyfilescan.exceptions import NoSnapshotError
from pyfilescan.table.metadata.metadata_table_type import MetadataTableType

logger = logging.getLogger(__name__)


def print_banner(args: Namespace, verbose: bool = False) -> None:
    if not verbose:
        return

    print("=" * 70, file=sys.stderr)
    print("  pyfilescan files", file=sys.stderr)
    print(f"  Warehouse: {args.warehouse}", file=sys.stderr)
    print(f"  Table: {args.table}", file=sys.stderr)
    print(f"  Snapshot: {args.snapshot}", file=sys.stderr)
    print(f"  Output: {args.output}", file=sys.stderr)
    if args.filters:
        print(f"  Filters: {args.filters}", file=sys.stderr)
    if args.columns:
        print(f"  Columns: {args.columns}", file=sys.stderr)
    if args.limit:
        print(f"  Limit: {args.limit}", file=sys.stderr)
    print("=" * 70, file=sys.stderr)
    print(file=sys.stderr)


def log(msg: str, verbose: bool = False) -> None:
    """Print a timestamped progress message to stderr."""
    if not verbose:
        return
    timestamp = datetime.now().strftime('%H:%M:%S')
    print(f"[{timestamp}] {msg}", file=sys.stderr)


def files_identifier(table_name: str) -> Identifier:
    """Identifier of the files table of ``db.table``; ``db.table$files`` is kept as is."""
    identifier = Identifier.from_string(table_name)
    if identifier.is_system_table():
        return identifier
    return Identifier.create(
        identifier.get_database_name(),
        f"{identifier.get_object_name()}{SYSTEM_TABLE_SPLITTER}{MetadataTableType.FILES.value}",
    )


def list_files(args: Namespace) -> int:
    verbose = args.verbose
    print_banner(args, verbose)

    log("Connecting to catalog...", verbose)
    catalog = CatalogFactory.create({
        "warehouse": args.warehouse,
        "metastore": "filesystem",
    })

    identifier = files_identifier(args.table)
    log(f"Getting table: {identifier.get_full_name()}", verbose)
    files_table = catalog.get_table(identifier)

    scan = files_table.new_scan()
    snapshot_id = parse_position(args.snapshot, files_table.operations().snapshot_manager)
    if snapshot_id is not None:
        scan = scan.use_snapshot(snapshot_id)

    if args.columns:
        scan = scan.select([c.strip() for c in args.columns.split(',')])

    row_filter = parse_filters(args.filters)
    if row_filter is not None:
        scan = scan.filter(row_filter)

    snapshot = scan.snapshot()
    if snapshot is None:
        raise NoSnapshotError(files_table.table().name())
    log(f"Reading snapshot {snapshot.id} ({snapshot.manifest_list_location()})", verbose)
    log(f"Schema: {scan.schema().column_names()}", verbose)

    formatter: OutputFormatter = get_formatter(args.output)
    total_rows = 0
    try:
        with closing(scan.rows()) as rows:
            for row in rows:
                formatter.write(row)
                total_rows += 1
                if args.limit and total_rows >= args.limit:
                    break
    except KeyboardInterrupt:
        log("Interrupted", verbose)
    finally:
        formatter.close()
        sys.stdout.flush()
        log(f"Total: {total_rows} files", verbose)

    return 0


def run_files(args: Namespace) -> int:
    """
    Run the files command.

    Returns:
        Exit code: 0 on success, 1 when the table or its snapshot is missing,
        2 on invalid arguments
    """
    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        stream=sys.stderr,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        return list_files(args)
    except (NoSnapshotError, FileNotFoundError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2
