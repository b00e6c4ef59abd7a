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

import argparse
import sys
from contextlib import closing
from datetime import datetime

from pyfilescan.catalog.catalog_factory import CatalogFactory


# Configuration
WAREHOUSE = "s3://my-bucket/warehouse"
DATABASE = "analytics.events"  # Database name contains a period
TABLE = "page_views"
# Use backticks to escape database name with period
TABLE_IDENTIFIER = f"`{DATABASE}`.{TABLE}$files"


def timestamp() -> str:
    return datetime.now().strftime('%H:%M:%S')


def format_size(num_bytes: int) -> str:
    for unit in ("B", "KB", "MB", "GB"):
        if num_bytes < 1024:
            return f"{num_bytes:.0f}{unit}"
        num_bytes /= 1024
    return f"{num_bytes:.1f}TB"


def list_files(snapshot_id: int = None) -> None:
    print(f"[{timestamp()}] Connecting to catalog...")
    catalog = CatalogFactory.create({
        "warehouse": WAREHOUSE,
        "metastore": "filesystem",
    })

    print(f"[{timestamp()}] Getting table: {TABLE_IDENTIFIER}")
    files_table = catalog.get_table(TABLE_IDENTIFIER)
    print(f"[{timestamp()}] Files table schema: {files_table.schema().column_names()}")

    scan = files_table.new_scan()
    if snapshot_id is not None:
        scan = scan.use_snapshot(snapshot_id)

    snapshot = scan.snapshot()
    if snapshot is None:
        print(f"[{timestamp()}] Table has no snapshot yet")
        return
    print(f"[{timestamp()}] Snapshot {snapshot.id}: {snapshot.manifest_list_location()}")
    print("-" * 70)

    total_files = 0
    total_bytes = 0
    total_records = 0
    for task in scan.plan_files():
        manifest = task.file()
        print(f"Manifest {manifest.file_path} ({format_size(task.length())}, "
              f"{manifest.record_count} files)")
        with closing(task.rows()) as rows:
            for data_file in rows:
                total_files += 1
                total_bytes += data_file.file_size_in_bytes
                total_records += data_file.record_count
                print(f"  {data_file.file_path} partition={data_file.partition} "
                      f"records={data_file.record_count} size={format_size(data_file.file_size_in_bytes)}")

    print("-" * 70)
    print(f"Summary: {total_files} files, {total_records} records, {format_size(total_bytes)}")


def parse_args():
    parser = argparse.ArgumentParser(description="List the data files of a table snapshot.")
    parser.add_argument(
        "--snapshot",
        type=int,
        default=None,
        help="Snapshot ID to list (default: latest)"
    )
    return parser.parse_args()


if __name__ == "__main__":
    args = parse_args()
    try:
        list_files(args.snapshot)
    except KeyboardInterrupt:
        print(f"\n[{timestamp()}] Interrupted by user")
        sys.exit(0)
