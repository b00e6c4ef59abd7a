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
Command line entry point.

    pyfilescan files <warehouse> <table> [--snapshot S] [--output FMT]
                     [--filter EXPR ...] [--columns C1,C2] [--limit N] [-v]
"""

import argparse
import sys

from pyfilescan.cli.utils import FORMATTERS

SNAPSHOT_HELP = ("which snapshot to read: latest (default), earliest, an id, "
                 "snapshot:ID or time:TIMESTAMP such as time:-1h or time:2024-01-15")


def setup_files_parser(parser: argparse.ArgumentParser) -> None:
    parser.add_argument('warehouse', help='warehouse root, a local path or a filesystem URI')
    parser.add_argument('table', help='db.table, db.table$files or `quoted.db`.table')
    parser.add_argument('-s', '--snapshot', default='latest', help=SNAPSHOT_HELP)
    parser.add_argument('-o', '--output', choices=sorted(FORMATTERS), default='jsonl',
                        help='row format written to stdout (default: %(default)s)')
    parser.add_argument('-f', '--filter', dest='filters', action='append', metavar='EXPR',
                        help='keep files matching col=val, col>val or col~prefix; repeatable')
    parser.add_argument('-c', '--columns', help='comma separated columns to print')
    parser.add_argument('-n', '--limit', type=int, help='print at most N files')
    parser.add_argument('-v', '--verbose', action='store_true', help='log progress to stderr')


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='pyfilescan', description='Inspect table metadata.')
    commands = parser.add_subparsers(dest='command', required=True)
    setup_files_parser(commands.add_parser(
        'files',
        help='list the data files of a snapshot',
        description='List the live data files of a snapshot together with their '
                    'partition values and column statistics.'))
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == 'files':
        from pyfilescan.cli.files import run_files
        return run_files(args)
    return 0


if __name__ == '__main__':
    sys.exit(main())
