"""
================================================================================
cli.py - the zipcli command line.

Usage:
   zipcli [options] add <entries...>        zip files and folders
   zipcli [options] extract <archives...>   unzip archives
   zipcli [options]                         run what the config file says

Options may come before or after the command.  Without -o/--output, "add"
writes the zip to stdout and "extract" writes file contents to stdout, so
both compose with pipes:

   zipcli add dist -i '*.map' > dist.zip
   zipcli extract dist.zip -o /tmp/dist -V

Flags that are not given leave configuration-file values alone; use
--noconfig to ignore configuration files altogether.  Errors are shown as
"Error: <message>" on stderr, with exit status 1.
================================================================================
"""

import argparse
import asyncio
import sys

from . import __version__
from .zipcli import ZipCLI

DESCRIPTION = 'Create and extract ZIP archives of files, folders and symlinks.'



def make_parser():
    common = argparse.ArgumentParser(add_help=False, argument_default=argparse.SUPPRESS)
    common.add_argument('-l', '--level', dest='compression_level', type=int,
                        choices=range(10), metavar='N',
                        help='compression level, 0 (store) to 9 (default: 5)')
    common.add_argument('-o', '--output', dest='output_entry', metavar='PATH',
                        help='output file or directory (default: stdout)')
    common.add_argument('-i', '--ignore', dest='ignore_entries', action='append',
                        metavar='PATTERN',
                        help='ignore files and directories matching PATTERN (repeatable)')
    common.add_argument('-f', '--force', action='store_true',
                        help='overwrite existing files, create missing directories')
    common.add_argument('-d', '--dereference', dest='dereference_links', action='store_true',
                        help='zip the items symbolic links refer to, not the links')
    common.add_argument('--skip-cruft', dest='skip_cruft', action='store_true',
                        help='also ignore hidden and metadata files (.DS_Store, Thumbs.db...)')
    common.add_argument('-q', '--quiet', action='store_true',
                        help='no progress bar and no summary')
    common.add_argument('-V', '--verbose', action='store_true',
                        help='enable logging to stderr')
    common.add_argument('-c', '--config', dest='config_file', metavar='FILE',
                        help='use this configuration file instead of searching')
    common.add_argument('--noconfig', dest='config_file', action='store_false',
                        help='do not use any configuration file')

    parser = argparse.ArgumentParser(prog='zipcli', description=DESCRIPTION, parents=[common])
    parser.add_argument('-v', '--version', action='version',
                        version='%(prog)s ' + __version__)

    commands = parser.add_subparsers(dest='command', metavar='<command>')
    add = commands.add_parser('add', parents=[common],
                              help='Add files to the ZIP archive.')
    add.add_argument('entries', nargs='+', metavar='entries')
    extract = commands.add_parser('extract', parents=[common],
                                  help='Extract files from ZIP archive(s).')
    extract.add_argument('entries', nargs='+', metavar='archives')
    return parser



def run(parser, args):
    command = args.pop('command', None)
    entries = args.pop('entries', None)
    cli = ZipCLI(args)
    options = cli.options

    if command == 'add':
        build = asyncio.run(cli.add(entries).save())
        if build.output_file and not options.quiet:
            print('Done compressing %d files to "%s".'
                  % (build.compressed_files_count, build.output_file))

    elif command == 'extract':
        extract = asyncio.run(cli.extract(entries))
        if extract.output_dir and not options.quiet:
            print('Done extracting %d files to "%s".'
                  % (extract.extracted_files_count, extract.output_dir))

    else:
        if not options.mode and not cli.config_file:
            parser.print_help(sys.stderr)
        asyncio.run(cli.file_mode())



def main(argv=None):
    parser = make_parser()
    args = vars(parser.parse_args(argv))
    try:
        run(parser, args)
    except Exception as why:
        print('Error:', why, file=sys.stderr)
        return 1
    return 0



if __name__ == '__main__':
    sys.exit(main())
