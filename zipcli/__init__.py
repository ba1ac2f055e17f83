"""
================================================================================
zipcli - create and extract ZIP archives of files, folders, and symlinks.

The main entry points, all importable from here:

   ZipCLI(options)                       merged options + both services
   BuildService(options).add(paths)      await .save() to zip
   ExtractService(options)               await .extract(archives) to unzip
   Options(**values)                     the resolved options object

Command-line use is documented in cli.py ("zipcli --help").
================================================================================
"""

__version__ = '1.0.0'

from .zipoptions import (Options, ZipCLIError, ConfigError, OutputError,
                         NoEntriesError, ModeError)
from .zipbuild import BuildService, Entry
from .zipextract import ExtractService
from .zipcli import ZipCLI
