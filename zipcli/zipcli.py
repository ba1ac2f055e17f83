"""
================================================================================
zipcli.py - the ZipCLI facade: options in, services out.

ZipCLI merges the three sources of options (defaults < configuration file <
terminal options), and hands the result to one BuildService and one
ExtractService.  It is what the command line drives, and what scripts can
use directly:

   cli = ZipCLI(output_entry='dist.zip', force=True, quiet=True)
   asyncio.run(cli.add(['dist']).save())

   cli = ZipCLI(config_file='release.zipclirc')
   asyncio.run(cli.file_mode())              # mode and entries from the file
================================================================================
"""

from . import zipconfig, ziptrace
from .zipbuild import BuildService
from .zipextract import ExtractService
from .zipoptions import ConfigError, ModeError, NoEntriesError, Options

log = ziptrace.getLogger(__name__)



class ZipCLI:

    def __init__(self, options=None, trace=None, **kargs):
        self.terminal_options = dict(options or {}, **kargs)
        self.options = Options.merged(self.terminal_options)    # validates names too
        self.config_file = None

        ziptrace.enable(self.options.verbose)
        self.trace = trace or ziptrace.tracer(log)

        self.check_config_file()
        self.trace('Loaded options', self.options)

        self.build_service   = BuildService(self.options, trace)
        self.extract_service = ExtractService(self.options, trace)

    def check_config_file(self):
        """
        -----------------------------------------------------------------------
        Find and apply the configuration file named by "config_file": True
        searches (failures are only reported), a path loads that file
        (failures raise ConfigError), False skips files altogether.
        -----------------------------------------------------------------------
        """
        wanted = self.options.config_file
        if wanted is False:
            self.trace('Not using any configuration file.')
            return

        if isinstance(wanted, str):
            self.apply_config(zipconfig.load(wanted))
        else:
            try:
                self.apply_config(zipconfig.search())
            except ConfigError as why:
                self.trace(why)
                self.trace('Not using any configuration file.')

    def apply_config(self, result):
        if not result or result.isempty:
            self.trace('Not using any configuration file.')
            return

        options = Options.merged(result.config, self.terminal_options)
        self.trace('Using configuration file %s' % result.filepath)
        self.config_file = result.filepath
        self.options = options
        ziptrace.enable(self.options.verbose)

    def add(self, rawentries=None):
        """
        Add files and folders to the archive; "rawentries" default to the
        configuration file's "entries".  Returns the BuildService.
        """
        if not rawentries:
            if self.options.entries:
                rawentries = self.options.entries
            else:
                raise NoEntriesError('No entries to add.')
        return self.build_service.add(rawentries)

    async def extract(self, rawentries=None):
        """
        Extract archives; "rawentries" default to the configuration file's
        "entries".  Returns the ExtractService.
        """
        if not rawentries:
            if self.options.entries:
                rawentries = self.options.entries
            else:
                raise NoEntriesError('No entries to extract.')
        return await self.extract_service.extract(rawentries)

    async def save(self):
        return await self.build_service.save()

    async def file_mode(self):
        """
        Run the mode named by the configuration file (or by "mode"),
        with its entries; terminal options still take precedence.
        """
        if not self.options.mode and not self.config_file:
            raise ModeError('No configuration file and no mode specified.')

        if self.options.mode == 'add':
            build = await self.add().save()
            if self.options.output_entry and not self.options.quiet:
                print('Done compressing %d files to "%s".'
                      % (build.compressed_files_count, build.output_file))
            return self

        elif self.options.mode == 'extract':
            extract = await self.extract()
            if self.options.output_entry and not self.options.quiet:
                print('Done extracting %d files to "%s".'
                      % (extract.extracted_files_count, extract.output_dir))
            return self

        else:
            raise ModeError('No or invalid mode in configuration file defined.')
