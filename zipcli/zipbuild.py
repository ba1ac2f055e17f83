"""
================================================================================
zipbuild.py - archive creates (zips) for the zipcli system.

BuildService resolves every path the user names into archive entries and
writes them all into one new zipfile:

   service = BuildService(options).add(['dist', 'README.md'])
   await service.save()
   print(service.compressed_files_count, service.stats)

ENTRY RESOLUTION:
   Each root path becomes an Entry of (absolute path, archive path), where
   the archive path is the root's base name: 'build/dist' is zipped as
   'dist/...'.  A root of '.' or 'dir/.' (or the filesystem root) has an
   empty archive path, so its contents land at the top of the archive
   instead of in a folder named after the current directory.

   Each entry is lstat()'d, and never stat()'d, so that links are seen as
   links: folders are walked, regular files are added, links are added or
   followed per "dereference_links", and everything else (FIFOs, sockets,
   devices) is reported and skipped.  Items matching the ignore-list are
   skipped before any of this, and so are their subtrees.

FOLDERS:
   Folders are added as entries of their own (zero length, trailing '/')
   so that empty folders and folder modtimes survive the trip; extracts
   restore folder modtimes after filling them.

SYMLINKS:
   By default links are zipped as links: see zipsymlinks.py.  With
   "dereference_links" the item a link refers to is zipped in its place,
   under the link's name.  Two cases are still zipped as links then: links
   whose referent is missing (programs should not silently drop content),
   and links to a folder that contains the link itself (following them
   would never end).  The latter are detected by (st_dev, st_ino) pairs of
   the folders on the current path.

ASYNC I/O:
   Root entries are resolved concurrently, and all blocking filesystem
   calls run in FileService's thread pool; entries within one folder are
   taken in sorted order so output is stable.  The first failure (say, a
   root path that does not exist) ends the save.  Archive members are kept
   in memory, keyed by archive path, one ordered dict per root; the dicts
   are merged in root order once all roots are done, so the archive's
   order never depends on timing, and a later entry (or later root) with
   the same archive path replaces an earlier one.
================================================================================
"""

import collections
import io
import os
import stat as statmodule
import sys
from zipfile import ZipFile, ZIP_DEFLATED, ZIP_STORED

from .zipfiles import FileService, gather_all
from .zipignore import IgnoreList
from .zipmodtime import make_zipinfo
from .zipoptions import Options
from .zipprogress import progress_bar
from .zipstats import CreateStats
from .zipsymlinks import make_symlink_info
from .ziptrace import getLogger, tracer

log = getLogger(__name__)

Entry = collections.namedtuple('Entry', 'resolved_path zip_path')



def make_entry(rawentry):
    """
    Map a user-supplied path to its Entry; see ENTRY RESOLUTION above.
    """
    resolvedpath = os.path.abspath(rawentry)
    lastpart = os.path.basename(rawentry.rstrip('/\\'))
    basename = os.path.basename(os.path.normpath(rawentry))

    # 'dir/.' as well as '.': contents go to the archive root
    if lastpart in ('', os.curdir) or basename in ('', os.curdir):
        zippath = ''
    elif basename == os.pardir:
        zippath = os.path.basename(resolvedpath)
    else:
        zippath = basename
    return Entry(resolvedpath, zippath)



def join_zip(zippath, name):
    return zippath + '/' + name if zippath else name



#===============================================================================



class BuildService:

    def __init__(self, options=None, trace=None):
        self.options      = options or Options()
        self.trace        = trace or tracer(log)
        self.file_service = FileService(self.options, self.trace)
        self.ignore_list  = IgnoreList(self.options.ignore_entries, cruft=self.options.skip_cruft)
        self.entries      = []
        self.members      = {}
        self.stats        = CreateStats()

        output = self.options.output_entry
        self.output_file = os.path.abspath(output) if output else None

        level = self.options.compression_level
        self.compression = ZIP_STORED if level == 0 else ZIP_DEFLATED

    @property
    def compressed_files_count(self):
        return self.stats.files + self.stats.links

    def add(self, rawentries):
        count = len(rawentries)
        self.trace('Adding %d entr%s to ZIP file.' % (count, 'y' if count == 1 else 'ies'))
        self.entries = [make_entry(rawentry) for rawentry in rawentries]
        return self

    #
    # top level
    #

    async def save(self):
        """
        -----------------------------------------------------------------------
        Check the output, resolve all entries, compress, and write the zip
        to the output file or to stdout.  Raises OutputError for a bad
        output, and OSError for unreadable entries, before anything is
        written.  Returns self, with counts in "stats".
        -----------------------------------------------------------------------
        """
        self.members = {}
        self.stats   = CreateStats()
        try:
            if self.output_file:
                self.output_file = await self.file_service.check_output(self.output_file)

            rootmembers = await gather_all(self.check_root(entry) for entry in self.entries)
            for members in rootmembers:
                for (zipinfo, data) in members.values():
                    self.store(self.members, zipinfo, data)
            data = await self.get_buffer()

            if self.output_file:
                self.trace('Saving finished zip file to "%s" ...' % self.output_file)
                await self.file_service.save_file(data, self.output_file)
            else:
                stdout = sys.stdout.buffer
                stdout.write(data)
                stdout.flush()
        finally:
            self.file_service.close()

        self.trace('Zipped:', self.stats)
        return self

    async def get_buffer(self):
        """The archive's bytes, compressed in the pool"""
        return await self.file_service.run_async(self.compress)

    def compress(self):
        level = self.options.compression_level if self.compression == ZIP_DEFLATED else None
        buffer = io.BytesIO()

        with progress_bar('Compressing', len(self.members), self.options.quiet) as bar:
            with ZipFile(buffer, mode='w', compression=self.compression,
                         compresslevel=level, allowZip64=True) as zipfile:
                for (zipinfo, data) in self.members.values():
                    zipfile.writestr(zipinfo, data, compresslevel=level)
                    bar.update(1)
        return buffer.getvalue()

    def store(self, members, zipinfo, data):
        if zipinfo.filename in members:
            self.trace('--Replacing duplicate entry', zipinfo.filename)
            del members[zipinfo.filename]
        members[zipinfo.filename] = (zipinfo, data)

    #
    # traversal
    #

    async def check_root(self, entry):
        members = {}
        await self.check_entry(entry, members)
        return members

    async def check_entry(self, entry, members, ancestors=frozenset()):
        """
        -----------------------------------------------------------------------
        Resolve one entry by its lstat() type and hand it to the matching
        adder.  "ancestors" holds the (st_dev, st_ino) of the folders above
        this entry on the current path, for recursive-link checks; "members"
        is the ordered dict of the root being walked.
        -----------------------------------------------------------------------
        """
        path = entry.resolved_path
        filestat = await self.file_service.lstat(path)

        ignored = self.ignore_list.match(path, entry.zip_path)
        if ignored:
            self.stats.ignored += 1
            self.trace('Found %s. Not adding since it\'s on the ignore list:' % path, ignored)
            return

        if path == self.output_file:
            self.stats.ignored += 1
            self.trace('--Skipped the output file itself', path)
            return

        mode = filestat.st_mode
        if statmodule.S_ISDIR(mode):
            self.trace('Found directory "%s".' % path)
            await self.walk_dir(entry, filestat, members, ancestors)

        elif statmodule.S_ISREG(mode):
            self.trace('Found file "%s".' % path)
            await self.add_file(entry, filestat, members)

        elif statmodule.S_ISLNK(mode):
            self.trace('Found symbolic link "%s".' % path)
            await self.add_link(entry, filestat, members, ancestors)

        else:
            # fifo, socket, device
            self.stats.unknowns += 1
            self.trace('Unknown file type.', filestat)
            print("Can't read: %s. Ignoring." % path, file=sys.stderr)

    async def walk_dir(self, entry, dirstat, members, ancestors=frozenset()):
        self.trace('Walking directory %s ...' % entry.resolved_path)

        if entry.zip_path:
            self.stats.folders += 1
            self.store(members, make_zipinfo(entry.zip_path, dirstat, isdir=True), b'')

        ancestors = ancestors | {(dirstat.st_dev, dirstat.st_ino)}
        for name in await self.file_service.listdir(entry.resolved_path):
            await self.check_entry(Entry(os.path.join(entry.resolved_path, name),
                                         join_zip(entry.zip_path, name)),
                                   members, ancestors)

    async def add_file(self, entry, filestat, members, is_link=False):
        """
        Add a regular file's data, or a link's path text if "is_link".
        """
        path = entry.resolved_path
        if is_link:
            linkpath = await self.file_service.read_link(path)
            data     = linkpath.encode('utf8', 'surrogateescape')
            isdir    = await self.file_service.run_async(os.path.isdir, path)
            zipinfo  = make_symlink_info(entry.zip_path, filestat, isdir, self.compression)
            self.stats.links += 1
        else:
            data     = await self.file_service.read_file(path)
            zipinfo  = make_zipinfo(entry.zip_path, filestat, compress_type=self.compression)
            self.stats.files += 1

        self.trace('Adding %s "%s" to ZIP file ...\n\t\t=> %s' %
                   ('link' if is_link else 'file', path, zipinfo.filename))
        self.store(members, zipinfo, data)

    async def add_link(self, entry, linkstat, members, ancestors=frozenset()):
        path = entry.resolved_path
        if not self.options.dereference_links:
            await self.add_file(entry, linkstat, members, is_link=True)
            return

        try:
            realstat = await self.file_service.stat(path)
        except OSError as why:
            # dangling or looping: keep the link itself
            self.trace('--Invalid link copied', path, why)
            await self.add_file(entry, linkstat, members, is_link=True)
            return

        if (statmodule.S_ISDIR(realstat.st_mode) and
            (realstat.st_dev, realstat.st_ino) in ancestors):
            self.trace('--Recursive link copied', path)
            await self.add_file(entry, linkstat, members, is_link=True)
            return

        realpath = await self.file_service.real_path(path)
        self.trace('Found real path "%s" for symbolic link.' % realpath)
        await self.check_entry(Entry(realpath, entry.zip_path), members, ancestors)
