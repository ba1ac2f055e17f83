"""
================================================================================
zipextract.py - archive extracts (unzips) for the zipcli system.

ExtractService unzips one or more archives into an output folder, or writes
the contents of their files to stdout when no folder is given (the way
"unzip -p" does, for piping a single file out of an archive):

   service = ExtractService(options)
   await service.extract(['dist.zip'])
   print(service.extracted_files_count, service.stats)

SAVEPATHS:
   An item's host path is not always os.path.join(outdir, name).  Leading
   slashes, Windows drive names, '.' and '..' parts are dropped from the
   archive name first, so that every item is stored under the output folder
   no matter what the archive says; items whose name is empty after this
   are skipped.  Ignore patterns apply to extracts too.

   Links already in the output folder (made by an earlier archive of the
   same run, or there before it) could still lead a write elsewhere, so
   each item's folder is resolved with realpath() before anything is made
   in it, and items that would land outside the output folder are
   reported and skipped.

ORDER:
   Folders are made first; regular files are then written concurrently and
   awaited together; links are made last, so a link in one archive cannot
   redirect the write of a file that follows it in that archive.  Folder
   permissions and modtimes are set at the very end, after their contents
   are written, because writing into a folder changes its modtime and a
   read-only folder could not be filled.

METADATA:
   Unix permissions saved in the archive (external_attr >> 16) are applied
   to files, folders and links (where the platform can chmod a link), and
   modtimes are restored from UTC timestamps when present (zipmodtime.py).
   Failures while setting metadata are reported and skipped; failures
   while writing data end the extract.
================================================================================
"""

import os
import re
import sys
import threading
from zipfile import ZipFile

from .zipfiles import FileService, gather_all
from .zipignore import IgnoreList
from .zipmodtime import entry_permissions, get_modtime
from .zipoptions import Options
from .zipprogress import progress_bar
from .zipstats import ExtractStats
from .zipsymlinks import decode_linkpath, extract_symlink, is_symlink
from .ziptrace import getLogger, tracer

log = getLogger(__name__)

RunningOnWindows = sys.platform.startswith('win')
DRIVE = re.compile(r'^[A-Za-z]:$')



def sanitize(zippath):
    """
    The host-relative path for an archive name, or '' if nothing is left.
    """
    if RunningOnWindows:
        zippath = zippath.replace('\\', '/')
    parts = [part for part in zippath.split('/') if part not in ('', os.curdir, os.pardir)]
    if parts and DRIVE.match(parts[0]):
        parts = parts[1:]
    return os.path.join(*parts) if parts else ''



#===============================================================================



class ExtractService:

    def __init__(self, options=None, trace=None):
        self.options      = options or Options()
        self.trace        = trace or tracer(log)
        self.file_service = FileService(self.options, self.trace)
        self.ignore_list  = IgnoreList(self.options.ignore_entries, cruft=self.options.skip_cruft)
        self.stats        = ExtractStats()
        self.lock         = threading.Lock()

        output = self.options.output_entry
        self.output_dir = os.path.abspath(output) if output else None

    @property
    def extracted_files_count(self):
        return self.stats.files + self.stats.links

    async def extract(self, rawentries):
        """
        -----------------------------------------------------------------------
        Unzip each archive in "rawentries", in order.  Missing or damaged
        archives raise (OSError, zipfile.BadZipFile) and end the run; items
        already extracted from earlier archives are left in place.
        -----------------------------------------------------------------------
        """
        self.stats = ExtractStats()
        try:
            for rawentry in rawentries:
                if self.output_dir:
                    await self.file_service.ensure_dir(self.output_dir)

                zipname = os.path.abspath(rawentry)
                self.trace('Unzipping from', zipname, 'to', self.output_dir or 'stdout')

                zipfile = await self.file_service.run_async(ZipFile, zipname, mode='r')
                with zipfile:
                    if self.output_dir:
                        await self.extract_all(zipfile)
                    else:
                        await self.print_stream(zipfile)
        finally:
            self.file_service.close()

        self.trace('Unzipped:', self.stats)
        return self

    def read_member(self, zipfile, zipinfo):
        # one reader at a time: ZipFile's handle counts are not thread safe
        with self.lock:
            return zipfile.read(zipinfo)

    def ignored(self, zipinfo, savepath):
        matched = self.ignore_list.match(savepath, zipinfo.filename)
        if matched:
            self.stats.ignored += 1
            self.trace('Found %s. Not extracting since it\'s on the ignore list:' % zipinfo.filename, matched)
        return bool(matched)

    #
    # to stdout
    #

    async def print_stream(self, zipfile):
        stdout = sys.stdout.buffer
        for zipinfo in zipfile.infolist():
            if zipinfo.is_dir() or self.ignored(zipinfo, zipinfo.filename):
                continue
            data = await self.file_service.run_async(self.read_member, zipfile, zipinfo)
            stdout.write(data)
            if is_symlink(zipinfo):
                self.stats.links += 1
            else:
                self.stats.files += 1
        stdout.flush()

    #
    # to a folder
    #

    async def extract_all(self, zipfile):
        folders, files, links = [], [], []
        for zipinfo in zipfile.infolist():
            relpath = sanitize(zipinfo.filename)
            if not relpath:
                self.trace('--Skipped item with no usable name:', repr(zipinfo.filename))
                continue

            savepath = os.path.join(self.output_dir, relpath)
            if self.ignored(zipinfo, savepath):
                continue

            if is_symlink(zipinfo):
                links.append((zipinfo, savepath))
            elif zipinfo.is_dir():
                folders.append((zipinfo, savepath))
            else:
                files.append((zipinfo, savepath))

        folders = [pair for pair in folders if await self.stays_inside(*pair, isdir=True)]
        files   = [pair for pair in files if await self.stays_inside(*pair)]
        links   = [pair for pair in links if await self.stays_inside(*pair)]

        # all folders up front: concurrent writes never race on makedirs
        needed = {savepath for (zipinfo, savepath) in folders}
        needed.update(os.path.dirname(savepath) for (zipinfo, savepath) in files + links)
        await self.file_service.run_async(_makedirs, sorted(needed))

        with progress_bar('Extracting', len(files) + len(links), self.options.quiet) as bar:
            async def extract_file(zipinfo, savepath):
                data = await self.file_service.run_async(self.read_member, zipfile, zipinfo)
                await self.file_service.write_file(data, savepath)
                self.stats.files += 1
                self.trace('Extracted %s\n\t\t=> %s' % (zipinfo.filename, savepath))
                await self.file_service.run_async(self.set_metadata, zipinfo, savepath)
                bar.update(1)

            await gather_all(extract_file(zipinfo, savepath) for (zipinfo, savepath) in files)

            for (zipinfo, savepath) in links:
                # an earlier link of this archive may lead elsewhere now
                if not await self.stays_inside(zipinfo, savepath):
                    bar.update(1)
                    continue
                data = await self.file_service.run_async(self.read_member, zipfile, zipinfo)
                linkpath = decode_linkpath(data, self.trace)
                await self.file_service.run_async(extract_symlink, zipinfo, savepath,
                                                  linkpath, trace=self.trace)
                self.stats.links += 1
                self.trace('(Link) Extracted %s\n\t\t=> %s' % (zipinfo.filename, savepath))
                await self.file_service.run_async(self.set_metadata, zipinfo, savepath)
                bar.update(1)

        # deepest first: a parent's chmod must not lock out its children
        for (zipinfo, savepath) in sorted(folders, key=lambda pair: pair[1], reverse=True):
            self.stats.folders += 1
            self.trace('Extracted %s\n\t\t=> %s' % (zipinfo.filename, savepath))
            await self.file_service.run_async(self.set_metadata, zipinfo, savepath)

    async def stays_inside(self, zipinfo, savepath, isdir=False):
        """
        False, reported, if links already on disk would take the item (or,
        for a folder, the folder itself) outside the output folder.
        """
        hostpath = savepath if isdir else os.path.dirname(savepath)
        if await self.file_service.run_async(_inside, hostpath, self.output_dir):
            return True
        self.stats.ignored += 1
        self.trace('--Link in output folder leads outside it', savepath)
        print("Can't extract: %s is outside of %s. Ignoring." % (zipinfo.filename, self.output_dir),
              file=sys.stderr)
        return False

    def set_metadata(self, zipinfo, savepath):
        """
        -----------------------------------------------------------------------
        Propagate saved permissions (Unix hosts only, and only if the zip
        recorded any) and the modtime to one extracted item.  Links are
        changed themselves where the platform allows it, else left alone;
        there is no portable way to set a link's modtime otherwise.
        -----------------------------------------------------------------------
        """
        islink = os.path.islink(savepath)

        perms = entry_permissions(zipinfo)
        if perms and not RunningOnWindows:
            try:
                if not islink:
                    os.chmod(savepath, perms)
                elif os.chmod in os.supports_follow_symlinks:
                    os.chmod(savepath, perms, follow_symlinks=False)
            except (OSError, NotImplementedError) as why:
                self.trace('--Error setting permissions', savepath, why)

        modtime = get_modtime(zipinfo)
        try:
            if not islink:
                os.utime(savepath, (modtime, modtime))
            elif os.utime in os.supports_follow_symlinks:
                os.utime(savepath, (modtime, modtime), follow_symlinks=False)
        except (OSError, NotImplementedError) as why:
            self.trace('--Error setting modtime', savepath, why)



def _makedirs(dirpaths):
    for dirpath in dirpaths:
        if dirpath:
            os.makedirs(dirpath, exist_ok=True)



def _inside(path, rootdir):
    rootdir = os.path.realpath(rootdir)
    return os.path.commonpath([os.path.realpath(path), rootdir]) == rootdir
