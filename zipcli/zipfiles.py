"""
================================================================================
zipfiles.py - filesystem service and output-path validation for zipcli.

FileService wraps the blocking os calls used by creates and extracts in
awaitables: each call is submitted to a thread pool owned by the service and
awaited with asyncio.wrap_future(), so the traversal can keep many files in
flight while the event-loop thread alone touches shared state (the archive
members dict, the counters).  close() releases the pool; it is made again
on demand if the service is reused.

The output checks decide what a destination is and whether it may be written:

   OUTPUT IS A FILE when it is not an existing directory and its base name
   ends in an extension ("dist.zip", "out/x.jar").  Its folder must exist
   and be writable, and an existing file is replaced only with "force".

   OUTPUT IS A FOLDER otherwise ("out", "out/").  It must exist and be
   writable; with "force" a missing folder is made, parents included.
   Creates save to "data.zip" inside it; extracts unzip into it.
================================================================================
"""

import asyncio
import concurrent.futures
import os
import re

from .zipoptions import Options, OutputError
from .ziptrace import getLogger, tracer

log = getLogger(__name__)

DEFAULT_ARCHIVE = 'data.zip'
EXTENSION = re.compile(r'\.\w+$')



def is_file_path(outputpath):
    """
    True if "outputpath" names a file to write, False if a folder.
    """
    if os.path.isdir(outputpath):
        return False
    return bool(EXTENSION.search(os.path.basename(outputpath.rstrip('/\\'))))



def archive_path(outputpath):
    """
    Where a create writes for "outputpath": itself, or data.zip inside it.
    """
    if is_file_path(outputpath):
        return outputpath
    return os.path.join(outputpath, DEFAULT_ARCHIVE)



async def gather_all(awaitables):
    """
    -----------------------------------------------------------------------
    Run awaitables concurrently and await them all, returning their results
    in order.  The first failure is raised as is, and the rest are
    cancelled rather than left to run on behind the error.
    -----------------------------------------------------------------------
    """
    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    try:
        return await asyncio.gather(*tasks)
    except BaseException:
        for task in tasks:
            task.cancel()
        raise



#===============================================================================



class FileService:

    def __init__(self, options=None, trace=None, max_workers=None):
        self.options  = options or Options()
        self.trace    = trace or tracer(log)
        self.max_workers = max_workers
        self.executor = None

    #
    # async plumbing
    #

    async def run_async(self, func, *args, **kwargs):
        """Run a blocking function in the service's pool and await it"""
        if self.executor is None:
            self.executor = concurrent.futures.ThreadPoolExecutor(
                                max_workers=self.max_workers,
                                thread_name_prefix='zipcli')
        return await asyncio.wrap_future(self.executor.submit(func, *args, **kwargs))

    def close(self):
        if self.executor is not None:
            self.executor.shutdown(wait=True)
            self.executor = None

    async def lstat(self, path):
        return await self.run_async(os.lstat, path)

    async def stat(self, path):
        return await self.run_async(os.stat, path)

    async def listdir(self, path):
        return sorted(await self.run_async(os.listdir, path))

    async def read_file(self, path):
        return await self.run_async(_readbytes, path)

    async def read_link(self, path):
        return await self.run_async(os.readlink, path)

    async def real_path(self, path):
        return await self.run_async(os.path.realpath, path)

    async def write_file(self, data, path):
        return await self.run_async(_writebytes, data, path)

    async def chmod(self, path, mode, follow_symlinks=True):
        if follow_symlinks:
            return await self.run_async(os.chmod, path, mode)
        return await self.run_async(os.chmod, path, mode, follow_symlinks=False)

    #
    # folders and files
    #

    async def ensure_dir(self, dirpath):
        if await self.run_async(os.path.isdir, dirpath):
            self.trace('Directory %s already exists. Not creating.' % dirpath)
        else:
            self.trace("Directory %s doesn't exist yet. Creating." % dirpath)
            await self.run_async(os.makedirs, dirpath, exist_ok=True)
        return self

    async def dir_exists(self, dirpath):
        """
        -----------------------------------------------------------------------
        True if "dirpath" is an existing, writable folder.  A missing folder
        is created when "force" is set (and then counts as existing); an
        existing but read-only one is reported and refused either way.
        -----------------------------------------------------------------------
        """
        dirpath = dirpath or os.curdir
        if await self.run_async(os.path.exists, dirpath):
            if await self.run_async(_writable_dir, dirpath):
                return True
            self.trace('Directory "%s" exists but is not writable.' % dirpath)
            return False

        self.trace('Directory "%s" doesn\'t exist.' % dirpath)
        if self.options.force:
            await self.ensure_dir(dirpath)
            return True
        return False

    async def file_is_writable(self, filepath):
        if not await self.dir_exists(os.path.dirname(filepath)):
            return False
        if await self.run_async(os.path.lexists, filepath):
            self.trace('File "%s" already exists.' % filepath,
                       'Forcing overwrite.' if self.options.force else 'Not overwriting.')
            return self.options.force
        return True

    async def save_file(self, data, filepath):
        if await self.file_is_writable(filepath):
            await self.write_file(data, filepath)
            return self
        raise OutputError('File "%s" already exists.' % filepath)

    async def check_output(self, outputpath):
        """
        -----------------------------------------------------------------------
        Validate a create's destination before any work is done, so a bad
        -output fails fast instead of after compressing a large tree.
        Raises OutputError; returns the path that will be written.
        -----------------------------------------------------------------------
        """
        if await self.run_async(is_file_path, outputpath):
            outputdir = os.path.dirname(outputpath) or os.curdir
            if not await self.dir_exists(outputdir):
                raise OutputError('Directory "%s" doesn\'t exist or is not writable.' % outputdir)
            if not await self.file_is_writable(outputpath):
                raise OutputError('File "%s" already exists.' % outputpath)
        else:
            if not await self.dir_exists(outputpath):
                raise OutputError('Directory "%s" doesn\'t exist or is not writable.' % outputpath)
        return await self.run_async(archive_path, outputpath)



def _readbytes(path):
    with open(path, 'rb') as file:
        return file.read()



def _writebytes(data, path):
    # replace links themselves, never write through them
    if os.path.islink(path):
        os.remove(path)
    with open(path, 'wb') as file:
        file.write(data)



def _writable_dir(dirpath):
    return os.path.isdir(dirpath) and os.access(dirpath, os.W_OK)
