"""
=================================================================================
zipsymlinks.py - symbolic links inside zip archives.

Python's zipfile module does not support symlinks directly (see
https://bugs.python.org/issue18595), so links are stored here the way Info-ZIP
stores them: as an entry whose data is the link's path text, encoded as UTF-8,
and whose external attributes carry the symlink file type in the top 4 bits.

ABOUT THE "MAGIC" BITMASK

    TTTTsstrwxrwxrwx0000000000ADVSHR
    ^^^^____________________________ file type, per sys/stat.h (0xA=link)
        ^^^_________________________ setuid, setgid, sticky
           ^^^^^^^^^________________ permissions, per unix style
                    ^^^^^^^^________ unused
                            ^^^^^^^^ DOS attribute bits: 0x10 = is-dir

The permission bits are taken from the link itself (lstat), and the DOS
is-dir bit is set for links that refer to a directory, because Windows must
be told the link's kind when the target does not exist yet at extract time.

Caveats:
  - Windows requires admin permission (or developer mode) to write symlinks.
  - Some filesystems (FAT, exFAT, Android emulated storage) have no symlinks.
When a link cannot be made, extraction writes a stub file holding the link
path instead and goes on: a missing link is metadata, not lost data.
=================================================================================
"""

import os
import shutil
import stat as statmodule
import sys

from .zipmodtime import make_zipinfo

RunningOnWindows = sys.platform.startswith('win')

SYMLINK_TYPE  = 0xA
SYMLINK_ISDIR = 0x10



#===============================================================================



def make_symlink_info(zippath, linkstat, isdir=False, compress_type=None):
    """
    -----------------------------------------------------------------------
    Create (zip): the header for a link entry, from the lstat() of the link.

    The link's st_mode already carries the S_IFLNK type (0o120000), so
    shifting it into external_attr yields the 0xA type nibble plus the
    link's own permission bits; only the DOS dir flag needs adding.
    Pass the referent's kind as "isdir" (os.path.isdir() follows links).
    -----------------------------------------------------------------------
    """
    assert statmodule.S_ISLNK(linkstat.st_mode), 'not a link stat'
    kargs = {} if compress_type is None else dict(compress_type=compress_type)
    zipinfo = make_zipinfo(zippath, linkstat, **kargs)
    if isdir:
        zipinfo.external_attr |= SYMLINK_ISDIR
    return zipinfo



def is_symlink(zipinfo):
    """
    Extract: check the entry's type bits for symlink code (upper 4 bits).
    """
    return (zipinfo.external_attr >> 28) == SYMLINK_TYPE



def decode_linkpath(data, trace):
    try:
        return data.decode('utf8')
    except UnicodeDecodeError:
        trace('--Symlink not decodable')
        return 'symlink-not-decodable'



def symlink_stub_file(destpath, linkpath, trace):
    """
    Extract: simulate an unsupported symlink with a dummy file holding the
    link path; better than killing the rest of the unzip.
    """
    try:
        with open(destpath, 'wb') as stub:
            stub.write(linkpath.encode('utf8'))
    except OSError as why:
        # illegal filename characters, access perms, etc.
        trace('--Could not make stub file for', destpath, why)



def clear_target(destpath):
    """
    Remove whatever occupies destpath - a link itself, never its target.
    """
    if os.path.islink(destpath) or os.path.isfile(destpath):
        os.remove(destpath)
    elif os.path.isdir(destpath):
        shutil.rmtree(destpath)
    elif os.path.lexists(destpath):
        os.remove(destpath)



#===============================================================================



def extract_symlink(zipinfo, destpath, linkpath, nofixlinks=False, trace=print):
    """
    -----------------------------------------------------------------------
    Extract (unzip): make a new symlink at "destpath" pointing at "linkpath".

    'zipinfo'  is the link's ZipInfo object, for its is-dir flag.
    'destpath' is the already sanitized host path to create the link at.
    'linkpath' is the link text read from the archive (a str).

    Separators in the link text are adjusted to the host's unless
    "nofixlinks", so links zipped on Windows still work on Unix and vice
    versa.  Anything already at destpath is replaced; parent folders are
    made if missing.  Returns destpath.
    -----------------------------------------------------------------------
    """
    assert is_symlink(zipinfo)

    upperdirs = os.path.dirname(destpath)
    if upperdirs:
        os.makedirs(upperdirs, exist_ok=True)

    if not nofixlinks:
        linkpath = linkpath.replace('/', os.sep).replace('\\', os.sep)

    clear_target(destpath)

    # windows dir-link arg; ignored on unix
    isdir = zipinfo.external_attr & SYMLINK_ISDIR
    dirarg = dict(target_is_directory=True) if (isdir and RunningOnWindows) else {}

    try:
        os.symlink(linkpath, destpath, **dirarg)
    except (OSError, NotImplementedError) as why:
        # including non-admin Windows
        trace('--Symlink not supported:', why)
        symlink_stub_file(destpath, linkpath, trace)
    return destpath
