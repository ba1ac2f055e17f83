"""
================================================================================
zipmodtime.py - entry headers and UTC modification times for zipcli.

Zip's own date/time fields are local time with 2-second resolution and no
timezone, and cannot represent anything before 1980.  To make modtimes
survive a trip between machines in different timezones (or across a DST
change), every entry made here also carries an "extended timestamp" extra
field (header ID 0x5455, the one Info-ZIP and most other tools write) that
holds the modtime in UTC seconds.  Extracts prefer it when present, and
fall back on the local-time fields for zips made by tools that omit it.

Both the local-header and central-directory copies of the field hold just
the modtime (flags=1), which is the short form Info-ZIP also accepts.
================================================================================
"""

import stat as statmodule
import struct
import sys
import time
import zipfile as zipfilemodule

EXTENDED_TIMESTAMP = 0x5455
MODTIME_FLAG       = 0x01
DOS_ISDIR          = 0x10

MIN_DATE_TIME = (1980, 1, 1, 0, 0, 0)
MAX_DATE_TIME = (2107, 12, 31, 23, 59, 58)

# 0 is windows, 3 is unix (e.g., mac, linux)
CREATE_SYSTEM = 0 if sys.platform.startswith('win') else 3



def dos_date_time(modtime):
    """
    Local time tuple for the zip header, clamped to what zip can store.
    """
    try:
        date_time = time.localtime(modtime)[0:6]
    except (OverflowError, OSError, ValueError):
        return MIN_DATE_TIME if modtime < 0 else MAX_DATE_TIME
    return min(max(date_time, MIN_DATE_TIME), MAX_DATE_TIME)



def utc_extra(modtime):
    modtime = int(min(max(modtime, -2**31), 2**31 - 1))
    return struct.pack('<HHBl', EXTENDED_TIMESTAMP, 5, MODTIME_FLAG, modtime)



def make_zipinfo(zippath, itemstat, isdir=False, compress_type=zipfilemodule.ZIP_DEFLATED):
    """
    -----------------------------------------------------------------------
    Build the header of a new archive entry from an os.stat() or os.lstat()
    result: name, local-time and UTC modtimes, and the item's full st_mode
    (type plus permission bits) in the upper half of external_attr, where
    Unix unzippers look for it.  Directories get a trailing '/' and the
    DOS is-dir bit, and are always stored uncompressed.
    -----------------------------------------------------------------------
    """
    if isdir and not zippath.endswith('/'):
        zippath += '/'

    zipinfo = zipfilemodule.ZipInfo(zippath, date_time=dos_date_time(itemstat.st_mtime))
    zipinfo.create_system = CREATE_SYSTEM
    zipinfo.external_attr = (itemstat.st_mode & 0xFFFF) << 16
    zipinfo.extra         = utc_extra(itemstat.st_mtime)

    if isdir:
        zipinfo.external_attr |= DOS_ISDIR
        zipinfo.compress_type  = zipfilemodule.ZIP_STORED
    else:
        zipinfo.compress_type  = compress_type
    return zipinfo



def get_modtime_utc(zipinfo):
    """
    The UTC modtime from an extended-timestamp extra field, or None.
    """
    extra = zipinfo.extra
    while len(extra) >= 4:
        headerid, size = struct.unpack('<HH', extra[:4])
        data  = extra[4:4 + size]
        extra = extra[4 + size:]
        if headerid == EXTENDED_TIMESTAMP and len(data) >= 5 and data[0] & MODTIME_FLAG:
            return struct.unpack('<l', data[1:5])[0]
    return None



def get_modtime(zipinfo):
    """
    -----------------------------------------------------------------------
    Modtime to set on an extracted item: the UTC timestamp if the zip has
    one, else zip's local-time fields run through mktime() with DST left
    to the C library (-1), which is what other unzippers do as well.
    -----------------------------------------------------------------------
    """
    modtime = get_modtime_utc(zipinfo)
    if modtime is None:
        modtime = time.mktime(zipinfo.date_time + (0, 0, -1))
    return modtime



def entry_mode(zipinfo):
    """
    The st_mode saved by a Unix zipper, or 0 if none was recorded.
    """
    return zipinfo.external_attr >> 16



def entry_permissions(zipinfo):
    return statmodule.S_IMODE(entry_mode(zipinfo))
