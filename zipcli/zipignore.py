"""
================================================================================
zipignore.py - ignore-list and default cruft patterns for archive creates.

Ignore patterns are shell-style globs, applied case sensitively on all
platforms with fnmatch.fnmatchcase(): "*" (any characters), "?" (any single)
and "[]" (any single bracketed).  A pattern is tried against three forms of
each item, and the item is skipped if any of them matches:

   - its base name                 '*.map'        skips 'b.js.map' anywhere
   - its path inside the archive   'dist/*.html'  skips 'dist/index.html'
   - its absolute resolved path    '/tmp/*'       skips everything under /tmp

A pattern with no glob operators at all also matches as a run of whole
archive-path components, so 'node_modules' or 'build/cache' skip those
folders at any depth without having to be spelled '*/node_modules'.

Cruft (hidden metadata files) is not skipped unless asked for with the
"skip_cruft" option: programs should not silently drop content, but most
zips made for upload or distribution are better off without '.DS_Store'.
Edit the lists below as needed.
================================================================================
"""

from fnmatch import fnmatchcase    # non-case-mapping version
import os


#===============================================================================


# skip all files and folders matching these
cruft_skip = [
    '.*',                # Unix hidden files, Mac junk files
    '[dD]esktop.ini',    # Windows appearance
    'Thumbs.db',         # Windows caches
    '~*',                # Office temp files
    '$*',                # Windows recycle bin
    '*.py[co]'           # Python bytecode
    ]


# never skip any matching these, even if they match a skip pattern
cruft_keep = [
    '.htaccess'          # Apache website config files
    ]


cruft_skip_keep = {'skip': cruft_skip,
                   'keep': cruft_keep}

GLOBCHARS = '*?['



def is_cruft(filename, cruftpatts=cruft_skip_keep):
    """
    True iff "filename" (a base name) matches any "skip" pattern and no
    "keep" pattern.  No names are cruft if "cruftpatts" is empty.
    """
    return bool(cruftpatts
                and
                any(fnmatchcase(filename, patt) for patt in cruftpatts['skip'])
                and not
                any(fnmatchcase(filename, patt) for patt in cruftpatts['keep']))



def _slashed(path):
    return path.replace(os.sep, '/') if os.sep != '/' else path



def _has_components(path, pattern):
    parts = [part for part in path.split('/') if part]
    want  = [part for part in pattern.strip('/').split('/') if part]
    if not want:
        return False
    return any(parts[i:i + len(want)] == want for i in range(len(parts) - len(want) + 1))



#===============================================================================



class IgnoreList:
    """
    -----------------------------------------------------------------------
    The compiled ignore-list of one run: user patterns, plus the default
    cruft patterns when "cruft" is true.  match() returns the patterns
    that matched an item (shown in verbose output), or [] to keep it.
    -----------------------------------------------------------------------
    """

    def __init__(self, patterns=(), cruft=False, cruftpatts=cruft_skip_keep):
        self.patterns   = [_slashed(patt) for patt in patterns if patt]
        self.cruftpatts = cruftpatts if cruft else {}

    def __bool__(self):
        return bool(self.patterns or self.cruftpatts)

    def match(self, resolvedpath, zippath=''):
        resolvedpath = _slashed(resolvedpath)
        zippath      = zippath.strip('/')
        basename     = (zippath or resolvedpath).rstrip('/').rsplit('/', 1)[-1]

        matched = []
        for patt in self.patterns:
            if (fnmatchcase(basename, patt) or
                (zippath and fnmatchcase(zippath, patt)) or
                fnmatchcase(resolvedpath, patt)):
                matched.append(patt)

            elif not any(char in patt for char in GLOBCHARS):
                if _has_components(zippath, patt):
                    matched.append(patt)

        if zippath and is_cruft(basename, self.cruftpatts):
            matched.append('<cruft>')
        return matched

    def __repr__(self):
        return 'IgnoreList(%r, cruft=%s)' % (self.patterns, bool(self.cruftpatts))
