"""
================================================================================
zipoptions.py - the resolved options object of the zipcli system.

Every core service (zipbuild, zipextract, zipfiles) is handed one Options
instance, already merged from the defaults, a configuration file (if any),
and the command line.  Option names are snake_case here; configuration files
written for other zippers often use camelCase ("compressionLevel") or
kebab-case ("compression-level"), and both are mapped on the way in.

This module also defines the exceptions raised for domain failures: all
derive from ZipCLIError, so callers can catch one class and leave ordinary
OSError and zipfile.BadZipFile failures to propagate on their own.
================================================================================
"""

import re


class ZipCLIError(Exception):
    pass

class ConfigError(ZipCLIError):
    pass

class OutputError(ZipCLIError):
    pass

class NoEntriesError(ZipCLIError):
    pass

class ModeError(ZipCLIError):
    pass



#===============================================================================



DEFAULT_OPTIONS = {
    'compression_level': 5,       # 0=store, 1..9=deflate level
    'config_file':       True,    # True=search, False=none, str=explicit path
    'dereference_links': False,   # zip items referenced instead of links?
    'force':             False,   # overwrite files, create missing dirs?
    'ignore_entries':    [],      # glob patterns of items to skip
    'output_entry':      None,    # file or dir, None=stdout
    'quiet':             False,   # no progress bar, no summary
    'verbose':           False,   # informational logging to stderr
    'skip_cruft':        False,   # also skip zipignore.cruft_skip names
    'mode':              None,    # 'add' or 'extract', config files only
    'entries':           None,    # root paths, config files only
}

MODES = ('add', 'extract')

# names accepted besides the canonical ones
ALIASES = {'level': 'compression_level'}



def canonical(name):
    """
    Map a camelCase or kebab-case option name to the snake_case one.
    """
    name = name.replace('-', '_')
    name = re.sub(r'(?<=[a-z0-9])([A-Z])', r'_\1', name).lower()
    return ALIASES.get(name, name)



def _aslist(name, value):
    if value is None:
        return None
    if isinstance(value, str):
        return [value]
    if (isinstance(value, (list, tuple)) and
        all(isinstance(item, str) for item in value)):
        return list(value)
    raise ConfigError('Option "%s" must be a string or a list of strings.' % name)



#===============================================================================



class Options:
    """
    -----------------------------------------------------------------------
    Resolved options for one zipcli run.

    Options(**values) starts from DEFAULT_OPTIONS and applies "values";
    Options.merged(*layers) stacks several sources, later ones winning,
    but a None in a later layer never erases an earlier setting.  That
    is what lets unset command-line flags leave config-file values alone.

    Unknown names and ill-typed values raise ConfigError here, once, so
    that the core can trust what it is handed.
    -----------------------------------------------------------------------
    """
    attrs = tuple(DEFAULT_OPTIONS)

    def __init__(self, **values):
        for attr in self.attrs:
            default = DEFAULT_OPTIONS[attr]
            setattr(self, attr, list(default) if isinstance(default, list) else default)
        self.update(values)

    @classmethod
    def merged(cls, *layers):
        options = cls()
        for layer in layers:
            if layer:
                options.update(layer, keepnone=False)
        return options

    def update(self, values, keepnone=True):
        if isinstance(values, Options):
            values = values.asdict()
        for name, value in values.items():
            attr = canonical(name)
            if attr not in DEFAULT_OPTIONS:
                raise ConfigError('Unknown option "%s".' % name)
            if value is None and not keepnone:
                continue
            setattr(self, attr, self._validate(attr, value))
        return self

    def _validate(self, attr, value):
        if attr == 'compression_level':
            try:
                level = int(value)
            except (TypeError, ValueError):
                raise ConfigError('Compression level "%s" is not a number.' % value)
            if isinstance(value, bool) or not 0 <= level <= 9:
                raise ConfigError('Compression level must be between 0 and 9, not %s.' % value)
            return level

        elif attr in ('ignore_entries', 'entries'):
            value = _aslist(attr, value)
            return [] if value is None and attr == 'ignore_entries' else value

        elif attr == 'mode':
            if value is not None and value not in MODES:
                raise ConfigError('Mode must be one of %s, not "%s".' % (', '.join(MODES), value))
            return value

        elif attr == 'config_file':
            if not isinstance(value, (bool, str)):
                raise ConfigError('Option "config_file" must be a boolean or a path.')
            return value

        elif attr == 'output_entry':
            return None if value in (None, '') else str(value)

        else:
            return bool(value)

    def asdict(self):
        return {attr: getattr(self, attr) for attr in self.attrs}

    def __eq__(self, other):
        return isinstance(other, Options) and self.asdict() == other.asdict()

    def __repr__(self):
        display = ', '.join('%s=%r' % (attr, getattr(self, attr)) for attr in self.attrs)
        return 'Options(%s)' % display
