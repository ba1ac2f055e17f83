"""
================================================================================
zipconfig.py - configuration-file loading for zipcli.

A configuration file holds the same options as the command line (in any of
the spellings zipoptions accepts), plus "mode" and "entries" so that a whole
run can be described by the file alone:

    # .zipclirc (YAML or JSON)
    mode: add
    entries: [dist]
    outputEntry: dist.zip
    ignoreEntries: ['*.map']
    compressionLevel: 9
    force: true

Files are searched for in the current directory and then each parent, up to
and including the user's home directory (or the filesystem root when the
start directory is not below home).  In each directory the first of
SEARCH_PLACES that exists wins; pyproject.toml counts only if it has a
[tool.zipcli] table.

Relative "entries" and "output_entry" paths in a file are taken relative to
the folder holding that file, so a run started from a subfolder still
archives what the file names.
================================================================================
"""

import collections
import json
import os
import tomllib

import yaml

from .zipoptions import ConfigError, canonical
from .ziptrace import getLogger, tracer

log = getLogger(__name__)
trace = tracer(log)

TOOLNAME = 'zipcli'

SEARCH_PLACES = (
    'pyproject.toml',
    '.zipclirc',
    '.zipclirc.json',
    '.zipclirc.yaml',
    '.zipclirc.yml',
    'zipcli.config.json',
)

ConfigResult = collections.namedtuple('ConfigResult', 'filepath config isempty')



#===============================================================================



def _parse(filepath, text):
    extension = os.path.splitext(filepath)[1].lower()
    if extension == '.json':
        return json.loads(text) if text.strip() else None

    elif extension == '.toml':
        data = tomllib.loads(text)
        if 'tool' in data or os.path.basename(filepath) == 'pyproject.toml':
            return data.get('tool', {}).get(TOOLNAME)    # None if no table: not ours
        return data

    else:
        return yaml.safe_load(text)             # YAML is a JSON superset



def _rebase(config, configdir):
    """
    Make relative entry and output paths relative to the config's folder.
    """
    entries = config.get('entries')
    if isinstance(entries, str):
        entries = [entries]
    if isinstance(entries, list):
        config['entries'] = [os.path.join(configdir, entry) if isinstance(entry, str) else entry
                                 for entry in entries]

    output = config.get('output_entry')
    if isinstance(output, str) and output:
        config['output_entry'] = os.path.join(configdir, output)
    return config



def load(filepath):
    """
    -----------------------------------------------------------------------
    Load one configuration file, choosing a parser by its extension.
    Returns a ConfigResult whose "config" has canonical option names.
    Any read or parse failure is reported as a ConfigError.
    -----------------------------------------------------------------------
    """
    filepath = os.path.abspath(filepath)
    try:
        with open(filepath, encoding='utf-8') as file:
            config = _parse(filepath, file.read())
    except (OSError, ValueError, yaml.YAMLError) as why:
        raise ConfigError("Can't read configuration file: %s" % why)

    if config is None or config == {}:
        return ConfigResult(filepath, {}, True)

    if not isinstance(config, dict):
        raise ConfigError("Can't read configuration file: "
                          '%s does not hold a mapping of options' % filepath)

    config = {canonical(str(key)): value for (key, value) in config.items()}
    return ConfigResult(filepath, _rebase(config, os.path.dirname(filepath)), False)



def search(startdir=None, stopdir=None):
    """
    -----------------------------------------------------------------------
    Find the nearest configuration file, per SEARCH_PLACES and the folder
    rules above.  Returns its ConfigResult (possibly isempty), or None if
    no file was found at all.  Unreadable files raise ConfigError.
    -----------------------------------------------------------------------
    """
    directory = os.path.abspath(startdir or os.getcwd())
    stopdir   = os.path.abspath(stopdir or os.path.expanduser('~'))

    while True:
        for name in SEARCH_PLACES:
            filepath = os.path.join(directory, name)
            if not os.path.isfile(filepath):
                continue

            result = load(filepath)
            if name == 'pyproject.toml' and result.isempty:
                trace('No [tool.%s] table in' % TOOLNAME, filepath)
                continue
            return result

        parent = os.path.dirname(directory)
        if directory == stopdir or parent == directory:
            return None
        directory = parent
