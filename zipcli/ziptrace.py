"""
================================================================================
ziptrace.py - trace message routers for the zipcli system.

Functions in the core report what they do through a "trace" argument that
is called like print(): trace('Found directory', path).  The routers built
here forward such calls to a standard logging.Logger at INFO level, so the
command line can switch all of them on with one --verbose flag and route
them to stderr, away from archive bytes written to stdout.

Pass "trace=notrace" to silence a call altogether.
================================================================================
"""

import logging
import sys

ROOT = 'zipcli'

notrace = lambda *pargs, **kargs: None



def getLogger(name):
    """
    Module loggers live under the "zipcli" namespace: zipcli.zipbuild...
    """
    if name != ROOT and not name.startswith(ROOT + '.'):
        name = ROOT + '.' + name
    return logging.getLogger(name)



def tracer(logger, level=logging.INFO):
    """
    -----------------------------------------------------------------------
    Make a print-like router for "logger".  Arguments are str()'d and
    joined by "sep" (default ' ') like print(); "end" and "file" are
    accepted for drop-in compatibility and ignored.
    -----------------------------------------------------------------------
    """
    def trace(*pargs, sep=' ', end='\n', file=None):
        if logger.isEnabledFor(level):
            logger.log(level, sep.join(str(parg) for parg in pargs))
    return trace



class _StderrHandler(logging.StreamHandler):
    """
    Writes to whatever sys.stderr is at emit time, not at creation time.
    """
    def __init__(self, level=logging.NOTSET):
        logging.Handler.__init__(self, level)

    @property
    def stream(self):
        return sys.stderr



class _TraceFormatter(logging.Formatter):
    def format(self, record):
        # zipcli.zipbuild => zipcli/zipbuild
        record.shortname = record.name.replace('.', '/')
        return super().format(record)



def enable(verbose):
    """
    -----------------------------------------------------------------------
    Route zipcli logging to stderr: INFO and up if verbose, else warnings
    only.  Safe to call more than once per process; the handler is added
    a single time and only the level changes on later calls.
    -----------------------------------------------------------------------
    """
    logger = logging.getLogger(ROOT)
    logger.setLevel(logging.INFO if verbose else logging.WARNING)

    if not any(isinstance(h, _StderrHandler) for h in logger.handlers):
        handler = _StderrHandler()
        handler.setFormatter(_TraceFormatter('%(shortname)s: %(message)s'))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
