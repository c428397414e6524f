'''
Utility classes and functions for logging.
'''

import sys

import logging

from rainbow_logging_handler import RainbowLoggingHandler

FORMAT = '%(asctime)s\t[%(name)s]\t%(levelname)s:\t%(message)s'

class LevelFilter(logging.Filter):
    '''
    Python logging filter to replicate `logging.Logger.setLevel()` functionality
    at the `logging.Handler` level.

    Setting levels on loggers prevents filtered messages from reaching any
    handler. Filtering at the handler level lets the console show Quaestor's
    own debug output while keeping Tornado's quiet.
    '''

    def __init__(self, *args, **kwargs):
        super(LevelFilter, self).__init__(*args, **kwargs)
        self._rules = []

    def filter(self, record):
        '''
        Implement Python `logging.Filter` interface.
        '''
        for (namespace, level) in self._rules:
            if record.name.startswith(namespace):
                return record.levelno >= level

        return False

    def add(self, namespace, level):
        '''
        Add a new module namespace level filter.
        '''
        self.remove(namespace)
        self._rules.append((namespace, level))
        # keep the rules in reverse sorted order so the most specific namespace matches first
        self._rules.sort(reverse=True)

    def remove(self, namespace):
        '''
        Remove a module namespace level filter.
        '''
        self._rules = [x for x in self._rules if x[0] != namespace]

def verbosity_level(verbosity):
    '''
    Map a count of `-v` flags to a logging level.
    '''
    if verbosity <= 0:
        return logging.WARNING
    elif verbosity == 1:
        return logging.INFO
    else:
        return logging.DEBUG

def configure(verbosity=0, stream=None):
    '''
    Install a colored console handler on the root logger.

    Quaestor messages are shown at the level chosen by `verbosity`. All
    other namespaces are shown only at warning level or above.

    Returns the installed handler.
    '''

    handler = RainbowLoggingHandler(stream or sys.stderr)
    handler.setFormatter(logging.Formatter(FORMAT))

    levels = LevelFilter()
    levels.add('', logging.WARNING)
    levels.add('quaestor', verbosity_level(verbosity))
    handler.addFilter(levels)

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    root.addHandler(handler)

    return handler
