'''
Core data types shared by the tree, projection, and import layers.
'''

from collections import namedtuple

from .errors import MalformedKey

SEPARATOR = '/'

class Entry(namedtuple('Entry', ['key', 'value', 'modify_index'])):
    '''
    Snapshot of one key as returned by the store.

    `value` is the stored wire representation and must be passed through
    `quaestor.coders.decode_value()` to obtain bytes. `modify_index` is the
    store's modification index for the key.
    '''

    __slots__ = ()

def split_key(key):
    '''
    Split `key` into its path segments.

    Raises `MalformedKey` for an empty key or a key with an empty segment
    (leading, trailing, or consecutive separators).
    '''

    if not key:
        raise MalformedKey('empty key')

    parts = key.split(SEPARATOR)
    if not all(parts):
        raise MalformedKey('empty segment in key "{}"'.format(key))

    return parts

def join_key(*parts):
    '''
    Join path segments into a key, skipping empty ones.
    '''

    return SEPARATOR.join(p for p in parts if p)
