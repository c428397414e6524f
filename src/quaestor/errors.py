'''
Exceptions raised by Quaestor.

Each exception subclasses the builtin that plain dictionary and HTTP code
would raise for the same condition.
'''

class NotFound(KeyError):
    '''The key does not exist in the store.'''

class MalformedKey(ValueError):
    '''The key has an empty path segment.'''

class ValueDecodeError(ValueError):
    '''A stored value could not be decoded.'''

class MalformedImportDocument(ValueError):
    '''The import document is not a flat object of strings.'''

class ConditionalWriteConflict(RuntimeError):
    '''
    The store rejected a conditional write because the key's
    modification index no longer matches.
    '''

    def __init__(self, key, expected_index):
        super(ConditionalWriteConflict, self).__init__(
            'conflict on "{}": expected index {}'.format(key, expected_index))
        self.key = key
        self.expected_index = expected_index

class TransportError(RuntimeError):
    '''The store could not be reached or replied unexpectedly.'''
