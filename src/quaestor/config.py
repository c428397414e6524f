'''
Command-line and environment configuration.

The Consul address is resolved here, once, and handed to `ConsulClient`
explicitly. Lookup order is the `--address` flag, then `QUAESTOR_ADDRESS`,
then `CONSUL_HTTP_ADDR`, then the local agent.
'''

import logging

from collections import namedtuple
from os import environ

from . import DEFAULT_ADDRESS
from .client import DEFAULT_TIMEOUT

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

ADDRESS_VARIABLES = ['QUAESTOR_ADDRESS', 'CONSUL_HTTP_ADDR']

def normalize_address(address):
    '''
    Prefix `address` with `http://` if it has no scheme.
    '''

    address = address.strip()
    if '://' not in address:
        address = 'http://' + address

    return address.rstrip('/')

class Config(namedtuple('Config', ['address', 'timeout', 'workers'])):
    '''
    Settings for one invocation.
    '''

    __slots__ = ()

    @classmethod
    def from_args(cls, args, env=None):
        '''
        Build a `Config` from parsed command-line `args`, falling back to
        the environment `env` (defaults to `os.environ`).
        '''

        if env is None:
            env = environ

        address = getattr(args, 'address', None)
        if not address:
            for name in ADDRESS_VARIABLES:
                address = env.get(name)
                if address:
                    logger.debug('using address from {}'.format(name))
                    break
        if not address:
            # fall back to default
            address = DEFAULT_ADDRESS

        timeout = getattr(args, 'timeout', None) or DEFAULT_TIMEOUT
        workers = max(1, getattr(args, 'jobs', None) or 1)

        return cls(normalize_address(address), timeout, workers)
