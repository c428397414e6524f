'''
Web client interface to the Consul key-value store.

Consul serves the store under `/v1/kv/<key>` and maps the HTTP verbs as
follows.
 * `GET`: read a key, or every key under a prefix with `?recurse`
 * `PUT`: write a key, conditionally with `?cas=<index>`
 * `DELETE`: remove a key
'''

import logging

import http.client

import json
import threading

from tornado.escape import url_escape
from tornado.httpclient import HTTPClient
from tornado.httputil import url_concat

import jsonschema

from .core import Entry
from .errors import NotFound, ConditionalWriteConflict, TransportError
from . import DEFAULT_ADDRESS

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

DEFAULT_TIMEOUT = 10.0

class StoreInterface(object):
    '''
    Basic interface for a versioned key-value store.
    '''

    def get(self, key):
        raise NotImplementedError

    def list(self, prefix=''):
        raise NotImplementedError

    def put(self, key, value, expected_index=None):
        raise NotImplementedError

    def delete(self, key):
        raise NotImplementedError

class JSONClientMixin(object):
    '''
    Internal convenience class for sending/receiving JSON over HTTP.

    Tornado's blocking `HTTPClient` runs every request on a private event
    loop and cannot be shared between threads, so each thread gets its own
    unless `client` is given.
    '''

    def __init__(self, base_url, client=None, timeout=DEFAULT_TIMEOUT):
        if '://' not in base_url:
            base_url = 'http://' + base_url

        self._base_url = base_url.rstrip('/') + '/'
        self._client = client
        self._local = threading.local()
        self._timeout = timeout

    def _http_client(self):
        if self._client is not None:
            return self._client

        client = getattr(self._local, 'client', None)
        if client is None:
            client = self._local.client = HTTPClient()

        return client

    def _fetch(self, path, method, schema, body=None, args=None):
        '''
        Helper for HTTP requests.

        If `body is not None`, it is sent as is.

        The response body is decoded as JSON, validated against `schema`,
        and returned.
        '''

        # build the complete URL
        url = self._base_url + path

        # encode the query parameters
        if args:
            url = url_concat(url, args)

        # perform the request
        try:
            response = self._http_client().fetch(url,
                                                 method=method,
                                                 body=body,
                                                 headers={'Accept': 'application/json'},
                                                 request_timeout=self._timeout,
                                                 raise_error=False)
        except Exception as exc:  # pylint: disable=broad-except
            logger.error('{} {} failed: {}'.format(method, url, exc))
            raise TransportError('{} {}: {}'.format(method, url, exc))

        logger.debug('{} {} -> {}'.format(method, url, response.code))

        # map common HTTP errors to exceptions
        if response.code == http.client.NOT_FOUND:
            raise NotFound(path)
        elif response.code not in [http.client.OK, http.client.CREATED, http.client.NO_CONTENT]:
            logger.error('unexpected HTTP response: {} {}\
                \n\nResponse:\n{}'.format(response.code,
                                          response.reason,
                                          response.body))
            raise TransportError('{} {}'.format(response.code, response.reason))

        # decode the response using JSON
        try:
            obj = json.loads(response.body.decode('utf-8'))
            jsonschema.validate(obj, schema)
        except (ValueError, jsonschema.ValidationError) as exc:
            logger.error('malformed response: {}\
                \n\nResponse:\n{}'.format(exc, response.body))
            raise TransportError('malformed response')
        else:
            return obj

class ConsulClient(JSONClientMixin, StoreInterface):
    '''
    Client for the key-value store of a Consul agent.

    `address` is the agent's HTTP address, such as `http://localhost:8500`.
    The address is never looked up from the environment here; see
    `quaestor.config` for that.
    '''

    ENTRIES_SCHEMA = {
        '$schema': 'http://json-schema.org/draft-04/schema#',
        'type': 'array',
        'items': {
            'type': 'object',
            'properties': {
                'Key': {
                    'type': 'string'
                },
                'Value': {
                    'type': ['string', 'null']
                },
                'ModifyIndex': {
                    'type': 'integer',
                    'minimum': 0
                },
            },
            'required': ['Key', 'ModifyIndex'],
        },
    }

    WRITE_SCHEMA = {
        '$schema': 'http://json-schema.org/draft-04/schema#',
        'type': 'boolean',
    }

    def __init__(self, address=DEFAULT_ADDRESS, **kwargs):
        super(ConsulClient, self).__init__('{}/v1/kv/'.format(address.rstrip('/')), **kwargs)

    def _path(self, key):
        return url_escape(key or '', plus=False)

    def _entries(self, obj):
        return [Entry(item['Key'], item.get('Value'), item['ModifyIndex']) for item in obj]

    def get(self, key):
        '''
        Get the `Entry` for `key`.

        Raises `NotFound` if `key` does not exist.
        '''

        try:
            entries = self._entries(self._fetch(self._path(key), 'GET', schema=ConsulClient.ENTRIES_SCHEMA))
        except NotFound:
            raise NotFound(key)

        if not entries:
            raise NotFound(key)

        return entries[0]

    def list(self, prefix=''):
        '''
        Get the `Entry` for every key beginning with `prefix`.

        An empty list is returned if no key matches.
        '''

        try:
            obj = self._fetch(self._path(prefix), 'GET', args={'recurse': 'true'}, schema=ConsulClient.ENTRIES_SCHEMA)
        except NotFound:
            return []

        return self._entries(obj)

    def put(self, key, value, expected_index=None):
        '''
        Store the bytes `value` at `key`.

        If `expected_index is not None`, the write only happens if the
        modification index of `key` equals `expected_index`. An index of `0`
        requires that `key` does not exist yet. A rejected write raises
        `ConditionalWriteConflict`.
        '''

        args = None
        if expected_index is not None:
            args = {'cas': str(expected_index)}

        accepted = self._fetch(self._path(key), 'PUT', body=value or b'', args=args, schema=ConsulClient.WRITE_SCHEMA)
        if not accepted:
            raise ConditionalWriteConflict(key, expected_index)

        return True

    def delete(self, key):
        '''
        Remove `key` from the store.
        '''

        try:
            self._fetch(self._path(key), 'DELETE', schema=ConsulClient.WRITE_SCHEMA)
        except NotFound:
            raise NotFound(key)

        return True
