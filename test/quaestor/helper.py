'''
Helpers for store-dependent tests.
'''

import json
import asyncio
import threading

from tornado.httpserver import HTTPServer
from tornado.ioloop import IOLoop
from tornado.testing import AsyncHTTPTestCase, bind_unused_port
from tornado.web import RequestHandler, Application

from quaestor.client import ConsulClient, StoreInterface
from quaestor.coders import encode_value
from quaestor.core import Entry
from quaestor.errors import NotFound, ConditionalWriteConflict, TransportError

class MemoryStore(StoreInterface):
    '''
    In-memory versioned store with the same write semantics as Consul.

    `calls` records every `(method, key)` issued. `before_put` is called with
    the key just before each write, which lets a test modify the store behind
    the importer's back. Keys in `unreachable` raise `TransportError`, and all
    operations raise it while `down` is set.
    '''

    def __init__(self, data=None):
        self.entries = {}
        self.index = 0
        self.calls = []
        self.before_put = None
        self.unreachable = set()
        self.down = False
        self._lock = threading.Lock()

        for (key, value) in (data or {}).items():
            self.touch(key, value)

    def _check(self, method, key):
        with self._lock:
            self.calls.append((method, key))
        if self.down or key in self.unreachable:
            raise TransportError('cannot reach store for "{}"'.format(key))

    def touch(self, key, value):
        '''
        Write `value` at `key` unconditionally without recording a call.
        '''
        with self._lock:
            self.index += 1
            self.entries[key] = Entry(key, encode_value(value), self.index)

    def writes(self):
        return [key for (method, key) in self.calls if method == 'put']

    def values(self):
        return {k: e.value for (k, e) in self.entries.items()}

    def get(self, key):
        self._check('get', key)
        try:
            return self.entries[key]
        except KeyError:
            raise NotFound(key)

    def list(self, prefix=''):
        self._check('list', prefix)
        return [self.entries[k] for k in sorted(self.entries) if k.startswith(prefix)]

    def put(self, key, value, expected_index=None):
        self._check('put', key)
        if self.before_put:
            self.before_put(key)

        with self._lock:
            if expected_index is not None:
                current = self.entries.get(key)
                observed = current.modify_index if current else 0
                if observed != expected_index:
                    raise ConditionalWriteConflict(key, expected_index)

            self.index += 1
            self.entries[key] = Entry(key, encode_value(value), self.index)

        return True

    def delete(self, key):
        self._check('delete', key)
        with self._lock:
            if key not in self.entries:
                raise NotFound(key)
            del self.entries[key]

        return True

class KVHandler(RequestHandler):
    '''
    Handler mimicking the Consul `/v1/kv` endpoint over a `MemoryStore`.
    '''

    def _reply(self, obj):
        self.set_header('Content-Type', 'application/json')
        self.write(json.dumps(obj))

    def _item(self, entry):
        return {
            'CreateIndex': entry.modify_index,
            'ModifyIndex': entry.modify_index,
            'LockIndex': 0,
            'Flags': 0,
            'Key': entry.key,
            'Value': entry.value,
        }

    def get(self, key):
        store = self.application.store

        if self.get_argument('recurse', None) is not None:
            entries = store.list(key)
        else:
            try:
                entries = [store.get(key)]
            except NotFound:
                entries = []

        if not entries:
            self.set_status(404)
        else:
            self._reply([self._item(e) for e in entries])

    def put(self, key):
        cas = self.get_argument('cas', None)
        try:
            self.application.store.put(key, self.request.body, None if cas is None else int(cas))
        except ConditionalWriteConflict:
            self._reply(False)
        else:
            self._reply(True)

    def delete(self, key):
        try:
            self.application.store.delete(key)
        except NotFound:
            pass
        self._reply(True)

class FakeConsulServer(Application):
    '''
    Tornado web application serving a `MemoryStore` like a Consul agent.
    '''

    def __init__(self, store=None):
        super(FakeConsulServer, self).__init__()
        self.store = store or MemoryStore()
        self.add_handlers(r'.*', [(r'/v1/kv/(?P<key>.*)', KVHandler)])

class BackgroundConsulServer(object):
    '''
    Serve a `FakeConsulServer` from its own thread and event loop so that
    clients in several threads can reach it at once.
    '''

    def __init__(self, store=None):
        self.store = store or MemoryStore()
        (self._socket, self.port) = bind_unused_port()
        self._loop = None
        self._ready = threading.Event()
        self._thread = threading.Thread(target=self._run)
        self._thread.daemon = True

    def url(self):
        return 'http://127.0.0.1:{}'.format(self.port)

    def _run(self):
        asyncio.set_event_loop(asyncio.new_event_loop())
        self._loop = IOLoop.current()

        server = HTTPServer(FakeConsulServer(self.store))
        server.add_sockets([self._socket])

        self._loop.add_callback(self._ready.set)
        self._loop.start()

        server.stop()
        self._loop.close(all_fds=True)

    def start(self):
        self._thread.start()
        self._ready.wait(10)

    def stop(self):
        self._loop.add_callback(self._loop.stop)
        self._thread.join(10)

class FakeHTTPClient(object):  # pylint: disable=too-few-public-methods
    '''
    Tornado HTTP client wrapper to strip the protocol, host, and port
    from URLs so test cases work properly.
    '''

    def __init__(self, target):
        self._target = target
        self._trim_length = len(self._target.get_url(''))

    def fetch(self, path, **kwargs):
        return self._target.fetch(path[self._trim_length:], **kwargs)

class ConsulDependentTestCase(AsyncHTTPTestCase):
    '''
    Unit test base class that sets up a fake Consul agent and a client
    just for the tests in this case.
    '''

    def setUp(self):
        '''
        Initialize the client.
        '''
        super(ConsulDependentTestCase, self).setUp()
        self.client = ConsulClient(self.get_url(''), client=FakeHTTPClient(self))

    def get_app(self):
        '''
        Initialize the server.
        '''
        self.server = FakeConsulServer()
        self.store = self.server.store
        return self.server
