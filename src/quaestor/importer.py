'''
Reconciling import of a flat mapping into the store.

Every key is handled on its own: read the current entry, then write the
desired value conditioned on the modification index that was read. A key
that did not exist is written with an index of `0` so the write fails if
another writer creates it first. A key that another writer modifies between
the read and the write is reported as a conflict.

Nothing is ever deleted and nothing is rolled back. A partially applied
import is a normal outcome and is reported key by key.
'''

import logging

from collections import namedtuple
from concurrent.futures import ThreadPoolExecutor

from .errors import NotFound, ConditionalWriteConflict, TransportError

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

CREATED = 'created'
UPDATED = 'updated'
FAILED = 'failed'

class ImportPlanEntry(namedtuple('ImportPlanEntry', ['key', 'desired_value', 'observed_index'])):
    '''
    Conditional write planned for one key.

    `observed_index is None` when the key did not exist at read time.
    '''

    __slots__ = ()

    def is_create(self):
        return self.observed_index is None

    def expected_index(self):
        '''
        Return the index the store must hold for the write to succeed.
        '''
        if self.observed_index is None:
            return 0
        return self.observed_index

class ImportOutcome(object):
    '''
    Aggregate result of an import.

    `failed` is a list of `(key, reason)` pairs in key order.
    '''

    def __init__(self, created=0, updated=0, failed=None):
        self.created = created
        self.updated = updated
        self.failed = failed or []

    def record(self, key, status, reason=None):
        if status == CREATED:
            self.created += 1
        elif status == UPDATED:
            self.updated += 1
        else:
            self.failed.append((key, reason))

    def succeeded(self):
        return not self.failed

    def __repr__(self):
        return 'ImportOutcome(created={}, updated={}, failed={!r})'.format(
            self.created, self.updated, self.failed)

def plan_key(client, key, value):
    '''
    Read `key` from `client` and return the `ImportPlanEntry` to write `value`.
    '''

    try:
        entry = client.get(key)
    except NotFound:
        return ImportPlanEntry(key, value, None)
    else:
        return ImportPlanEntry(key, value, entry.modify_index)

def apply_plan(client, plan):
    '''
    Perform the conditional write for `plan`.

    Returns `CREATED` or `UPDATED` only if the store accepted the write.
    '''

    client.put(plan.key, plan.desired_value, plan.expected_index())

    if plan.is_create():
        logger.info('created "{}"'.format(plan.key))
        return CREATED
    else:
        logger.info('updated "{}" at index {}'.format(plan.key, plan.observed_index))
        return UPDATED

def _reconcile(client, key, value, plan=None):
    '''
    Read then write one key and return `(status, reason)`.
    '''

    try:
        if plan is None:
            plan = plan_key(client, key, value)
        return (apply_plan(client, plan), None)
    except ConditionalWriteConflict as exc:
        logger.warning('conflict on "{}": {}'.format(key, exc))
        return (FAILED, 'conflict: modified concurrently (expected index {})'.format(exc.expected_index))
    except NotFound as exc:
        # a 404 on the write, for example from a proxy in front of the agent
        logger.warning('failed to write "{}": not found'.format(key))
        return (FAILED, 'NotFound: {}'.format(exc.args[0]))
    except TransportError as exc:
        logger.warning('failed to import "{}": {}'.format(key, exc))
        return (FAILED, '{}: {}'.format(type(exc).__name__, exc))

def run_import(desired, client, workers=1):
    '''
    Make the keys of the mapping `desired` hold its values in `client`.

    Keys are processed in sorted order. The first key is read before
    anything else to check that the store is reachable; a `TransportError`
    on that read is raised and nothing is written. After that, failures are
    recorded per key in the returned `ImportOutcome`.

    If `workers > 1`, the remaining keys are processed concurrently. The
    read and write for a single key always happen in order.
    '''

    outcome = ImportOutcome()
    keys = sorted(desired)
    if not keys:
        return outcome

    logger.info('importing {} keys'.format(len(keys)))

    # probe the store with the first read
    first = keys[0]
    try:
        probe = plan_key(client, first, desired[first])
    except TransportError:
        logger.error('store unreachable; aborting import')
        raise
    else:
        results = {first: _reconcile(client, first, desired[first], probe)}

    rest = keys[1:]
    if workers > 1 and len(rest) > 1:
        with ThreadPoolExecutor(max_workers=workers) as pool:
            futures = {key: pool.submit(_reconcile, client, key, desired[key]) for key in rest}
            results.update({key: future.result() for (key, future) in futures.items()})
    else:
        for key in rest:
            results[key] = _reconcile(client, key, desired[key])

    # report in key order regardless of completion order
    for key in keys:
        (status, reason) = results[key]
        outcome.record(key, status, reason)

    logger.info('import finished: {} created, {} updated, {} failed'.format(
        outcome.created, outcome.updated, len(outcome.failed)))

    return outcome
