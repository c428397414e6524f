'''
Command-line interface for Quaestor.

```
quaestor get KEY
quaestor set KEY VALUE
quaestor rm KEY
quaestor dir PREFIX
quaestor dump
quaestor export [PREFIX] [-o FILE]
quaestor import FILE [-j JOBS]
```
'''

import sys

import logging

from argparse import ArgumentParser, ArgumentDefaultsHelpFormatter

from .client import ConsulClient, DEFAULT_TIMEOUT
from .coders import decode_value, to_text
from .config import Config
from .errors import NotFound, MalformedKey, ValueDecodeError, MalformedImportDocument, TransportError
from .flat import to_flat_mapping, serialize, parse_import_document
from .importer import run_import
from .tree import build_tree, emit_tree
from . import log

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

def get(client, args, out):
    entry = client.get(args.key)
    out.write('{} = {}\n'.format(args.key, to_text(decode_value(entry.value))))

def set_(client, args, out):
    client.put(args.key, args.value.encode('utf-8'))
    out.write('{} -> {}\n'.format(args.key, args.value))

def rm(client, args, out):
    client.delete(args.key)
    out.write('removed {}\n'.format(args.key))

def dir_(client, args, out):
    for line in emit_tree(build_tree(client.list(args.prefix))):
        out.write(line + '\n')

def dump(client, args, out):
    for line in emit_tree(build_tree(client.list(''))):
        out.write(line + '\n')

def export(client, args, out):
    data = serialize(to_flat_mapping(client.list(args.prefix)))

    if args.output:
        with open(args.output, 'wb') as f:
            f.write(data)
        logger.info('exported to "{}"'.format(args.output))
    else:
        out.write(data.decode('utf-8'))

def import_(client, args, out):
    with open(args.path, 'rb') as f:
        desired = parse_import_document(f.read())

    outcome = run_import(desired, client, workers=args.config.workers)

    out.write('created: {}\n'.format(outcome.created))
    out.write('updated: {}\n'.format(outcome.updated))
    out.write('failed: {}\n'.format(len(outcome.failed)))
    for (key, reason) in outcome.failed:
        out.write('    {}: {}\n'.format(key, reason))

    return 0 if outcome.succeeded() else 1

def build_parser():
    parser = ArgumentParser(prog='quaestor', description='Consul key-value inspector', formatter_class=ArgumentDefaultsHelpFormatter)

    parser.add_argument('-a', '--address', metavar='HOST', help='Consul HTTP address')
    parser.add_argument('-t', '--timeout', metavar='SECONDS', type=float, default=DEFAULT_TIMEOUT, help='request timeout')
    parser.add_argument('-v', '--verbose', action='count', default=0, help='increase logging verbosity')

    commands = parser.add_subparsers(dest='command', metavar='COMMAND')
    commands.required = True

    sub = commands.add_parser('get', help='get a key')
    sub.add_argument('key', metavar='KEY')
    sub.set_defaults(handler=get)

    sub = commands.add_parser('set', help='set a key')
    sub.add_argument('key', metavar='KEY')
    sub.add_argument('value', metavar='VALUE')
    sub.set_defaults(handler=set_)

    sub = commands.add_parser('rm', help='remove a key')
    sub.add_argument('key', metavar='KEY')
    sub.set_defaults(handler=rm)

    sub = commands.add_parser('dir', help='show all keys that start with a prefix as a tree')
    sub.add_argument('prefix', metavar='PREFIX')
    sub.set_defaults(handler=dir_)

    sub = commands.add_parser('dump', help='show every key in the store as a tree; use with care')
    sub.set_defaults(handler=dump)

    sub = commands.add_parser('export', help='write keys that start with a prefix as a flat JSON document')
    sub.add_argument('prefix', metavar='PREFIX', nargs='?', default='')
    sub.add_argument('-o', '--output', metavar='FILE', help='output path instead of standard output')
    sub.set_defaults(handler=export)

    sub = commands.add_parser('import', help='create or overwrite keys from a flat JSON document')
    sub.add_argument('path', metavar='FILE')
    sub.add_argument('-j', '--jobs', metavar='JOBS', type=int, default=1, help='keys to import concurrently')
    sub.set_defaults(handler=import_)

    return parser

def main(argv=None, client=None, out=None):
    '''
    Run the command line `argv` and return the process exit code.

    `client` replaces the `ConsulClient` built from the configuration.
    '''

    args = build_parser().parse_args(argv)
    out = out or sys.stdout

    if client is None:
        log.configure(args.verbose)

    args.config = Config.from_args(args)

    if client is None:
        client = ConsulClient(args.config.address, timeout=args.config.timeout)

    try:
        return args.handler(client, args, out) or 0
    except NotFound as exc:
        sys.stderr.write('error: key not found: {}\n'.format(exc.args[0]))
    except (MalformedKey, ValueDecodeError, MalformedImportDocument) as exc:
        sys.stderr.write('error: {}\n'.format(exc))
    except TransportError as exc:
        sys.stderr.write('error: cannot reach {}: {}\n'.format(args.config.address, exc))
    except OSError as exc:
        sys.stderr.write('error: {}\n'.format(exc))

    return 1

if __name__ == '__main__':
    sys.exit(main())
