'''

# Quaestor

A command-line inspector and bulk editor for the Consul key-value store.

## Design

Consul stores a flat namespace of keys. By convention, the key is a
forward-slash (`/`) delimited path much like a UNIX file path. The value is an
opaque byte string and every entry carries a modification index that Consul
increments on each write.

Quaestor layers two things on top of that flat model.
 - A path tree, built from a prefix listing, for human-readable display.
 - An importer that applies a flat document of keys and values to the store
   with one conditional write per key.

### Example

Suppose the store holds the keys below.
```
app/name      = quaestor
app/db        = postgres
app/db/port   = 5432
```
The path tree for the prefix `app` is displayed as follows. Note that `app/db`
is both a value and the parent of `app/db/port`; both are kept.
```
app:
    db: postgres
        port: 5432
    name: quaestor
```
The same keys are exported as the flat interchange document.
```
{
    "app/db": "postgres",
    "app/db/port": "5432",
    "app/name": "quaestor"
}
```
Importing that document into another datacenter creates the keys that are
missing and overwrites the ones that exist, but never deletes anything.

## Usage

```
from quaestor.client import ConsulClient
from quaestor.tree import build_tree, emit_tree
from quaestor.importer import run_import

client = ConsulClient('http://localhost:8500')

for line in emit_tree(build_tree(client.list('app'))):
    print(line)

outcome = run_import({'app/name': b'quaestor'}, client)
```
'''

DEFAULT_PORT = 8500
DEFAULT_ADDRESS = 'http://localhost:{}'.format(DEFAULT_PORT)
