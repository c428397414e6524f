'''
Conversion between store entries, flat mappings, and the interchange document.

The interchange document is a JSON object whose fields are full keys and
whose values are plain strings. Nothing else is accepted on import.
'''

import logging

import json

import jsonschema

from .coders import decode_value, to_text
from .errors import MalformedImportDocument, ValueDecodeError

logger = logging.getLogger(__name__)  # pylint: disable=invalid-name

DOCUMENT_SCHEMA = {
    '$schema': 'http://json-schema.org/draft-04/schema#',
    'type': 'object',
    'additionalProperties': {
        'type': 'string'
    },
}

def to_flat_mapping(entries):
    '''
    Return a dictionary of key to decoded bytes for `entries`.

    Entries whose value cannot be decoded are dropped.
    '''

    result = {}
    for entry in entries:
        try:
            result[entry.key] = decode_value(entry.value)
        except ValueDecodeError as exc:
            logger.warning('dropping "{}": {}'.format(entry.key, exc))

    return result

def serialize(mapping):
    '''
    Encode the flat `mapping` as an interchange document.
    '''

    obj = {k: to_text(v) for (k, v) in mapping.items()}
    return json.dumps(obj, indent=4, sort_keys=True, ensure_ascii=False).encode('utf-8') + b'\n'

def parse_import_document(data):
    '''
    Decode the interchange document `data` into a flat mapping.

    Raises `MalformedImportDocument` if `data` is not JSON or is not a flat
    object of strings.
    '''

    if isinstance(data, bytes):
        try:
            data = data.decode('utf-8')
        except UnicodeDecodeError as exc:
            raise MalformedImportDocument('document is not UTF-8: {}'.format(exc))

    try:
        obj = json.loads(data)
        jsonschema.validate(obj, DOCUMENT_SCHEMA)
    except (ValueError, jsonschema.ValidationError) as exc:
        logger.error('malformed import document: {}'.format(exc))
        raise MalformedImportDocument(str(exc))

    return {k: v.encode('utf-8') for (k, v) in obj.items()}
