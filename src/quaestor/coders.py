'''
Codec for values as Consul stores them on the wire.

Consul returns values base64-encoded inside its JSON replies and `null` for
a key that holds no data. Quaestor only handles text values, so decoded bytes
must also be valid UTF-8.
'''

from base64 import b64encode, b64decode

from .errors import ValueDecodeError

def decode_value(wire):
    '''
    Decode the wire representation `wire` into raw bytes.

    Raises `ValueDecodeError` if `wire` is not base64 or the
    decoded bytes are not UTF-8 text.
    '''

    if wire is None:
        # empty value
        return b''

    try:
        data = b64decode(wire, validate=True)
        data.decode('utf-8')
    except (ValueError, TypeError) as exc:
        raise ValueDecodeError('cannot decode value: {}'.format(exc))
    else:
        return data

def encode_value(data):
    '''
    Encode raw bytes `data` into the wire representation.
    '''

    if not data:
        return None

    return b64encode(data).decode('ascii')

def to_text(data):
    return data.decode('utf-8')
