"""
Decoding of text based server challenges, as used by DIGEST-MD5
(RFC 2831 section 2.1.1) and similar mechanisms.

A challenge is a comma separated list of ``key=value`` or
``key="quoted value"`` attributes::

    >>> parse_challenge(b'realm="example.org",nonce="abc",qop=auth')
    {'realm': b'example.org', 'nonce': b'abc', 'qop': b'auth'}
"""
from .exceptions import SASLParseError
from .utils import to_bytes


def quote(text):
    """
    Enclose in quotes and escape internal slashes and double quotes.

    :param text: A Unicode or byte string.
    """
    text = to_bytes(text)
    return b'"' + text.replace(b'\\', b'\\\\').replace(b'"', b'\\"') + b'"'


def _read_quoted(data, pos):
    # returns the unescaped value and the position after the closing quote
    val = bytearray()
    escaped = False
    for i in range(pos, len(data)):
        c = data[i:i + 1]
        if escaped:
            val += c
            escaped = False
        elif c == b'\\':
            escaped = True
        elif c == b'"':
            return bytes(val), i + 1
        else:
            val += c
    raise SASLParseError('Unterminated quoted value in challenge')


def parse_challenge(challenge):
    """Parse a digest challenge message.

    Keys are kept case-sensitive, as transmitted. Bare tokens that carry
    no ``=`` but are followed by further attributes are skipped.

    :param ``bytes`` challenge:
        Challenge message from the server, in bytes.
    :returns:
        ``dict`` of ``str`` keyword to ``bytes`` values.
    :raises SASLParseError:
        if the trailing segment has no ``=``, a key is empty, or a quoted
        value is never closed.
    """
    ret = {}
    challenge = to_bytes(challenge)
    if not challenge:
        return ret

    pos = 0
    end = len(challenge)
    while pos < end:
        eq = challenge.find(b'=', pos)
        if eq == -1:
            rest = challenge[pos:].strip(b' \t\r\n,')
            if rest:
                raise SASLParseError('Missing "=" in challenge segment %r' % rest)
            break

        key = challenge[pos:eq]
        comma = key.rfind(b',')
        if comma != -1:
            key = key[comma + 1:]
        key = key.strip()
        if not key:
            raise SASLParseError('Empty attribute name in challenge')

        pos = eq + 1
        if challenge[pos:pos + 1] == b'"':
            val, pos = _read_quoted(challenge, pos + 1)
            comma = challenge.find(b',', pos)
        else:
            comma = challenge.find(b',', pos)
            val = challenge[pos:end if comma == -1 else comma].strip()
        pos = end if comma == -1 else comma + 1

        try:
            ret[key.decode('ascii')] = val
        except UnicodeDecodeError:
            raise SASLParseError('Non-ASCII attribute name %r in challenge' % key)
    return ret
