#: Maximum security layer buffer size requested by the client, unless
#: overridden with the ``max_buffer`` argument of :class:`SASLClient`.
DEFAULT_MAX_BUFFER = 16384000

#: Largest value which fits in the 3 length bytes of a GSSAPI security
#: layer negotiation message.
MAX_BUFFER_LIMIT = 0xffffff


class QOP(object):

    AUTH = b'auth'
    AUTH_INT = b'auth-int'
    AUTH_CONF = b'auth-conf'

    all = (AUTH, AUTH_INT, AUTH_CONF)

    #: Strongest protection first
    by_strength = (AUTH_CONF, AUTH_INT, AUTH)

    bit_map = {1: AUTH, 2: AUTH_INT, 4: AUTH_CONF}

    name_map = dict((name, bit) for bit, name in bit_map.items())

    @classmethod
    def normalize(cls, name):
        if isinstance(name, str):
            name = name.encode('ascii')
        return name

    @classmethod
    def names_from_bitmask(cls, byt):
        return set(name for bit, name in cls.bit_map.items() if bit & byt)

    @classmethod
    def flag_from_name(cls, name):
        return cls.name_map[cls.normalize(name)]
