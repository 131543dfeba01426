import logging

import saslclient.mechanisms as mech_mod
from .exceptions import SASLError
from .qop import DEFAULT_MAX_BUFFER, MAX_BUFFER_LIMIT, QOP

logger = logging.getLogger(__name__)


class SASLClient(object):
    """
    A SASL client for one negotiation with a SASL server.

    A new instance of this is typically created when establishing a connection
    with a SASL server, naming the mechanism to use.

    Instances of this class do not directly communicate with the server (as
    the communication protocol differs from service to service), but rather
    relies on challenges from the server to be passed in and processed.  When
    initiating a new connection, this is done by passing challenges from the
    server to the :meth:`process()` method until the `complete` attribute of
    the instance is set to ``True``.

    After the initial negotiation is complete, communication between the
    server and client may need to be processed, depending on the 'quality of
    protection', which may call for signatures or encryption. To handle this,
    messages from the server should be passed through :meth:`unwrap()`, and
    messages outbound from the client to server should be passed through
    :meth:`wrap()`.

    Example usage::

        >>> from saslclient.client import SASLClient
        >>>
        >>> conn = get_connection_to('somehost2')
        >>> with SASLClient('somehost2', 'customprotocol', mechanism='GSSAPI') as sasl:
        ...     conn.send_response(sasl.start())
        ...     while not sasl.complete:
        ...         status, challenge = conn.get_challenge()
        ...         if status != 'OK':
        ...             raise Exception(status)
        ...         response = sasl.process(challenge)
        ...         if response is not None:
        ...             conn.send_response(response)
        ...
        ...     # begin normal communication
        ...     encoded = conn.fetch_data()
        ...     decoded = sasl.unwrap(encoded)
        ...     response = process_data(decoded)
        ...     conn.send_data(sasl.wrap(response))
    """

    def __init__(self, host, service=None, mechanism=None, authorization_id=None,
                 callback=None, qops=QOP.all, max_buffer=DEFAULT_MAX_BUFFER,
                 **mechanism_props):
        """
        `host` is the name of the SASL server, typically an FQDN, and `service` is
        usually the name of the protocol, such as `imap` or `http`.

        `mechanism` is the string name of a mechanism to use, like
        'PLAIN' or 'GSSAPI'.

        Optionally, an `authorization_id` may be set if the mechanism and protocol
        support authorization.

        The allowed quality of protection (QoP) choices may be set with the `qops`
        parameter, which should be an iterable of allowed options. Valid options
        include 'auth' for no protection, 'auth-int' for integrity protection,
        and 'auth-conf' for confidentiality protection. The strongest of these
        that the server also supports will be chosen automatically.

        A max buffer size for the security layer may be set with `max_buffer`.
        If a max buffer size is also set during negotiation by the server, the
        min of these two values will be used.

        Any other mechanism-specific properties may be set with
        `**mechanism_props` and will automatically be passed in to the
        mechanism's constructor.  If any properties are required by the
        mechanism during the course of negotiation have not been passed in
        via `**mechanism_props`, the function passed in here as the `callback`
        argument will be called with one argument, the name of the required
        property.  The `callback` function should return a value for that
        property.
        """
        if not 0 <= max_buffer <= MAX_BUFFER_LIMIT:
            raise SASLError('max_buffer must be between 0 and {0}'.format(MAX_BUFFER_LIMIT))

        self.host = host
        self.service = service
        self.authorization_id = authorization_id
        self.mechanism = mechanism
        self.callback = callback
        self.qops = set(QOP.normalize(qop) for qop in qops)
        self.max_buffer = max_buffer

        if mechanism is None:
            raise SASLError('A mechanism must be given')
        try:
            mech_class = mech_mod.mechanisms[mechanism]
        except KeyError:
            raise SASLError('Unknown mechanism {0}'.format(mechanism))
        logger.debug("using %s mechanism with %s", mechanism, host)
        self._chosen_mech = mech_class(self, **mechanism_props)

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        self.dispose()

    def start(self):
        """
        Produce the initial response for the server. Equivalent to
        ``process(None)``.
        """
        return self.process(None)

    def process(self, challenge=None):
        """
        Process a challenge from the server during SASL negotiation.
        A response will be returned which should typically be sent to the
        server to answer the challenge. ``None`` means there is nothing to
        send.

        With some mechanisms and protocols, `process()` should be called
        with a `challenge` of ``None`` to generate the first message
        to be sent to the server.
        """
        return self._chosen_mech.process(challenge)

    def wrap(self, outgoing):
        """
        Wrap an outgoing message intended for the SASL server. Depending
        on the negotiated quality of protection, this may result in the
        message being signed, encrypted, or left unaltered.
        """
        return self._chosen_mech.wrap(outgoing)

    def unwrap(self, incoming):
        """
        Unwrap a message from the SASL server. Depending on the negotiated
        quality of protection, this may check a signature, decrypt the message,
        or leave the message unaltered.
        """
        return self._chosen_mech.unwrap(incoming)

    @property
    def complete(self):
        """
        Check to see if SASL negotiation has completed. Once ``True``, this
        stays ``True``.
        """
        return self._chosen_mech.complete

    def dispose(self):
        """
        Clear all sensitive data, such as passwords, and release any
        security context held by the mechanism.
        """
        self._chosen_mech.dispose()

    def get_config(self):
        """
        The :class:`~saslclient.mechanisms.base.MechanismConfig` of the
        chosen mechanism.
        """
        return self._chosen_mech.get_config()

    @property
    def qop(self):
        return self._chosen_mech.qop

    @property
    def negotiated_max_buffer(self):
        """
        The maximum security layer buffer size agreed with the server, or
        ``None`` if the mechanism has not negotiated one.
        """
        return getattr(self._chosen_mech, 'max_buffer', None)
