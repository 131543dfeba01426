import base64
import logging
import platform
import re
import struct
import warnings

from .base import Mechanism
from ..exceptions import SASLContextError, SASLError, SASLProtocolException, SASLWarning
from ..qop import MAX_BUFFER_LIMIT, QOP
from ..utils import to_bytes

if platform.system() == 'Windows':
    try:
        import winkerberos as kerberos
        # Fix for different capitalisation in winkerberos method name
        kerberos.authGSSClientUserName = kerberos.authGSSClientUsername
        have_kerberos = True
    except ImportError:
        kerberos = None
        have_kerberos = False
else:
    try:
        import kerberos
        have_kerberos = True
    except ImportError:
        kerberos = None
        have_kerberos = False

logger = logging.getLogger(__name__)

_SPN_HOST = re.compile(r'\A[^/]+/(_HOST)(?:[@/]|\Z)')


def resolve_principal(service, host):
    """
    Build the name of the target service principal.

    A bare service name such as ``imap`` gives the host based form
    ``imap@host``. A full principal such as ``hive/_HOST@EXAMPLE.COM`` has
    its ``_HOST`` component replaced with `host`; any other principal is
    used unchanged.
    """
    if '/' not in service:
        return '@'.join((service, host))
    match = _SPN_HOST.match(service)
    if match is None:
        return service
    return service[:match.start(1)] + host + service[match.end(1):]


class SecurityContext(object):
    """
    The operations :class:`GSSAPIMechanism` needs from a GSSAPI security
    context. Tokens and messages are passed as bytes.

    A context belongs to exactly one mechanism instance, which calls
    :meth:`dispose` once when it is done with it.
    """

    def step(self, token=None):
        """
        Feed `token` from the server (``None`` for the first call) into
        context establishment and return the next token for the server,
        which may be empty.
        """
        raise NotImplementedError()

    def established_name(self):
        """
        The authenticated client name once the context is established,
        otherwise ``None``.
        """
        raise NotImplementedError()

    def integrity_available(self):
        raise NotImplementedError()

    def confidentiality_available(self):
        raise NotImplementedError()

    def wrap(self, data, confidential=False):
        raise NotImplementedError()

    def unwrap(self, data, require_confidentiality=False):
        raise NotImplementedError()

    def dispose(self):
        pass


class KerberosContext(SecurityContext):
    """
    A :class:`SecurityContext` backed by the ``kerberos`` module, or
    ``winkerberos`` on Windows.

    The binding works on base64 text and hands results back through
    ``authGSSClientResponse``; both details stay inside this class. The
    binding does not report which protection services were actually
    granted, so integrity and confidentiality are considered available when
    they were requested in `gssflags`.
    """

    def __init__(self, target, principal=None, gssflags=None):
        if kerberos is None:
            raise SASLError('kerberos module not installed, GSSAPI unavailable')
        if gssflags is None:
            gssflags = (kerberos.GSS_C_MUTUAL_FLAG | kerberos.GSS_C_SEQUENCE_FLAG |
                        kerberos.GSS_C_INTEG_FLAG | kerberos.GSS_C_CONF_FLAG)
        self.target = target
        self.gssflags = gssflags
        self._established = False
        self._context = None

        try:
            try:
                _, self._context = kerberos.authGSSClientInit(target, principal=principal,
                                                              gssflags=gssflags)
            except TypeError:
                if principal is not None:
                    raise SASLError("kerberos library does not support principal.")
                _, self._context = kerberos.authGSSClientInit(target, gssflags=gssflags)
        except kerberos.GSSError as e:
            raise SASLContextError('Could not create security context for %s: %s' % (target, e)) from e

    def _response(self):
        response = kerberos.authGSSClientResponse(self._context)
        if not response:
            return b''
        return base64.b64decode(response)

    def step(self, token=None):
        # kerberos methods expect strings, not bytes
        challenge = base64.b64encode(token).decode('ascii') if token else ''
        try:
            ret = kerberos.authGSSClientStep(self._context, challenge)
        except kerberos.GSSError as e:
            raise SASLContextError('Security context establishment failed: %s' % (e,)) from e
        if ret == kerberos.AUTH_GSS_COMPLETE:
            self._established = True
        return self._response()

    def established_name(self):
        if not self._established:
            return None
        return kerberos.authGSSClientUserName(self._context)

    def integrity_available(self):
        return bool(self.gssflags & kerberos.GSS_C_INTEG_FLAG)

    def confidentiality_available(self):
        return bool(self.gssflags & kerberos.GSS_C_CONF_FLAG)

    def wrap(self, data, confidential=False):
        encoded = base64.b64encode(data).decode('ascii')
        protect = 1 if confidential else 0
        try:
            kerberos.authGSSClientWrap(self._context, encoded, None, protect)
        except kerberos.GSSError as e:
            raise SASLContextError('Could not wrap message: %s' % (e,)) from e
        return self._response()

    def unwrap(self, data, require_confidentiality=False):
        encoded = base64.b64encode(data).decode('ascii')
        try:
            kerberos.authGSSClientUnwrap(self._context, encoded)
        except kerberos.GSSError as e:
            raise SASLContextError('Could not unwrap message: %s' % (e,)) from e
        if require_confidentiality and not kerberos.authGSSClientResponseConf(self._context):
            raise SASLProtocolException("Confidentiality requested, but not honored by the server")
        return self._response()

    def dispose(self):
        if self._context is not None:
            context, self._context = self._context, None
            kerberos.authGSSClientClean(context)


class GSSAPIMechanism(Mechanism):
    """
    Kerberos V5 GSSAPI mechanism with security layer support.
    Defined in RFC 4752

    Optional keyword arguments, passed to SASLClient:

      principal=None
        The client principal to authenticate as; the default credential
        is used otherwise.
      context=None
        A :class:`SecurityContext` to use instead of a
        :class:`KerberosContext`. The mechanism takes ownership of it.

    The SASLClient `service` may be a bare service name (``hive``) or a
    full principal, where ``_HOST`` is replaced by the client's host
    (``hive/_HOST@EXAMPLE.COM``).

    Negotiation runs through three stages: the initial context token,
    as many context establishment rounds as the server needs, and a final
    exchange which selects the quality of protection and the maximum
    buffer size for the security layer. If no quality of protection can be
    agreed on, negotiation still completes but :attr:`max_buffer` is 0 and
    a :class:`SASLWarning` is emitted.
    """
    name = 'GSSAPI'
    score = 100
    qops = QOP.all

    allows_anonymous = False
    uses_plaintext = False
    active_safe = True

    def __init__(self, sasl, principal=None, context=None, **props):
        Mechanism.__init__(self, sasl)
        self.user = None
        self.host = self.sasl.host
        self.service = self.sasl.service
        self.principal = principal
        self._fetch_properties('host', 'service')
        if context is None and kerberos is None:
            raise SASLError('kerberos module not installed, {0} '
                            'unavailable'.format(self.name))

        self.target = resolve_principal(self.service, self.host)
        self.context = context
        self.stage = 0
        self.max_buffer = None
        self.server_max_buffer = None

    def process_challenge(self, challenge=None):
        try:
            if self.stage == 0:
                return self._start()
            if self.stage == 1:
                return self._establish(challenge)
            return self._negotiate_security_layer(challenge)
        except Exception:
            self._abort()
            raise

    def _start(self):
        logger.info("attempting GSSAPI mechanism for %s", self.target)
        if self.context is None:
            self.context = KerberosContext(self.target, principal=self.principal)
        token = self.context.step(None)
        self.stage = 1
        return token

    def _establish(self, challenge):
        token = self.context.step(to_bytes(challenge or b''))
        user = self.context.established_name()
        if user:
            self.user = user
            self.stage = 2
            logger.debug("GSSAPI security context established for %s", user)
        return token

    def _negotiate_security_layer(self, challenge):
        plaintext_data = self.context.unwrap(to_bytes(challenge or b''))
        if len(plaintext_data) != 4:
            raise SASLProtocolException("Bad response from server: security layer "
                                        "negotiation is %d bytes, expected 4" % len(plaintext_data))

        word, = struct.unpack('!I', plaintext_data)
        qop_bits = word >> 24
        self.server_max_buffer = word & MAX_BUFFER_LIMIT
        if self.server_max_buffer == 0:
            raise SASLProtocolException("Server offered a maximum buffer size of 0, "
                                        "it does not support a security layer")

        supported_qops = [QOP.AUTH]
        if self.context.integrity_available():
            supported_qops.append(QOP.AUTH_INT)
        if self.context.confidentiality_available():
            supported_qops.append(QOP.AUTH_CONF)

        try:
            self._pick_qop(QOP.names_from_bitmask(qop_bits), supported_qops)
        except SASLProtocolException as e:
            msg = "No usable quality of protection, security layer disabled: %s" % e
            logger.warning(msg)
            warnings.warn(msg, SASLWarning)
            qop_flag = 0
            self.max_buffer = 0
        else:
            qop_flag = QOP.flag_from_name(self.qop)
            self.max_buffer = min(self.sasl.max_buffer, self.server_max_buffer)

        """
        byte 0: the selected qop. 1==auth, 2==auth-int, 4==auth-conf
        byte 1-3: the max length for any buffer sent back and forth on
            this connection. (big endian)
        the rest of the buffer: the authorization user name in UTF-8 -
            not null terminated.
        """
        auth_id = to_bytes(self.authorization_id or self.user)
        out = struct.pack('!I', qop_flag << 24 | self.max_buffer) + auth_id

        response = self.context.wrap(out, False)
        self.config.mark_complete()
        logger.debug("GSSAPI negotiated qop %s with max buffer %d",
                     self.qop.decode('ascii'), self.max_buffer)
        return response

    def wrap(self, outgoing):
        if self.qop == QOP.AUTH:
            return outgoing
        return self.context.wrap(bytes(outgoing), self.qop == QOP.AUTH_CONF)

    def unwrap(self, incoming):
        if self.qop == QOP.AUTH:
            return incoming
        return self.context.unwrap(bytes(incoming),
                                   require_confidentiality=self.qop == QOP.AUTH_CONF)

    def dispose(self):
        if self.context is not None:
            context, self.context = self.context, None
            context.dispose()
