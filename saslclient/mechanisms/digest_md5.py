import hashlib
import hmac
import logging
import random
import string

from .base import Mechanism
from ..challenge import parse_challenge, quote
from ..exceptions import SASLAuthenticationFailure, SASLError, SASLParseError, SASLProtocolException
from ..qop import QOP
from ..utils import to_bytes

logger = logging.getLogger(__name__)

CNONCE_LENGTH = 14

#: Advertised with any qop other than "auth"
MAXBUF = b'16777215'  # 2**24-1

_A2_ZEROS = b':00000000000000000000000000000000'
_CNONCE_CHARS = string.ascii_letters + string.digits
_random = random.SystemRandom()


def gen_cnonce(length=CNONCE_LENGTH):
    """Generate a random alphanumeric client nonce."""
    return ''.join(_random.choice(_CNONCE_CHARS) for _ in range(length)).encode('ascii')


class DigestMD5Mechanism(Mechanism):
    """
    DIGEST-MD5 SASL mechanism, client side.
    Defined in RFC 2831

    Required and optional keyword arguments are listed below. These should be
    passed to SASLClient

      Required:
        username=
        password=
      Optional:
        realm=None
          Used when the server challenge carries no realm.

    The SASLClient must be given a `service`; the digest-uri sent to the
    server is ``service/host``.

    Negotiation takes two rounds. The first server challenge is answered with
    the digest response. The second carries ``rspauth``, the server's proof
    that it knows the password too; a wrong proof raises
    :exc:`SASLAuthenticationFailure`. The mechanism is complete after the
    second round either way.

    A single ``qop`` offered by the server is echoed back. From a list of
    offers ``auth`` is chosen, since no DIGEST-MD5 security layer is
    provided and :meth:`wrap` and :meth:`unwrap` pass messages through.

    :attr:`max_buffer` is the smaller of the client's `max_buffer` and the
    server's ``maxbuf``, or ``None`` when the server sent none. It is
    informational only.
    """
    name = "DIGEST-MD5"
    score = 30

    allows_anonymous = False
    uses_plaintext = False

    def __init__(self, sasl, username=None, password=None, realm=None, **props):
        Mechanism.__init__(self, sasl)
        if not sasl.service:
            raise SASLError('%s requires a service name' % self.name)
        self.username = username
        self.password = password
        self.realm = realm

        self._digest_uri = to_bytes(sasl.service) + b'/' + to_bytes(sasl.host)

        self.nonce = None
        self.cnonce = None
        self.key_hash = None
        self.max_buffer = None
        self.nc = 0

    def dispose(self):
        self.password = None
        self.key_hash = None
        self.realm = None
        self.nonce = None
        self.cnonce = None
        self.nc = 0

    def _a2_suffix(self):
        if self.qop != QOP.AUTH:
            return _A2_ZEROS
        return b''

    def response(self):
        required_props = ['username']
        if self.key_hash is None:
            required_props.append('password')
        self._fetch_properties(*required_props)

        if self.cnonce is None:
            self.cnonce = gen_cnonce()
        self.nc += 1

        resp = [
            (b'qop', self.qop),
            (b'realm', quote(self.realm or b'')),
            (b'username', quote(self.username)),
            (b'nonce', quote(self.nonce)),
            (b'cnonce', quote(self.cnonce)),
            (b'nc', b'%08x' % self.nc),
            (b'digest-uri', quote(self._digest_uri)),
            (b'response', self.gen_hash(b'AUTHENTICATE:' + self._digest_uri + self._a2_suffix())),
        ]
        if self.qop != QOP.AUTH:
            resp.append((b'maxbuf', MAXBUF))
        return b','.join(k + b'=' + v for k, v in resp)

    @staticmethod
    def gen_key_hash(username, password, realm=''):
        kh = b':'.join((to_bytes(username), to_bytes(realm), to_bytes(password)))
        return hashlib.md5(kh).digest()

    def gen_hash(self, a2):
        if self.key_hash is None:
            self.key_hash = self.gen_key_hash(self.username, self.password, self.realm or b'')

        a1 = hashlib.md5(self.key_hash)
        a1.update(b':' + self.nonce + b':' + self.cnonce)
        if self.authorization_id:
            a1.update(b':' + to_bytes(self.authorization_id))

        rv = b':'.join((
            to_bytes(a1.hexdigest()),
            self.nonce,
            b'%08x' % self.nc,
            self.cnonce,
            self.qop,
            to_bytes(hashlib.md5(a2).hexdigest()),
        ))
        return to_bytes(hashlib.md5(rv).hexdigest())

    def authenticate_server(self, cmp_hash):
        if self.nc == 0:
            raise SASLProtocolException('Server sent rspauth before any response')
        expected = self.gen_hash(b':' + self._digest_uri + self._a2_suffix())
        self.config.mark_complete()
        if not hmac.compare_digest(expected, cmp_hash):
            raise SASLAuthenticationFailure('Invalid server auth response')
        logger.debug("DIGEST-MD5 server authenticated")

    def process_challenge(self, challenge=None):
        if challenge is None:
            return None

        challenge_dict = parse_challenge(challenge)
        if 'rspauth' in challenge_dict:
            self.authenticate_server(challenge_dict['rspauth'])
            return None

        logger.info("attempting DIGEST-MD5 mechanism")
        if 'nonce' not in challenge_dict:
            raise SASLProtocolException('DIGEST-MD5 challenge carries no nonce')
        self.nonce = challenge_dict['nonce']

        if 'realm' in challenge_dict:
            self.realm = challenge_dict['realm']
        elif self.realm is None and self.sasl.callback:
            self._fetch_properties('realm')
        self.realm = to_bytes(self.realm)

        server_offered_qops = [
            x.strip() for x in challenge_dict.get('qop', QOP.AUTH).split(b',')
        ]
        if len(server_offered_qops) == 1:
            # a single offer is echoed back as is
            self.qop = server_offered_qops[0] or QOP.AUTH
        else:
            self._pick_qop(set(server_offered_qops))

        if 'maxbuf' in challenge_dict:
            try:
                server_max_buffer = int(challenge_dict['maxbuf'])
            except ValueError as e:
                raise SASLParseError('Invalid maxbuf %r in DIGEST-MD5 challenge'
                                     % challenge_dict['maxbuf']) from e
            self.max_buffer = min(self.sasl.max_buffer, server_max_buffer)

        logger.debug("DIGEST-MD5 round %d with qop %s", self.nc + 1, self.qop.decode('ascii'))
        return self.response()
