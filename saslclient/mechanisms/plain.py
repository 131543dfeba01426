import logging

from .base import Mechanism
from ..utils import to_bytes

logger = logging.getLogger(__name__)


class PlainMechanism(Mechanism):
    """
    A plaintext user/password based mechanism.
    Defined in RFC 4616

    Required and optional keyword arguments are listed below. These should be
    passed to SASLClient

      Required:
        username=
        password=
      Optional:
        identity=""

    The client's `authorization_id`, when set, takes priority over `identity`.
    """
    name = 'PLAIN'
    score = 1

    allows_anonymous = False

    def __init__(self, sasl, username=None, password=None, identity='', **props):
        Mechanism.__init__(self, sasl)
        self.identity = identity
        self.username = username
        self.password = password

    def process_challenge(self, challenge=None):
        logger.info("attempting PLAIN mechanism")
        self._fetch_properties('username', 'password')
        self.config.mark_complete()
        auth_id = self.authorization_id or self.identity or ''
        return b'\x00'.join((to_bytes(auth_id), to_bytes(self.username), to_bytes(self.password)))

    def dispose(self):
        self.password = None
