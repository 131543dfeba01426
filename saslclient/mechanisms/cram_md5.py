import hashlib
import hmac

from .base import Mechanism
from ..utils import to_bytes


class CramMD5Mechanism(Mechanism):
    """
    Challenge-response mechanism keyed with the user's password.
    Defined in RFC 2195

    The response is the username, a space, and the hex HMAC-MD5 of the
    server challenge. The HMAC is sent as 32 lowercase hex characters, not
    as the raw 16-byte digest.
    """
    name = "CRAM-MD5"
    score = 20

    allows_anonymous = False
    uses_plaintext = False

    def __init__(self, sasl, username=None, password=None, **props):
        Mechanism.__init__(self, sasl)
        self.username = username
        self.password = password

    def process_challenge(self, challenge=None):
        if challenge is None:
            return None

        self._fetch_properties('username', 'password')
        mac = hmac.HMAC(key=to_bytes(self.password), digestmod=hashlib.md5)
        mac.update(to_bytes(challenge))
        self.config.mark_complete()
        return b''.join((to_bytes(self.username), b' ', to_bytes(mac.hexdigest())))

    def dispose(self):
        self.password = None
