import logging

from .base import Mechanism

logger = logging.getLogger(__name__)


class AnonymousMechanism(Mechanism):
    """
    An anonymous user login mechanism.
    Defined in RFC 4505

    Any challenge is ignored; the response is always the same trace token.
    """
    name = 'ANONYMOUS'
    score = 0

    uses_plaintext = False

    def process_challenge(self, challenge=None):
        logger.info("attempting ANONYMOUS mechanism")
        self.config.mark_complete()
        return b'Anonymous, None'
