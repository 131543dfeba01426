from ..exceptions import SASLError, SASLProtocolException
from ..qop import QOP


class MechanismConfig(object):
    """
    The negotiated properties of a single mechanism instance.

    Instances are created by :class:`Mechanism` and are only ever changed by
    the mechanism which owns them. The capability flags are descriptive and
    are not consulted during negotiation.
    """

    def __init__(self, name, score=0, has_initial_response=False,
                 allows_anonymous=True, uses_plaintext=True, active_safe=False,
                 dictionary_safe=False, qop=QOP.AUTH, authorization_id=None):
        self.name = name
        self.score = score
        self.has_initial_response = has_initial_response
        self.allows_anonymous = allows_anonymous
        self.uses_plaintext = uses_plaintext
        self.active_safe = active_safe
        self.dictionary_safe = dictionary_safe
        self.qop = qop
        self.authorization_id = authorization_id
        self._complete = False

    @property
    def complete(self):
        return self._complete

    def mark_complete(self):
        """
        Record that negotiation has finished. Completion can't be undone.
        """
        self._complete = True

    def __repr__(self):
        return '<MechanismConfig %s complete=%s qop=%s>' % (
            self.name, self._complete, self.qop.decode('ascii'))


class Mechanism(object):
    """
    The base class for all mechanisms.
    """

    name = None
    """ The IANA registered name for the mechanism. """

    score = 0
    """ A relative security score where higher scores correspond
    to more secure mechanisms. """

    has_initial_response = False

    allows_anonymous = True
    """ True if the mechanism allows for anonymous logins. """

    uses_plaintext = True
    """ True if the mechanism transmits sensitive information in plaintext. """

    active_safe = False
    """ True if the mechanism is safe against active attacks. """

    dictionary_safe = False
    """ True if the mechanism is safe against passive dictionary attacks. """

    qops = (QOP.AUTH,)
    """ QOPs supported by the Mechanism """

    _aborted = False

    def __init__(self, sasl, **props):
        self.sasl = sasl
        self.config = MechanismConfig(
            self.name,
            score=self.score,
            has_initial_response=self.has_initial_response,
            allows_anonymous=self.allows_anonymous,
            uses_plaintext=self.uses_plaintext,
            active_safe=self.active_safe,
            dictionary_safe=self.dictionary_safe,
            authorization_id=getattr(sasl, 'authorization_id', None))

    @property
    def complete(self):
        """ True once SASL negotiation has completed. """
        return self.config.complete

    @property
    def qop(self):
        """ Selected QOP """
        return self.config.qop

    @qop.setter
    def qop(self, value):
        self.config.qop = value

    @property
    def authorization_id(self):
        return self.config.authorization_id

    def get_config(self):
        return self.config

    def process(self, challenge=None):
        """
        Process a challenge from the server and return the response, which
        may be ``None`` if nothing has to be sent.

        A `challenge` of ``None`` asks for the initial client response.
        """
        if self.complete:
            raise SASLError('%s negotiation has already completed' % self.name)
        if self._aborted:
            raise SASLError('%s negotiation was aborted by an earlier error' % self.name)
        return self.process_challenge(challenge)

    def _abort(self):
        """
        Give up on the handshake after a fatal error and release anything
        the mechanism holds.
        """
        self._aborted = True
        self.dispose()

    def process_challenge(self, challenge=None):
        """
        Process a challenge request and return the response.

        :param challenge: A challenge issued by the server that
                          must be answered for authentication.
        """
        raise NotImplementedError()

    def wrap(self, outgoing):
        """
        Wrap an outgoing message intended for the SASL server. Depending
        on the negotiated quality of protection, this may result in the
        message being signed, encrypted, or left unaltered.
        """
        return outgoing

    def unwrap(self, incoming):
        """
        Unwrap a message from the SASL server. Depending on the negotiated
        quality of protection, this may check a signature, decrypt the message,
        or leave the message unaltered.
        """
        return incoming

    def dispose(self):
        """
        Clear all sensitive data, such as passwords. Calling this more than
        once is harmless.
        """
        pass

    def _fetch_properties(self, *properties):
        """
        Ensure this mechanism has the needed properties. If they haven't
        been set yet, the registered callback function will be called for
        each property to retrieve a value.
        """
        needed = [p for p in properties if getattr(self, p, None) is None]
        if needed and not self.sasl.callback:
            raise SASLError('The following properties are required, but a '
                            'callback has not been set: %s' % ', '.join(needed))

        for prop in needed:
            setattr(self, prop, self.sasl.callback(prop))

    def _pick_qop(self, server_qop_set, supported=None):
        """
        Choose a quality of protection based on the user's requirements,
        what the server supports, and what the mechanism supports.

        The strongest protection available to all three is selected.
        """
        user_qops = set(QOP.normalize(qop) for qop in self.sasl.qops)
        supported_qops = set(self.qops if supported is None else supported)
        available_qops = user_qops & supported_qops & set(server_qop_set)
        if not available_qops:
            user = b', '.join(sorted(user_qops)).decode('ascii')
            supported = b', '.join(sorted(supported_qops)).decode('ascii')
            offered = b', '.join(sorted(server_qop_set)).decode('ascii')
            raise SASLProtocolException("Your requested quality of "
                                        "protection is one of (%s), the server is "
                                        "offering (%s), and %s supports (%s)" % (user, offered, self.name, supported))
        for qop in QOP.by_strength:
            if qop in available_qops:
                self.qop = qop
                return qop
