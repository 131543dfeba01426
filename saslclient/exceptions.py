class SASLError(Exception):
    """
    Typically represents a user error in configuration or usage of the
    SASL client or mechanism, such as stepping a mechanism which has
    already completed.
    """
    pass


class SASLProtocolException(Exception):
    """
    Raised when an error occurs while communicating with the SASL server
    or the client and server fail to agree on negotiated properties such
    as quality of protection.
    """
    pass


class SASLParseError(SASLProtocolException):
    """
    Raised when a challenge from the server cannot be decoded.
    """
    pass


class SASLContextError(SASLProtocolException):
    """
    Raised when the underlying GSSAPI security context fails to establish,
    wrap or unwrap. The original error from the kerberos binding is
    available as ``__cause__``.
    """
    pass


class SASLAuthenticationFailure(Exception):
    """
    Raised when a server declines to authenticate a client, or when the
    server fails to prove its own identity during mutual authentication.
    """
    pass


class SASLWarning(Warning):
    """
    Emitted in potentially fatal circumstances, such as a security layer
    being disabled because no quality of protection could be agreed on.
    """
    pass
