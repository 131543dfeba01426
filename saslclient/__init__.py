from .exceptions import (SASLAuthenticationFailure, SASLContextError, SASLError,
                         SASLParseError, SASLProtocolException, SASLWarning)
from .qop import DEFAULT_MAX_BUFFER, QOP
from .client import SASLClient

__version__ = '0.1.0'
