from .anonymous import AnonymousMechanism
from .plain import PlainMechanism
from .cram_md5 import CramMD5Mechanism
from .digest_md5 import DigestMD5Mechanism
from .gssapi import GSSAPIMechanism, KerberosContext, SecurityContext, have_kerberos

#: Mapping of mechanism names to implementation classes.
mechanisms = dict((m.name, m) for m in (
    AnonymousMechanism,
    PlainMechanism,
    CramMD5Mechanism,
    DigestMD5Mechanism,
    GSSAPIMechanism))
