import unittest

from saslclient import DEFAULT_MAX_BUFFER, QOP, SASLClient, SASLError
from saslclient.mechanisms import mechanisms, PlainMechanism
from saslclient.mechanisms.base import MechanismConfig


class SASLClientTest(unittest.TestCase):

    def test_mechanism_lookup(self):
        self.assertEqual(set(mechanisms),
                         {'ANONYMOUS', 'PLAIN', 'CRAM-MD5', 'DIGEST-MD5', 'GSSAPI'})
        sasl = SASLClient('localhost', mechanism='PLAIN', username='user', password='pass')
        self.assertIsInstance(sasl._chosen_mech, PlainMechanism)

    def test_unknown_mechanism(self):
        self.assertRaises(SASLError, SASLClient, 'localhost', mechanism='SCRAM-SHA-1')

    def test_no_mechanism(self):
        self.assertRaises(SASLError, SASLClient, 'localhost')

    def test_max_buffer_range(self):
        self.assertRaises(SASLError, SASLClient, 'localhost', mechanism='ANONYMOUS',
                          max_buffer=2 ** 24)
        self.assertRaises(SASLError, SASLClient, 'localhost', mechanism='ANONYMOUS',
                          max_buffer=-1)
        self.assertEqual(SASLClient('localhost', mechanism='ANONYMOUS').max_buffer,
                         DEFAULT_MAX_BUFFER)

    def test_qops_normalized(self):
        sasl = SASLClient('localhost', mechanism='ANONYMOUS', qops=['auth', b'auth-int'])
        self.assertEqual(sasl.qops, {QOP.AUTH, QOP.AUTH_INT})

    def test_start(self):
        sasl = SASLClient('localhost', mechanism='PLAIN', username='user', password='pass')
        self.assertEqual(sasl.start(), b'\x00user\x00pass')
        self.assertTrue(sasl.complete)

    def test_complete_is_monotonic(self):
        sasl = SASLClient('localhost', mechanism='ANONYMOUS')
        self.assertFalse(sasl.complete)
        sasl.process()
        self.assertTrue(sasl.complete)
        self.assertRaises(SASLError, sasl.process)
        sasl.dispose()
        self.assertTrue(sasl.complete)

    def test_get_config(self):
        sasl = SASLClient('localhost', mechanism='PLAIN', authorization_id='authId',
                          username='user', password='pass')
        config = sasl.get_config()
        self.assertIsInstance(config, MechanismConfig)
        self.assertIs(config, sasl._chosen_mech.config)
        self.assertEqual(config.name, 'PLAIN')
        self.assertEqual(config.authorization_id, 'authId')
        self.assertFalse(config.allows_anonymous)
        self.assertFalse(config.complete)
        sasl.process()
        self.assertTrue(config.complete)
        self.assertEqual(config.qop, QOP.AUTH)

    def test_context_manager_disposes(self):
        with SASLClient('localhost', mechanism='PLAIN', username='user', password='pass') as sasl:
            sasl.process()
        self.assertIsNone(sasl._chosen_mech.password)

    def test_negotiated_max_buffer(self):
        sasl = SASLClient('localhost', mechanism='PLAIN', username='user', password='pass')
        self.assertIsNone(sasl.negotiated_max_buffer)
        self.assertEqual(sasl.qop, QOP.AUTH)
