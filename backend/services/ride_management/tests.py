from django.test import SimpleTestCase, override_settings

from services.ride_management.otp import issue_otp, verify_otp


class OtpTests(SimpleTestCase):
    def test_default_length(self):
        code = issue_otp()
        self.assertEqual(len(code), 4)
        self.assertTrue(code.isdigit())

    def test_length_is_clamped(self):
        self.assertEqual(len(issue_otp(2)), 4)
        self.assertEqual(len(issue_otp(9)), 6)

    @override_settings(RIDE_OTP_LENGTH=5)
    def test_length_from_settings(self):
        self.assertEqual(len(issue_otp()), 5)

    def test_leading_zeros_are_kept(self):
        self.assertTrue(verify_otp('0042', '0042'))
        self.assertFalse(verify_otp('0042', '42'))

    def test_whitespace_is_trimmed(self):
        self.assertTrue(verify_otp('1234', ' 1234\n'))

    def test_mismatch_and_empty(self):
        self.assertFalse(verify_otp('1234', '1235'))
        self.assertFalse(verify_otp('1234', ''))
        self.assertFalse(verify_otp('1234', None))
        self.assertFalse(verify_otp('', ''))
