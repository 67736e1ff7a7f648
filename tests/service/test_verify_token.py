import pytest

from bikerental.service.verify_token import DummyVerifier, TokenVerificationError


@pytest.fixture
def dummy_verifier():
    return DummyVerifier()


class TestDummyVerifier:

    @pytest.mark.parametrize(('token', 'passes'), [
        ("abcd", True),
        ("9f86d081884c7d659a2feaa0c55ad015a3bf4f1b", True),
        (1234, False),
        (None, False),
        ("xp123", False),
        ("", False)
    ])
    async def test_verify(self, dummy_verifier, token, passes: bool):
        try:
            assert dummy_verifier.verify_token(token) == token
            assert passes
        except TokenVerificationError:
            assert not passes

    async def test_error_message(self, dummy_verifier):
        with pytest.raises(TokenVerificationError) as error:
            dummy_verifier.verify_token("xp123")
        assert error.value.message == "Not a valid hex string."
