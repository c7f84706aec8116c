"""Tests for address grammar checks and the free-text scanner."""

import pytest

from conftest import SYSTEM_PROGRAM, USDC_MINT, WALLET
from wallet_intel.errors import InvalidIdentifierError
from wallet_intel.validation import (
    BASE58_ALPHABET,
    find_identifier,
    is_valid_identifier,
    require_identifier,
)


class TestIsValidIdentifier:
    def test_known_addresses(self):
        for address in (WALLET, USDC_MINT, SYSTEM_PROGRAM):
            assert is_valid_identifier(address), address

    @pytest.mark.parametrize('length', [32, 38, 44])
    def test_lengths_in_range(self, length):
        assert is_valid_identifier('1' * length)

    @pytest.mark.parametrize('length', [0, 1, 31, 45, 88])
    def test_lengths_out_of_range(self, length):
        assert not is_valid_identifier('a' * length)

    @pytest.mark.parametrize('bad_char', ['0', 'O', 'I', 'l', '-', ' ', '_', 'é'])
    def test_characters_outside_alphabet(self, bad_char):
        candidate = WALLET[:-1] + bad_char
        assert not is_valid_identifier(candidate)

    def test_every_alphabet_character_accepted(self):
        alphabet = ''.join(sorted(BASE58_ALPHABET))
        assert len(alphabet) == 58
        for start in range(0, 58, 32):
            chunk = (alphabet[start:] + alphabet)[:32]
            assert is_valid_identifier(chunk)

    def test_ethereum_address_rejected(self):
        assert not is_valid_identifier('0x1234567890abcdef1234567890abcdef12345678')

    def test_non_string_rejected(self):
        assert not is_valid_identifier(None)
        assert not is_valid_identifier(12345)


class TestFindIdentifier:
    def test_first_match_in_text(self):
        text = f'Check this wallet: {WALLET} and also {USDC_MINT}'
        assert find_identifier(text) == WALLET

    def test_no_match(self):
        assert find_identifier('gm, how is everyone doing today?') is None

    def test_punctuation_attached_is_not_a_match(self):
        assert find_identifier(f'What about `{WALLET}`?') is None

    def test_multiline_text(self):
        assert find_identifier(f'hello\n{WALLET}\nbye') == WALLET


def test_require_identifier():
    assert require_identifier(WALLET) == WALLET
    with pytest.raises(InvalidIdentifierError, match='Invalid Solana wallet'):
        require_identifier('not-a-wallet')
