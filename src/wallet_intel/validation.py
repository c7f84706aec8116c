from .errors import InvalidIdentifierError

BASE58_ALPHABET = frozenset('123456789ABCDEFGHJKLMNPQRSTUVWXYZabcdefghijkmnopqrstuvwxyz')
MIN_IDENTIFIER_LENGTH = 32
MAX_IDENTIFIER_LENGTH = 44


def is_valid_identifier(value: str) -> bool:
    if not isinstance(value, str):
        return False
    if len(value) < MIN_IDENTIFIER_LENGTH or len(value) > MAX_IDENTIFIER_LENGTH:
        return False
    return all(ch in BASE58_ALPHABET for ch in value)


def find_identifier(text: str) -> str | None:
    """Return the first whitespace-separated token of ``text`` that looks like an address."""
    for word in text.split():
        if is_valid_identifier(word):
            return word
    return None


def require_identifier(value: str) -> str:
    if not is_valid_identifier(value):
        raise InvalidIdentifierError('Invalid Solana wallet format')
    return value
