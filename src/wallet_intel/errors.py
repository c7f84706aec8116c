from typing import Literal

ResolutionKind = Literal['not_found', 'rate_limited', 'unavailable']

NOT_FOUND_MESSAGE = 'Wallet address not found. Please check the address and try again.'
RATE_LIMITED_MESSAGE = 'Upstream API rate limit exceeded. Please try again in a few minutes.'
UNAVAILABLE_MESSAGE = (
    'Could not fetch wallet information. The address might be invalid '
    'or the API is temporarily unavailable.'
)


class InvalidIdentifierError(ValueError):
    pass


class AdapterError(RuntimeError):
    def __init__(self, source: str, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.source = source
        self.status_code = status_code


class AccountNotFoundError(AdapterError):
    def __init__(self, source: str, wallet: str) -> None:
        super().__init__(source, f'Account not found: {wallet}', status_code=404)


class UpstreamRateLimitError(AdapterError):
    def __init__(self, source: str, message: str) -> None:
        super().__init__(source, message, status_code=429)


class ResolutionError(RuntimeError):
    """Every adapter in the priority chain failed."""

    def __init__(self, wallet: str, causes: list[AdapterError]) -> None:
        summary = '; '.join(f'{c.source}: {c}' for c in causes) or 'no adapters configured'
        super().__init__(f'Failed to resolve {wallet}: {summary}')
        self.wallet = wallet
        self.causes = causes

    @property
    def kind(self) -> ResolutionKind:
        # The last adapter in the chain has the final word.
        if not self.causes:
            return 'unavailable'
        last = self.causes[-1]
        if isinstance(last, AccountNotFoundError):
            return 'not_found'
        if isinstance(last, UpstreamRateLimitError):
            return 'rate_limited'
        return 'unavailable'


def user_message(exc: ResolutionError) -> str:
    return {
        'not_found': NOT_FOUND_MESSAGE,
        'rate_limited': RATE_LIMITED_MESSAGE,
        'unavailable': UNAVAILABLE_MESSAGE,
    }[exc.kind]
