from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

SourceLabel = Literal['primary', 'fallback']
Classification = Literal['wallet', 'program', 'unknown']

LAMPORTS_PER_SOL = 1_000_000_000
SYSTEM_PROGRAM_ID = '11111111111111111111111111111111'


def placeholder_symbol(mint: str) -> str:
    return f'{mint[:5]}...' if mint else 'Unknown'


class RawAccountPayload(BaseModel):
    """Upstream data exactly as one source returned it, before normalization."""

    source: SourceLabel
    account: dict[str, Any]
    tokens: list[Any]
    transactions: list[Any]


class TransactionRecord(BaseModel):
    signature: str
    block_time: int | None = None


class TokenHolding(BaseModel):
    mint: str
    raw_amount: str = '0'
    display_amount: float = 0.0
    decimals: int | None = None
    symbol: str | None = None
    name: str | None = None
    unit_price_usd: float | None = None


class TokenMetadataEntry(BaseModel):
    mint: str
    symbol: str | None = None
    name: str | None = None
    decimals: int | None = None


class CanonicalAccount(BaseModel):
    balance_minor_units: int = Field(default=0, ge=0)
    is_executable: bool = False
    owning_program: str | None = None
    holdings: list[TokenHolding] = Field(default_factory=list)
    transaction_count: int = Field(default=0, ge=0)
    transactions: list[TransactionRecord] = Field(default_factory=list)
    source_label: SourceLabel

    @model_validator(mode='after')
    def _check_invariants(self) -> 'CanonicalAccount':
        mints = [h.mint for h in self.holdings]
        if len(mints) != len(set(mints)):
            raise ValueError('holdings must contain at most one entry per mint')
        if self.transaction_count < len(self.transactions):
            raise ValueError('transaction_count is smaller than the retained transaction list')
        return self


class WalletReportRequest(BaseModel):
    wallet: str = Field(..., description='Target Solana wallet address')


class WalletScanRequest(BaseModel):
    text: str = Field(..., description='Free-form message that may contain a wallet address')
    caller_id: str | None = Field(
        default=None, description='Caller identity for admission control; defaults to the client host'
    )


class TraceStep(BaseModel):
    step: str
    duration_ms: int
    ok: bool
    detail: str | None = None
    source: SourceLabel | None = None


class WalletReportResponse(BaseModel):
    wallet: str
    source: SourceLabel
    classification: Classification
    report: str
    explorer_url: str
    account: CanonicalAccount
    trace: list[TraceStep] = Field(default_factory=list)


class WalletScanResponse(BaseModel):
    wallet: str | None = None
    result: WalletReportResponse | None = None
