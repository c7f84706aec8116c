from .schemas import SYSTEM_PROGRAM_ID, CanonicalAccount, Classification
from .validation import is_valid_identifier

CLASSIFICATION_NOTE = (
    'Heuristic only: derived from the owning program and executable flag reported '
    'by the data source, so a wallet may be labelled a program and vice versa.'
)


def classify(account: CanonicalAccount | None) -> Classification:
    if account is None:
        return 'unknown'

    owner = account.owning_program
    if owner:
        if is_valid_identifier(owner):
            return 'wallet' if owner == SYSTEM_PROGRAM_ID else 'program'
        # Solscan can return a display label such as "System Program" instead of an id.
        lowered = owner.lower()
        if 'system' in lowered:
            return 'wallet'
        if any(word in lowered for word in ('token', 'program', 'contract')):
            return 'program'

    return 'program' if account.is_executable else 'wallet'
