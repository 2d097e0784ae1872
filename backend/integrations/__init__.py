"""External API integrations.

This package contains:
- Provider protocol: normalized account/transaction shapes and the client contract
- Typed provider exceptions
- Plaid client: Link flow, balances and the /transactions/sync change feed
"""

from integrations.provider_protocol import (
    ProviderAccountBalance,
    ProviderTransaction,
    TransactionDelta,
    TransactionProvider,
)

__all__ = [
    "ProviderAccountBalance",
    "ProviderTransaction",
    "TransactionDelta",
    "TransactionProvider",
]
