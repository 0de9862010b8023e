"""Payment domain exceptions."""

from __future__ import annotations


class PaymentProviderError(Exception):
    """The payment provider rejected the operation or could not be reached.

    The original provider exception is chained as ``__cause__``.
    """
