from typing import Optional

from .config import CommitmentLevel
from .models import TransactionConfirmationStatus, TransactionStatus


def satisfies(status: TransactionStatus, requested: Optional[CommitmentLevel]) -> bool:
    """Whether an already fetched status meets the requested commitment level."""
    if requested == CommitmentLevel.FINALIZED:
        return status.confirmations is None
    if requested == CommitmentLevel.CONFIRMED:
        if status.confirmation_status is not None:
            return status.confirmation_status != TransactionConfirmationStatus.PROCESSED
        # older nodes omit confirmationStatus
        return status.confirmations is None or status.confirmations > 1
    return True


def confirmation_status(status: TransactionStatus) -> TransactionConfirmationStatus:
    if status.confirmation_status is not None:
        return status.confirmation_status
    if status.confirmations is None:
        return TransactionConfirmationStatus.FINALIZED
    if status.confirmations > 0:
        return TransactionConfirmationStatus.CONFIRMED
    return TransactionConfirmationStatus.PROCESSED
