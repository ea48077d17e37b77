"""Chain webhook schemas."""

from pydantic import BaseModel


class AccountTxNotification(BaseModel):
    """tonapi account-transaction webhook payload."""

    account_id: str
    lt: int | None = None
    tx_hash: str
