"""
Declarative base for all database models.

Every model (Account, Transaction, TransactionEntry, ...)
inherits from Base. Engine and session handling live in
trade_ledger.database so that nothing connects at import time.
"""

from sqlalchemy import Numeric
from sqlalchemy.orm import DeclarativeBase


# Every monetary column uses the same fixed-point type.
# Two fractional digits, never a binary float.
Money = Numeric(14, 2)


class Base(DeclarativeBase):
    pass
