"""
Default chart of accounts for a produce trading business.

Listed parents first, so each account's parent already exists
when it is created. Seeding is idempotent: codes that are
already in the chart are left alone.
"""

import logging

from sqlalchemy.orm import Session

from trade_ledger.models.enums import AccountType
from trade_ledger.schemas.account import AccountCreate
from trade_ledger.services.account_service import AccountService

logger = logging.getLogger(__name__)

A, L, E, R, X = (
    AccountType.ASSET,
    AccountType.LIABILITY,
    AccountType.EQUITY,
    AccountType.REVENUE,
    AccountType.EXPENSE,
)

# (code, name, type, parent code, description)
DEFAULT_CHART = [
    ("1000", "Assets", A, None, "Main asset category"),
    ("1100", "Current Assets", A, "1000", "Assets expected to be converted to cash within one year"),
    ("1110", "Cash and Cash Equivalents", A, "1100", "Liquid cash assets"),
    ("1111", "Petty Cash", A, "1110", "Small cash fund for minor expenses"),
    ("1112", "Cash in Bank - Main Account", A, "1110", "Primary business bank account"),
    ("1113", "Cash in Bank - Savings", A, "1110", "Business savings account"),
    ("1120", "Accounts Receivable", A, "1100", "Money owed by customers"),
    ("1121", "Trade Receivables", A, "1120", "Outstanding customer invoices"),
    ("1130", "Inventory", A, "1100", "Trading inventory"),
    ("1131", "Banana Inventory", A, "1130", "Fresh banana stock for trading"),
    ("1132", "Packaging Materials", A, "1130", "Boxes, bags, and other packaging supplies"),
    ("1140", "Prepaid Expenses", A, "1100", "Expenses paid in advance"),
    ("1200", "Fixed Assets", A, "1000", "Long-term physical assets"),
    ("1210", "Equipment", A, "1200", "Business equipment and machinery"),
    ("1220", "Vehicles", A, "1200", "Delivery trucks and transportation"),
    ("1230", "Furniture & Fixtures", A, "1200", "Office and warehouse furniture"),

    ("2000", "Liabilities", L, None, "Main liability category"),
    ("2100", "Current Liabilities", L, "2000", "Debts due within one year"),
    ("2110", "Accounts Payable", L, "2100", "Money owed to suppliers"),
    ("2111", "Trade Payables", L, "2110", "Outstanding supplier invoices"),
    ("2120", "Accrued Expenses", L, "2100", "Expenses incurred but not yet paid"),
    ("2130", "Short-term Loans", L, "2100", "Loans due within one year"),
    ("2200", "Long-term Liabilities", L, "2000", "Debts due after one year"),
    ("2210", "Long-term Loans", L, "2200", "Loans with terms over one year"),

    ("3000", "Equity", E, None, "Owner's equity and retained earnings"),
    ("3100", "Owner's Capital", E, "3000", "Initial and additional capital contributions"),
    ("3200", "Retained Earnings", E, "3000", "Accumulated profits retained in business"),
    ("3300", "Owner's Drawings", E, "3000", "Money withdrawn by owner"),

    ("4000", "Revenue", R, None, "Main revenue category"),
    ("4100", "Sales Revenue", R, "4000", "Income from banana sales"),
    ("4110", "Banana Sales - Retail", R, "4100", "Direct sales to consumers"),
    ("4120", "Banana Sales - Wholesale", R, "4100", "Bulk sales to retailers"),
    ("4200", "Other Income", R, "4000", "Non-trading income"),
    ("4210", "Interest Income", R, "4200", "Interest earned on bank deposits"),

    ("5000", "Expenses", X, None, "Main expense category"),
    ("5100", "Cost of Goods Sold", X, "5000", "Direct costs of banana purchases"),
    ("5110", "Banana Purchases", X, "5100", "Cost of bananas bought for resale"),
    ("5120", "Freight In", X, "5100", "Transportation costs for incoming goods"),
    ("5200", "Operating Expenses", X, "5000", "Regular business operating costs"),
    ("5210", "Rent Expense", X, "5200", "Warehouse and office rent"),
    ("5220", "Utilities Expense", X, "5200", "Electricity, water, gas bills"),
    ("5230", "Transportation Expense", X, "5200", "Delivery and vehicle costs"),
    ("5240", "Marketing & Advertising", X, "5200", "Promotional and marketing costs"),
    ("5250", "Insurance Expense", X, "5200", "Business insurance premiums"),
    ("5260", "Professional Services", X, "5200", "Legal, accounting, consulting fees"),
    ("5270", "Bank Charges", X, "5200", "Banking fees and charges"),
    ("5280", "Office Supplies", X, "5200", "Stationery and office materials"),
    ("5290", "Repairs & Maintenance", X, "5200", "Equipment and facility maintenance"),
    ("5300", "Employee Expenses", X, "5000", "Staff-related costs"),
    ("5310", "Salaries & Wages", X, "5300", "Employee compensation"),
    ("5320", "Employee Benefits", X, "5300", "Health insurance, retirement contributions"),
]


def seed_chart_of_accounts(db: Session) -> int:
    """
    Create any missing accounts of the default chart.

    Returns the number of accounts created. Does not commit;
    run it inside atomic(...).
    """
    service = AccountService(db)
    created = 0
    for code, name, account_type, parent_code, description in DEFAULT_CHART:
        if service.get_account_by_code(code) is not None:
            continue
        parent = service.get_account_by_code(parent_code) if parent_code else None
        service.create_account(AccountCreate(
            code=code,
            name=name,
            account_type=account_type,
            parent_id=parent.id if parent else None,
            description=description,
        ))
        created += 1

    if created:
        logger.info("Seeded %d accounts into the chart", created)
    return created
