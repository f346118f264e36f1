from dataclasses import dataclass

INCOME = "income"
EXPENSE = "expense"
TRANSACTION_TYPES = (INCOME, EXPENSE)

INCOME_CATEGORIES = ("salary", "investment", "freelance", "other")

EXPENSE_CATEGORIES = (
    "housing",
    "transportation",
    "food",
    "utilities",
    "insurance",
    "healthcare",
    "savings",
    "personal",
    "entertainment",
    "education",
    "debt",
    "gifts",
    "other",
)

# "other" sits in both partitions
ALL_CATEGORIES = EXPENSE_CATEGORIES[:-1] + INCOME_CATEGORIES

CATEGORIES_BY_TYPE = {
    INCOME: INCOME_CATEGORIES,
    EXPENSE: EXPENSE_CATEGORIES,
}


@dataclass(frozen=True)
class Session:
    user_id: str


@dataclass(frozen=True)
class Transaction:
    id: str
    amount: float       # always positive, sign comes from type
    description: str
    date: str           # "2024-01-05"
    category: str
    type: str           # "income" or "expense"


# A monthly ceiling for one expense category
@dataclass(frozen=True)
class Budget:
    id: str
    category: str
    amount: float
    month: str          # "2024-01"
    spent: float = 0.0  # derived, see aggregation.recompute_budget_spending


@dataclass(frozen=True)
class Summary:
    total_income: float = 0.0
    total_expenses: float = 0.0
    balance: float = 0.0
    savings_rate: float = 0.0
