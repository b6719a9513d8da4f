"""Canned assistant replies used when no language model is configured."""

from typing import Callable, List, Tuple

from app.models import ExpenseStatus
from app.services.fallback_data import fallback_categories, fallback_expenses

DEMO_NOTE = "---\n⚠️ **Note**: This is demo data."
NOT_CONFIGURED_NOTE = (
    "---\n⚠️ **Note**: AI chat is not configured, so these are demo responses.\n"
    "Set `OPENAI_API_KEY` (or the `AZURE_OPENAI_*` settings) to enable full AI capabilities."
)


def expense_listing() -> str:
    lines = ["**Expense List** (Demo Data)", "", "Here are the current expenses:", ""]
    for number, e in enumerate(fallback_expenses(), start=1):
        lines.append(
            f"{number}. **{e.formatted_date}** - {e.category_name} - {e.formatted_amount} - {e.status.value}"
        )
        lines.append(f"   _{e.description}_")
        lines.append("")
    lines.append(NOT_CONFIGURED_NOTE)
    return "\n".join(lines)


def pending_listing() -> str:
    lines = ["**Pending Expenses** (Demo Data)", "", "The following expenses are awaiting approval:", ""]
    for e in fallback_expenses():
        if e.status != ExpenseStatus.SUBMITTED:
            continue
        lines.append(f"{e.expense_id}. **ID: {e.expense_id}** - {e.category_name} - {e.formatted_amount}")
        lines.append(f"   _Submitted by {e.user_name}_")
        lines.append("")
    lines.append(DEMO_NOTE)
    return "\n".join(lines)


def category_listing() -> str:
    lines = ["**Expense Categories**", ""]
    lines.extend(f"{c.category_id}. {c.category_name}" for c in fallback_categories())
    lines.extend(["", DEMO_NOTE])
    return "\n".join(lines)


def help_text() -> str:
    return "\n".join([
        "Hello! I'm the Expense Management Assistant.",
        "",
        "I can help you with:",
        '- **List expenses**: "Show me all expenses"',
        '- **Pending approvals**: "What expenses need approval?"',
        '- **Categories**: "What expense categories are available?"',
        '- **Search**: "Find travel expenses"',
        "",
        NOT_CONFIGURED_NOTE,
    ])


def _asks_for_expense_list(text: str) -> bool:
    return "expense" in text and any(word in text for word in ("list", "show", "all"))


def _asks_about_pending(text: str) -> bool:
    return "pending" in text or "approve" in text


def _asks_about_categories(text: str) -> bool:
    return "categor" in text


# Evaluated in order; the first match wins
RESPONSE_RULES: List[Tuple[Callable[[str], bool], Callable[[], str]]] = [
    (_asks_for_expense_list, expense_listing),
    (_asks_about_pending, pending_listing),
    (_asks_about_categories, category_listing),
]


def demo_response(message: str) -> str:
    text = message.lower()
    for predicate, render in RESPONSE_RULES:
        if predicate(text):
            return render()
    return help_text()
