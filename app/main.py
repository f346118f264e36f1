import sys
import os
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import logging
from datetime import date

import streamlit as st
import pandas as pd
import plotly.express as px
import plotly.graph_objects as go

from budget import config
from budget.aggregation import (
    budget_usage_percentage,
    category_percentages,
    income_spent_percentage,
    is_over_budget,
    month_key,
    monthly_totals,
    remaining_budget,
    top_categories,
)
from budget.domain import (
    EXPENSE,
    EXPENSE_CATEGORIES,
    INCOME,
    CATEGORIES_BY_TYPE,
    Session,
)
from budget.filters import list_transactions
from budget.functional import find_transaction, validate_budget, validate_transaction
from budget.services import BudgetTracker, default_report_service
from budget.store import JsonRecordStore
from budget.transforms import load_seed

config.configure_logging()
config.ensure_data_directories()
logger = logging.getLogger("budget.app")

st.set_page_config(page_title="Budget Buddy", layout="wide")


def money(amount: float) -> str:
    return f"{amount:,.2f} {config.CURRENCY}"


def tx_to_df(tx_list):
    rows = [
        {
            "Date": t.date,
            "Description": t.description,
            "Category": t.category.capitalize(),
            "Type": t.type,
            "Amount": money(t.amount if t.type == INCOME else -t.amount),
        }
        for t in tx_list
    ]
    return pd.DataFrame(rows, columns=["Date", "Description", "Category", "Type", "Amount"])


def recent_months(end: date, count: int) -> list[str]:
    periods = pd.period_range(end=pd.Period(end, freq="M"), periods=count, freq="M")
    return [str(p) for p in periods]


st.sidebar.markdown("### 👤 Profile")
nickname = st.sidebar.text_input("Nickname", value=st.session_state.get("nickname", config.DEFAULT_USER))
st.session_state["nickname"] = nickname.strip() or config.DEFAULT_USER
session = Session(user_id=st.session_state["nickname"])

trackers = st.session_state.setdefault("trackers", {})
if session.user_id not in trackers:
    trackers[session.user_id] = BudgetTracker(JsonRecordStore(session))
tracker: BudgetTracker = trackers[session.user_id]

selected_day = st.sidebar.date_input("Month", value=date.today(), key="selected_month")
month = month_key(selected_day)
st.sidebar.caption(f"Showing {pd.Period(month, freq='M').strftime('%B %Y')}")

if st.sidebar.button("🔄 Refresh"):
    tracker.reload()

if not tracker.transactions and not tracker.budgets and config.SEED_PATH.exists():
    if st.sidebar.button("Load demo data"):
        seed_transactions, seed_budgets = load_seed(str(config.SEED_PATH))
        tracker.store.import_records(seed_transactions, seed_budgets)
        tracker.reload()
        logger.info("Loaded demo data for %s", session.user_id)

menu = st.sidebar.radio("Menu", ["🏠 Dashboard", "🧾 Transactions", "🎯 Planning", "📑 Reports"])

if menu == "🏠 Dashboard":
    st.title("🏠 Dashboard")
    summary = tracker.summary

    k1, k2, k3, k4 = st.columns(4)
    with k1:
        st.metric("Income", money(summary.total_income))
    with k2:
        st.metric("Expenses", money(summary.total_expenses))
    with k3:
        st.metric("Balance", money(summary.balance))
    with k4:
        st.metric("Savings Rate", f"{summary.savings_rate:.0f}%")

    spent_pct = income_spent_percentage(summary)
    st.subheader("Budget Usage")
    st.progress(spent_pct / 100, text=f"{spent_pct}% of income spent")

    for alert in tracker.alerts:
        st.warning(f"🔴 {alert['alert']}")

    col_left, col_right = st.columns(2)
    with col_left:
        st.subheader("Expense Breakdown")
        totals = tracker.category_totals(month)
        shares = category_percentages(totals)
        slices = top_categories(totals)
        if slices:
            df_cat = pd.DataFrame(
                [
                    {"Category": c.capitalize(), "Total": v, "Share": f"{shares[c]:.1f}%"}
                    for c, v in slices
                ]
            )
            fig_cat = px.pie(df_cat, values="Total", names="Category", hover_data=["Share"])
            fig_cat.update_layout(height=320, margin=dict(t=10, b=10, l=10, r=10))
            st.plotly_chart(fig_cat, use_container_width=True)
        else:
            st.info("No expenses recorded for this month.")

    with col_right:
        st.subheader("Monthly Trend")
        months = recent_months(selected_day, 6)
        trend = monthly_totals(tracker.transactions, months)
        fig_ts = go.Figure()
        fig_ts.add_trace(go.Scatter(x=months, y=[trend[m]["income"] for m in months], mode="lines+markers", name="Income"))
        fig_ts.add_trace(go.Scatter(x=months, y=[trend[m]["expenses"] for m in months], mode="lines+markers", name="Expenses"))
        fig_ts.update_layout(height=320, margin=dict(t=10, b=10, l=10, r=10))
        st.plotly_chart(fig_ts, use_container_width=True)

    st.subheader("Recent Transactions")
    recent = list_transactions(tracker.transactions, month=month, limit=5)
    if recent:
        st.table(tx_to_df(recent))
    else:
        st.info("No transactions this month.")

elif menu == "🧾 Transactions":
    st.title("🧾 Transactions")

    kind = st.radio("Type", [EXPENSE, INCOME], horizontal=True, key="tx_type")
    with st.form("add_transaction", clear_on_submit=True):
        c1, c2 = st.columns(2)
        with c1:
            amount = st.number_input("Amount", min_value=0.0, step=100.0)
            description = st.text_input("Description", max_chars=100)
        with c2:
            tx_date = st.date_input("Date", value=date.today())
            category = st.selectbox("Category", CATEGORIES_BY_TYPE[kind])
        submitted = st.form_submit_button("Add Transaction")

    if submitted:
        result = validate_transaction(
            {"amount": amount, "description": description, "date": tx_date, "category": category, "type": kind}
        )
        if result.is_right():
            tracker.add_transaction(result.get_or_else(None))
            st.success("✅ Transaction added successfully")
        else:
            st.error(f"❌ {result.get_error()['message']}")

    st.subheader("History")
    query = st.text_input("Search", placeholder="Description or category")
    shown = list_transactions(tracker.transactions, month=month, query=query)
    if shown:
        st.dataframe(tx_to_df(shown), use_container_width=True, hide_index=True)
    else:
        st.info("No transactions found.")

    if shown:
        st.subheader("Edit or delete")
        labels = {t.id: f"{t.date} · {t.description} · {money(t.amount)}" for t in shown}
        selected_id = st.selectbox("Transaction", list(labels), format_func=labels.get)
        selected = find_transaction(shown, selected_id).get_or_else(None)
        if selected is not None:
            with st.form("edit_transaction"):
                new_amount = st.number_input("Amount", min_value=0.0, value=float(selected.amount), step=100.0)
                new_description = st.text_input("Description", value=selected.description, max_chars=100)
                new_date = st.date_input("Date", value=date.fromisoformat(selected.date))
                options = CATEGORIES_BY_TYPE[selected.type]
                new_category = st.selectbox(
                    "Category",
                    options,
                    index=options.index(selected.category) if selected.category in options else 0,
                )
                save = st.form_submit_button("Save changes")
            if save:
                result = validate_transaction(
                    {
                        "id": selected.id,
                        "amount": new_amount,
                        "description": new_description,
                        "date": new_date,
                        "category": new_category,
                        "type": selected.type,
                    }
                )
                if result.is_right():
                    tracker.update_transaction(result.get_or_else(None))
                    st.success("✅ Transaction updated successfully")
                else:
                    st.error(f"❌ {result.get_error()['message']}")
            if st.button("🗑 Delete transaction"):
                tracker.delete_transaction(selected.id)
                st.success("✅ Transaction deleted successfully")

elif menu == "🎯 Planning":
    st.title("🎯 Budget Planning")

    with st.form("add_budget", clear_on_submit=True):
        category = st.selectbox("Category", EXPENSE_CATEGORIES)
        amount = st.number_input("Monthly limit", min_value=0.0, step=500.0)
        submitted = st.form_submit_button("Set Budget")
    if submitted:
        result = validate_budget({"category": category, "amount": amount, "month": month})
        if result.is_right():
            tracker.add_budget(result.get_or_else(None))
            st.success("✅ Budget saved")
        else:
            st.error(f"❌ {result.get_error()['message']}")

    month_budgets = tracker.budgets_for_month(month)
    if not month_budgets:
        st.info("No budgets set for this month.")
    for b in month_budgets:
        usage = budget_usage_percentage(b)
        left = remaining_budget(b)
        cols = st.columns([3, 1])
        with cols[0]:
            st.markdown(f"**{b.category.capitalize()}** · {money(b.spent)} of {money(b.amount)}")
            st.progress(usage / 100, text=f"{usage}%")
            if is_over_budget(b):
                st.error(f"Over budget by {money(-left)}")
            else:
                st.caption(f"{money(left)} left")
        with cols[1]:
            new_limit = st.number_input("Limit", min_value=0.0, value=float(b.amount), step=500.0, key=f"limit_{b.id}")
            if st.button("Update", key=f"upd_{b.id}"):
                result = validate_budget({"id": b.id, "category": b.category, "amount": new_limit, "month": b.month})
                if result.is_right():
                    tracker.update_budget(result.get_or_else(None))
                    st.success("✅ Budget updated")
                else:
                    st.error(f"❌ {result.get_error()['message']}")
            if st.button("Delete", key=f"del_{b.id}"):
                tracker.delete_budget(b.id)
                st.success("✅ Budget deleted")

elif menu == "📑 Reports":
    st.title("📑 Reports")

    report = tracker.monthly_report(month)
    result = report["result"]
    summary = result["summary"]
    r1, r2, r3 = st.columns(3)
    r1.metric("Month income", money(summary.total_income))
    r2.metric("Month expenses", money(summary.total_expenses))
    r3.metric("Month savings rate", f"{summary.savings_rate:.1f}%")

    messages = [m for v in report["validation"] for m in v["messages"]]
    if messages:
        st.subheader("Data warnings")
        for m in messages:
            st.warning(m)

    st.subheader("Budget progress")
    progress_rows = [
        {
            "Category": p["budget"].category,
            "Limit": p["budget"].amount,
            "Spent": p["budget"].spent,
            "Usage %": p["usage"],
            "Over budget": p["over_budget"],
        }
        for p in result["budgets"]
    ]
    st.dataframe(pd.DataFrame(progress_rows), use_container_width=True, hide_index=True)

    st.subheader("Category history")
    sel = st.selectbox("Category", EXPENSE_CATEGORIES, key="report_category")
    cat_report = default_report_service().category_report(sel, tracker.transactions)
    history = cat_report["result"]["history"]
    if history:
        fig_hist = px.bar(
            x=list(history.keys()),
            y=list(history.values()),
            labels={"x": "Month", "y": f"Spent ({config.CURRENCY})"},
        )
        st.plotly_chart(fig_hist, use_container_width=True)
        st.caption(f"Average per month: {money(cat_report['result']['average'])}")
    else:
        st.info(f"No {sel} expenses yet.")
