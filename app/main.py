"""
Streamlit Frontend for the Household Ledger

The dashboard two people use to plan their monthly household money.

DESIGN PRINCIPLES:
1. Every number shown comes from the reporting flow
2. The selected view is passed explicitly to every read
3. Split shares are shown but never editable
4. Clear error messages for rejected writes
5. No hidden actions

The UI never touches storage directly:
- Writes go through BookkeepingFlow
- Reads go through ReportingFlow
"""

from datetime import date

import streamlit as st

from household_ledger.config import get_settings, validate_all_settings
from household_ledger.models.ledger import (
    UNASSIGNED_ACCOUNT,
    EntryKind,
    FixedCostCategory,
    Interval,
    Owner,
    SavingsType,
    SettlementDirection,
    View,
)
from household_ledger.money import format_cents, to_cents
from household_ledger.orchestrator import (
    BookkeepingFlow,
    ReportingFlow,
    create_app_components,
)
from household_ledger.services import (
    InvariantViolationError,
    StorageError,
)
from household_ledger.validation import LedgerValidationError, LedgerValidator


# Page configuration
st.set_page_config(
    page_title="Household Ledger",
    page_icon="💶",
    layout="wide",
    initial_sidebar_state="expanded",
)

# Custom CSS for better UX
st.markdown("""
<style>
    .stButton>button {
        width: 100%;
        margin-top: 10px;
    }
    .success-box {
        padding: 20px;
        background-color: #d4edda;
        border-radius: 10px;
        border-left: 5px solid #28a745;
        margin: 10px 0;
    }
    .warning-box {
        padding: 20px;
        background-color: #fff3cd;
        border-radius: 10px;
        border-left: 5px solid #ffc107;
        margin: 10px 0;
    }
    .info-box {
        padding: 20px;
        background-color: #cce5ff;
        border-radius: 10px;
        border-left: 5px solid #004085;
        margin: 10px 0;
    }
</style>
""", unsafe_allow_html=True)

CATEGORY_LABELS = {
    EntryKind.FIXED: "Fixed costs",
    EntryKind.BUDGET: "Budget",
    EntryKind.INCOME: "Income",
    EntryKind.SAVINGS: "Savings",
}


@st.cache_resource
def get_components():
    """Get or create application components (cached)."""
    return create_app_components()


def money(cents: int) -> str:
    return format_cents(cents, get_settings().app.currency_symbol)


def persona_label(owner) -> str:
    app_settings = get_settings().app
    value = getattr(owner, "value", owner)
    if value == Owner.MAIN.value:
        return app_settings.main_label
    if value == Owner.PARTNER.value:
        return app_settings.partner_label
    if value == View.COMBINED.value:
        return "Household"
    return "Shared"


def show_write_error(error: Exception):
    """Render a rejected write in plain language."""
    if isinstance(error, LedgerValidationError):
        st.error(LedgerValidator().get_user_friendly_summary(error.issues))
    elif isinstance(error, InvariantViolationError):
        st.warning(str(error))
    else:
        st.error(f"Could not save: {error}")


def main():
    """Main application entry point."""
    try:
        bookkeeping, reporting, _ = get_components()
    except StorageError as e:
        st.error(f"Failed to open the ledger: {e}")
        st.stop()

    # Sidebar navigation
    st.sidebar.title("💶 Household Ledger")
    st.sidebar.markdown("---")

    view = st.sidebar.radio(
        "View:",
        options=list(View),
        format_func=persona_label,
        index=2,
    )

    page = st.sidebar.radio(
        "Navigate to:",
        ["📊 Overview", "📝 Entries", "🏦 Accounts", "💾 Data", "⚙️ Settings"],
        index=0,
    )

    st.sidebar.markdown("---")
    st.sidebar.markdown(
        """
        **How splitting works:**
        - Entries on a shared account are split 50/50 automatically
        - Tick *Split 50/50* on a personal entry to charge half to the other person
        - Split shares update themselves; edit the original entry instead
        """
    )

    # Route to appropriate page
    if page == "📊 Overview":
        render_overview_page(reporting, view)
    elif page == "📝 Entries":
        render_entries_page(bookkeeping, reporting, view)
    elif page == "🏦 Accounts":
        render_accounts_page(bookkeeping, reporting)
    elif page == "💾 Data":
        render_data_page(bookkeeping, reporting)
    elif page == "⚙️ Settings":
        render_settings_page()


def render_overview_page(reporting: ReportingFlow, view: View):
    """Render the monthly overview for one view."""
    st.title(f"📊 Overview: {persona_label(view)}")

    dashboard = reporting.get_dashboard(view)
    summary = dashboard.summary
    yearly = summary.yearly()

    if summary.unassigned_entries:
        st.markdown(f"""
        <div class="warning-box">
            <h4>⚠️ {summary.unassigned_entries} entries have no known account</h4>
            <p>Assign them to an account so they count towards the right person.</p>
        </div>
        """, unsafe_allow_html=True)

    col1, col2, col3, col4, col5 = st.columns(5)
    col1.metric("Security", money(summary.security), help=f"{money(yearly.security)} per year")
    col2.metric("Fixed", money(summary.fixed), help=f"{money(yearly.fixed)} per year")
    col3.metric("Life", money(summary.life), help=f"{money(yearly.life)} per year")
    col4.metric("Wealth", money(summary.wealth), help=f"{money(yearly.wealth)} per year")
    col5.metric(
        "Buffer",
        money(summary.buffer),
        delta=None if summary.buffer >= 0 else "over budget",
        delta_color="inverse",
        help=f"{money(yearly.buffer)} per year",
    )

    st.caption(f"Income: {money(summary.income)} per month, {money(yearly.income)} per year")

    chart = summary.chart_values()
    st.bar_chart(
        {"slice": list(chart.keys()), "cents": list(chart.values())},
        x="slice",
        y="cents",
    )

    if dashboard.settlement is not None:
        settlement = dashboard.settlement
        if settlement.direction == SettlementDirection.SETTLED:
            st.markdown("""
            <div class="success-box">
                <h4>✅ All settled</h4>
                <p>Nobody owes anybody this month.</p>
            </div>
            """, unsafe_allow_html=True)
        else:
            debtor, creditor = (
                (Owner.PARTNER, Owner.MAIN)
                if settlement.direction == SettlementDirection.PARTNER_OWES_MAIN
                else (Owner.MAIN, Owner.PARTNER)
            )
            st.markdown(f"""
            <div class="info-box">
                <h4>🤝 Settlement</h4>
                <p><strong>{persona_label(debtor)}</strong> owes
                <strong>{persona_label(creditor)}</strong>
                {money(settlement.amount_owed)} per month.</p>
            </div>
            """, unsafe_allow_html=True)

    st.markdown("### Accounts")
    st.dataframe(
        [
            {
                "Account": balance.account,
                "Owner": balance.ownership.value,
                "In": money(balance.inflow),
                "Out": money(balance.outflow),
                "Net": money(balance.net),
            }
            for balance in dashboard.balances
        ],
        use_container_width=True,
    )


def render_entries_page(bookkeeping: BookkeepingFlow, reporting: ReportingFlow, view: View):
    """Render entry lists and the add/edit form."""
    st.title("📝 Entries")

    category = st.selectbox(
        "Category",
        options=list(EntryKind),
        format_func=lambda k: CATEGORY_LABELS[k],
    )

    entries = reporting.filtered(category, view)
    if entries:
        st.dataframe(
            [
                {
                    "Name": entry.name,
                    "Amount": money(entry.amount),
                    "Account": entry.account,
                    "Owner": persona_label(entry.owner),
                    "Paid by": persona_label(entry.paid_by),
                    "Split share": "yes" if entry.is_shadow else "",
                    **({"Interval": entry.interval.value} if category == EntryKind.FIXED else {}),
                }
                for entry in entries
            ],
            use_container_width=True,
        )
    else:
        st.info(f"No {CATEGORY_LABELS[category].lower()} in this view yet.")

    st.markdown("---")
    st.subheader("Add or edit")

    # Only primaries are editable
    editable = reporting.filtered(category, View.COMBINED)
    selected = st.selectbox(
        "Entry",
        options=[None] + editable,
        format_func=lambda e: "➕ New entry" if e is None else f"{e.name} ({money(e.amount)})",
    )

    account_names = [a.name for a in reporting.list_accounts()] + [UNASSIGNED_ACCOUNT]

    with st.form("entry_form"):
        col1, col2 = st.columns(2)
        with col1:
            name = st.text_input("Name *", value=selected.name if selected else "")
            amount_text = st.text_input(
                f"Amount ({get_settings().app.currency_symbol}) *",
                value=f"{selected.amount / 100:.2f}" if selected else "",
                help="Use a comma or a dot for cents",
            )
            account = st.selectbox(
                "Account *",
                options=account_names,
                index=account_names.index(selected.account)
                if selected and selected.account in account_names else 0,
            )
        with col2:
            owners = list(Owner)
            owner = st.selectbox(
                "Belongs to",
                options=owners,
                format_func=persona_label,
                index=owners.index(selected.owner) if selected else 0,
            )
            paid_by = st.selectbox(
                "Paid by",
                options=owners,
                format_func=persona_label,
                index=owners.index(selected.paid_by) if selected else 0,
            )
            split = st.checkbox(
                "Split 50/50",
                value=bool(selected and selected.is_payer_split),
                help="Ignored for shared entries, which are always split",
            )

        extra = {}
        if category == EntryKind.FIXED:
            intervals = list(Interval)
            categories = list(FixedCostCategory)
            extra["interval"] = st.selectbox(
                "Interval",
                options=intervals,
                format_func=lambda i: i.value.title(),
                index=intervals.index(selected.interval) if selected else 0,
            )
            extra["category"] = st.selectbox(
                "Type",
                options=categories,
                format_func=lambda c: c.value.title(),
                index=categories.index(selected.category) if selected else len(categories) - 1,
            )
        elif category == EntryKind.SAVINGS:
            types = list(SavingsType)
            extra["savings_type"] = st.selectbox(
                "Savings type",
                options=types,
                format_func=lambda t: t.value.title(),
                index=types.index(selected.savings_type) if selected else 0,
            )

        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        try:
            cents = to_cents(amount_text)
        except ValueError as e:
            st.error(str(e))
        else:
            draft = {
                "name": name,
                "amount": cents,
                "account": account,
                "owner": owner,
                "paid_by": paid_by,
                **extra,
            }
            if selected:
                draft["id"] = selected.id
            try:
                bookkeeping.upsert_entry(category, draft, split_requested=split)
                st.success(f"Saved '{name}'")
                st.rerun()
            except (LedgerValidationError, InvariantViolationError, StorageError) as e:
                show_write_error(e)

    if selected and st.button(f"🗑️ Delete '{selected.name}'"):
        try:
            bookkeeping.delete_entry(selected.id)
            st.rerun()
        except (InvariantViolationError, StorageError) as e:
            show_write_error(e)


def render_accounts_page(bookkeeping: BookkeepingFlow, reporting: ReportingFlow):
    """Render the accounts list and form."""
    st.title("🏦 Accounts")

    accounts = reporting.list_accounts()
    if accounts:
        st.dataframe(
            [
                {"Name": a.name, "Owner": persona_label(a.owner), "IBAN": a.iban or ""}
                for a in accounts
            ],
            use_container_width=True,
        )
    else:
        st.info("No accounts yet. Add the first one below.")

    selected = st.selectbox(
        "Account",
        options=[None] + accounts,
        format_func=lambda a: "➕ New account" if a is None else a.name,
    )

    with st.form("account_form"):
        name = st.text_input("Name *", value=selected.name if selected else "")
        owners = list(Owner)
        owner = st.selectbox(
            "Owner",
            options=owners,
            format_func=persona_label,
            index=owners.index(selected.owner) if selected else 0,
        )
        iban = st.text_input("IBAN (optional)", value=(selected.iban or "") if selected else "")
        submitted = st.form_submit_button("💾 Save", type="primary")

    if submitted:
        draft = {"name": name, "owner": owner, "iban": iban or None}
        if selected:
            draft["id"] = selected.id
        try:
            bookkeeping.upsert_account(draft)
            st.rerun()
        except (LedgerValidationError, StorageError) as e:
            show_write_error(e)

    if selected:
        st.markdown("---")
        confirm = st.checkbox(
            f"Entries on '{selected.name}' will be moved to '{UNASSIGNED_ACCOUNT}'"
        )
        if st.button(f"🗑️ Delete '{selected.name}'", disabled=not confirm):
            try:
                moved = bookkeeping.delete_account(selected.id)
                st.success(f"Deleted '{selected.name}', {moved} entries moved")
                st.rerun()
            except (InvariantViolationError, StorageError) as e:
                show_write_error(e)


def render_data_page(bookkeeping: BookkeepingFlow, reporting: ReportingFlow):
    """Render export and import."""
    st.title("💾 Data")

    st.markdown("### Export")
    st.download_button(
        "⬇️ Download backup",
        data=reporting.export_snapshot(),
        file_name=f"ledger-{date.today().isoformat()}.json",
        mime="application/json",
    )

    st.markdown("### Import")
    st.markdown(
        """
        <div class="warning-box">
            <p>Importing <strong>replaces everything</strong> in the ledger.
            Nothing is changed if the file has any problem.</p>
        </div>
        """,
        unsafe_allow_html=True,
    )
    uploaded_file = st.file_uploader("Choose a backup file", type=["json"])
    if uploaded_file and st.button("⬆️ Replace ledger", type="primary"):
        try:
            snapshot = bookkeeping.import_snapshot(uploaded_file.getvalue())
            st.success(
                f"Imported {len(snapshot.accounts)} accounts and {snapshot.count()} entries"
            )
        except (LedgerValidationError, StorageError) as e:
            show_write_error(e)


def render_settings_page():
    """Render the settings page."""
    st.title("⚙️ Settings")

    st.markdown("### Configuration Status")

    status = validate_all_settings()

    groups = [
        ("Storage (SQLite)", "storage"),
        ("Logging", "logging"),
        ("Display", "app"),
    ]

    for name, key in groups:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    if status.get("storage"):
        st.markdown(f"**Database:** `{get_settings().storage.path}`")

    st.markdown("---")
    st.markdown(
        "To configure the application, create a `.env` file. "
        "See `.env.example` for the available variables."
    )


if __name__ == "__main__":
    main()
