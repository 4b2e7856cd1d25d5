"""
Streamlit Frontend for the Finance Dashboard

The finance management page: summary cards, the transaction history and
add / edit / delete dialogs, plus the dashboard balance card.

DESIGN PRINCIPLES:
1. Always show a number (fallback data instead of an error page)
2. Explicit confirmation before deleting
3. Every outcome is a toast in plain Indonesian
4. No hidden writes

The page is a thin renderer: every decision lives in
`finance_dashboard.orchestrator` and `finance_dashboard.presentation`.
"""

import asyncio
from datetime import date, datetime

import streamlit as st

from finance_dashboard.config import validate_all_settings
from finance_dashboard.models import FinanceCategory, TransactionFilters, TransactionFormInput
from finance_dashboard.models.notification import NotificationVariant
from finance_dashboard.orchestrator import AppComponents, AppSession, FinancePageFlow
from finance_dashboard.presentation.views import (
    ADD_BUTTON_LABEL,
    ADD_DIALOG_TITLE,
    DELETE_TRANSACTION_DIALOG,
    EDIT_DIALOG_TITLE,
    HISTORY_TITLE,
    PAGE_TITLE,
    TableState,
    Tone,
    TransactionRow,
)


# Page configuration
st.set_page_config(
    page_title=PAGE_TITLE,
    page_icon="💰",
    layout="wide",
    initial_sidebar_state="expanded",
)

st.markdown("""
<style>
    .income { color: #16a34a; font-weight: 600; }
    .expense { color: #dc2626; font-weight: 600; }
    .skeleton {
        height: 1.6em;
        border-radius: 6px;
        background-color: #e5e7eb;
        margin: 6px 0;
    }
</style>
""", unsafe_allow_html=True)

FINANCE_PAGE = "💵 Manajemen Keuangan"

SORT_OPTIONS = {
    "Tanggal": "date",
    "Deskripsi": "description",
    "Kategori": "category",
    "Jumlah": "amount",
}


def get_session() -> AppSession:
    """This browser session's loop and components, created on first use."""
    if "app_session" not in st.session_state:
        st.session_state.app_session = AppSession()
    return st.session_state.app_session


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    return get_session().run(coro)


def get_components() -> AppComponents:
    """Get or create this session's application components."""
    return get_session().components


def show_toasts(components: AppComponents):
    for notification in components.toaster.drain():
        icon = "⚠️" if notification.variant is NotificationVariant.DESTRUCTIVE else "✅"
        body = notification.title
        if notification.description:
            body = f"**{notification.title}**: {notification.description}"
        st.toast(body, icon=icon)


def skeleton(lines: int = 1):
    for _ in range(lines):
        st.markdown('<div class="skeleton"></div>', unsafe_allow_html=True)


def main():
    """Main application entry point."""
    components = get_components()

    st.sidebar.title("💰 Keuangan")
    st.sidebar.markdown("---")

    page = st.sidebar.radio(
        "Menu:",
        ["📊 Dashboard", FINANCE_PAGE, "⚙️ Pengaturan"],
        index=1,
    )

    # Reads still in flight for the finance page die with it
    previous_page = st.session_state.get("page")
    if previous_page == FINANCE_PAGE and page != FINANCE_PAGE:
        components.finance_page.leave()
    st.session_state.page = page

    if page == "📊 Dashboard":
        render_dashboard_page(components)
    elif page == FINANCE_PAGE:
        render_finance_page(components)
    elif page == "⚙️ Pengaturan":
        render_settings_page(components)

    show_toasts(components)


def render_dashboard_page(components: AppComponents):
    """Render the dashboard balance card."""
    st.title("📊 Dashboard")

    card = run_async(components.dashboard.balance_card())
    st.metric(label=card.title, value=card.value or "...", help=card.description)


def render_finance_page(components: AppComponents):
    """Render the finance management page."""
    flow = components.finance_page

    header, action = st.columns([4, 1])
    with header:
        st.title(f"💵 {PAGE_TITLE}")
    with action:
        if st.button(f"➕ {ADD_BUTTON_LABEL}", type="primary"):
            add_transaction_dialog(flow)

    # Filters
    col1, col2, col3 = st.columns(3)
    with col1:
        category = st.selectbox(
            "Kategori",
            options=[None] + list(FinanceCategory),
            format_func=lambda c: "Semua" if c is None else c.value,
        )
    with col2:
        date_range = st.date_input("Rentang Tanggal", value=[])
    with col3:
        sort_label = st.selectbox("Urutkan", options=list(SORT_OPTIONS))
        descending = st.toggle("Terbaru dulu", value=True)

    start_date = date_range[0] if len(date_range) > 0 else None
    end_date = date_range[1] if len(date_range) > 1 else None
    has_filters = category is not None or start_date is not None
    flow.set_filters(
        TransactionFilters(category=category, start_date=start_date, end_date=end_date)
        if has_filters
        else None
    )

    state = run_async(flow.load(sort_by=SORT_OPTIONS[sort_label], descending=descending))

    # Summary cards
    for column, card in zip(st.columns(3), state.cards):
        with column:
            st.markdown(f"**{card.title}**")
            if card.is_loading:
                skeleton()
            else:
                css = {Tone.POSITIVE: "income", Tone.NEGATIVE: "expense"}.get(card.tone, "")
                st.markdown(f'<h3 class="{css}">{card.value}</h3>', unsafe_allow_html=True)

    st.markdown("---")
    st.subheader(HISTORY_TITLE)

    table = state.table
    if table.state is TableState.LOADING:
        skeleton(table.skeleton_rows)
        return
    if table.state is TableState.EMPTY:
        st.info(table.empty_message)
        return

    widths = [2, 4, 2, 2, 2]
    for column, title in zip(st.columns(widths), table.headers):
        column.markdown(f"**{title}**")

    for row in table.rows:
        render_row(flow, row, widths)


def render_row(flow: FinancePageFlow, row: TransactionRow, widths: list[int]):
    date_col, desc_col, cat_col, amount_col, action_col = st.columns(widths)
    css = "income" if row.is_income else "expense"
    date_col.write(row.date_label)
    desc_col.write(row.description)
    cat_col.markdown(f'<span class="{css}">{row.category_label}</span>', unsafe_allow_html=True)
    amount_col.markdown(f'<span class="{css}">{row.amount_label}</span>', unsafe_allow_html=True)

    edit_col, delete_col = action_col.columns(2)
    if edit_col.button("✏️", key=f"edit-{row.id}", help="Edit"):
        edit_transaction_dialog(flow, row)
    if delete_col.button("🗑️", key=f"delete-{row.id}", help="Hapus"):
        delete_transaction_dialog(flow, row)


def transaction_form(key: str, defaults: TransactionFormInput = None) -> dict:
    """The add/edit form fields; returns what the user entered."""
    type_labels = {"income": "Pemasukan", "expense": "Pengeluaran"}
    type_options = list(type_labels)

    entered_date = st.date_input(
        "Tanggal",
        value=defaults.date.date() if defaults else date.today(),
        key=f"{key}-date",
    )
    description = st.text_input(
        "Deskripsi",
        value=defaults.description if defaults else "",
        key=f"{key}-description",
    )
    amount = st.text_input(
        "Jumlah",
        value=defaults.amount if defaults else "",
        key=f"{key}-amount",
    )
    kind = st.radio(
        "Jenis",
        options=type_options,
        index=type_options.index(defaults.type) if defaults else 0,
        format_func=type_labels.get,
        horizontal=True,
        key=f"{key}-type",
    )
    return {
        "date": datetime.combine(entered_date, datetime.min.time()),
        "description": description,
        "amount": amount,
        "type": kind,
    }


@st.dialog(ADD_DIALOG_TITLE)
def add_transaction_dialog(flow: FinancePageFlow):
    raw = transaction_form("add")
    if st.button("Simpan", type="primary"):
        form = flow.parse_form(raw)
        if form is None:
            return
        result = run_async(flow.add_transaction(form))
        if result.is_success:
            st.rerun()


@st.dialog(EDIT_DIALOG_TITLE)
def edit_transaction_dialog(flow: FinancePageFlow, row: TransactionRow):
    raw = transaction_form(f"edit-{row.id}", TransactionFormInput.from_transaction(row.transaction))

    uploaded = st.file_uploader(
        "Dokumen pendukung",
        type=["pdf", "jpg", "jpeg", "png", "webp"],
        key=f"edit-{row.id}-document",
    )

    if st.button("Simpan", type="primary"):
        form = flow.parse_form(raw)
        if form is None:
            return
        result = run_async(flow.edit_transaction(row.id, form))
        if result.is_success and uploaded is not None:
            run_async(flow.attach_document(row.id, uploaded.name, uploaded.getvalue(), uploaded.type))
        if result.is_success:
            st.rerun()


@st.dialog(DELETE_TRANSACTION_DIALOG.title)
def delete_transaction_dialog(flow: FinancePageFlow, row: TransactionRow):
    st.write(DELETE_TRANSACTION_DIALOG.description)
    st.caption(f"{row.date_label} · {row.description} · {row.amount_label}")

    cancel_col, confirm_col = st.columns(2)
    if cancel_col.button(DELETE_TRANSACTION_DIALOG.cancel_label):
        st.rerun()
    if confirm_col.button(DELETE_TRANSACTION_DIALOG.confirm_label, type="primary"):
        result = run_async(flow.delete_transaction(row.id))
        if result.is_success:
            st.rerun()


def render_settings_page(components: AppComponents):
    """Render the settings page."""
    st.title("⚙️ Pengaturan")

    st.markdown("### Status Konfigurasi")
    status = validate_all_settings()

    sections = [
        ("Finance API", "finance_api"),
        ("Query cache", "query"),
        ("Aplikasi", "app"),
    ]
    for name, key in sections:
        if status.get(key, False):
            st.success(f"✅ {name}")
        else:
            st.error(f"❌ {name} - {status.get(f'{key}_error', 'Tidak dikonfigurasi')}")

    st.markdown(f"API: `{components.api.base_url}`")

    st.markdown("---")
    st.markdown("### Token Akses")

    token_key = components.settings.app.token_key
    has_token = components.credential_store.get_item(token_key) is not None
    st.caption("Token tersimpan." if has_token else "Belum ada token.")

    token = st.text_input("Bearer token", type="password")
    save_col, clear_col = st.columns(2)
    if save_col.button("Simpan token") and token:
        components.credential_store.set_item(token_key, token.strip())
        components.query_client.clear()
        st.rerun()
    if clear_col.button("Keluar"):
        components.credential_store.clear()
        components.query_client.clear()
        st.rerun()


if __name__ == "__main__":
    main()
