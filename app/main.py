"""
Streamlit Frontend for the Xpense Transaction Composer

The "New Transaction" screen: pick a mode, fill the form (or split it
across accounts), and save.

The page holds no logic of its own. Every change goes through
TransactionComposerFlow, and the Save/Apply buttons are enabled from the
same validation result.
"""

import asyncio
import logging

import streamlit as st

from xpense.composer import legal_fields
from xpense.config import get_settings, validate_all_settings
from xpense.models.transaction import (
    ENTRY_TYPE_LABELS,
    LOAN_SETTLEMENT_TYPES,
    EntryType,
    TransactionMode,
    entry_types_for,
)
from xpense.orchestrator import TransactionComposerFlow, create_app_components
from xpense.services.api import APIError, get_error_message


st.set_page_config(
    page_title="Xpense - New Transaction",
    page_icon="💸",
    layout="centered",
)


MODE_LABELS = {
    TransactionMode.STANDARD: "Income / Expense",
    TransactionMode.LOAN: "Loan / Debt",
    TransactionMode.TRANSFER: "Internal Transfer",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_flow() -> TransactionComposerFlow:
    """One composer per browser session."""
    if "flow" not in st.session_state:
        flow = create_app_components(token=st.session_state.get("token"))
        try:
            run_async(flow.load_reference_data())
        except APIError as e:
            st.error(f"Could not load your accounts: {get_error_message(e)}")
        flow.start()
        st.session_state.flow = flow
    return st.session_state.flow


def _key(flow: TransactionComposerFlow, name: str, *scope) -> str:
    """
    Widget key scoped to the current draft.

    Streamlit keeps a keyed widget's state and ignores its `value=`, so a
    new draft (cancel, successful save) or a new scope (other contact,
    removed split line) must get fresh keys.
    """
    parts = [name, str(flow.correlation_id), str(st.session_state.get("form_epoch", 0))]
    parts.extend(str(s) for s in scope)
    return "_".join(parts)


def _select(label, options, current, format_func, key):
    """Selectbox over reference records, keyed by id."""
    ids = [None] + [o.id for o in options]
    labels = {o.id: format_func(o) for o in options}
    index = ids.index(current) if current in ids else 0
    return st.selectbox(
        label,
        ids,
        index=index,
        format_func=lambda i: "-- Select --" if i is None else labels[i],
        key=key,
    )


def render_simple_fields(flow: TransactionComposerFlow):
    draft = flow.draft
    ref = flow.reference

    account = _select("Account *", ref.accounts, draft.account, lambda a: a.label, _key(flow, "account"))
    flow.set_field("account", account)

    if draft.mode == TransactionMode.TRANSFER:
        to_account = _select("To Account *", ref.accounts, draft.to_account, lambda a: a.label, _key(flow, "to_account"))
        flow.set_field("to_account", to_account)

    if draft.mode == TransactionMode.LOAN:
        contact = _select("Contact *", ref.contacts, draft.contact, lambda c: c.label, _key(flow, "contact"))
        flow.set_field("contact", contact)
        contact_account = _select(
            "Contact Account *",
            flow.contact_account_choices(),
            flow.draft.contact_account,
            lambda a: a.label,
            _key(flow, "contact_account", flow.draft.contact),
        )
        flow.set_field("contact_account", contact_account)
        if "loan_record" in legal_fields(flow.draft.mode, flow.draft.entry_type) and not flow.split_enabled:
            required = flow.draft.entry_type in LOAN_SETTLEMENT_TYPES
            loan = _select(
                "Loan *" if required else "Add to existing loan",
                flow.loan_choices(),
                flow.draft.loan_record,
                lambda l: l.label,
                _key(flow, "loan", flow.draft.contact, flow.draft.entry_type.value),
            )
            flow.set_field("loan_record", loan)

    if draft.mode == TransactionMode.STANDARD and not flow.split_enabled:
        if draft.entry_type == EntryType.INCOME:
            source = _select("Income Source *", ref.income_sources, draft.income_source, lambda s: s.name, _key(flow, "income_source"))
            flow.set_field("income_source", source)
        else:
            category = _select("Category *", ref.expense_categories, draft.expense_category, lambda c: c.name, _key(flow, "expense_category"))
            flow.set_field("expense_category", category)

    flow.set_field("amount", st.text_input("Amount *", value=flow.draft.amount, key=_key(flow, "amount")))
    flow.set_field("note", st.text_input("Note", value=flow.draft.note, key=_key(flow, "note")))

    when = st.text_input("Date *", value=flow.draft.date, help="YYYY-MM-DDTHH:MM", key=_key(flow, "date"))
    flow.set_field("date", when)


def render_split_editor(flow: TransactionComposerFlow):
    st.markdown("#### Split across accounts")
    ref = flow.reference

    for index, line in enumerate(flow.split_lines):
        cols = st.columns([3, 2, 1])
        with cols[0]:
            account = _select("Account", ref.accounts, line.account, lambda a: a.label, _key(flow, "split_account", index))
            flow.update_split_line(index, "account", account)
        with cols[1]:
            amount = st.text_input("Amount", value=line.amount, key=_key(flow, "split_amount", index))
            flow.update_split_line(index, "amount", amount)
        with cols[2]:
            if st.button("🗑️", key=_key(flow, "split_remove", index)):
                flow.remove_split_line(index)
                # Later lines shift up one index
                st.session_state["form_epoch"] = st.session_state.get("form_epoch", 0) + 1
                st.rerun()

        if flow.draft.mode == TransactionMode.STANDARD:
            if flow.draft.entry_type == EntryType.INCOME:
                source = _select("Income Source", ref.income_sources, line.income_source, lambda s: s.name, _key(flow, "split_source", index))
                flow.update_split_line(index, "income_source", source)
            else:
                category = _select("Category", ref.expense_categories, line.expense_category, lambda c: c.name, _key(flow, "split_category", index))
                flow.update_split_line(index, "expense_category", category)
        else:
            loan_types = entry_types_for(TransactionMode.LOAN)
            line_type = st.selectbox(
                "Type",
                loan_types,
                index=loan_types.index(line.type) if line.type in loan_types else 0,
                format_func=lambda t: ENTRY_TYPE_LABELS[t],
                key=_key(flow, "split_type", index),
            )
            line = flow.update_split_line(index, "type", line_type)
            loans = flow.loan_choices(line.type)
            if loans:
                loan = _select("Loan", loans, line.loan_record, lambda l: l.label, _key(flow, "split_loan", index, line.type.value))
                flow.update_split_line(index, "loan_record", loan)
            note = st.text_input("Note", value=line.note, key=_key(flow, "split_note", index))
            flow.update_split_line(index, "note", note)

    if st.button("➕ Add line", key=_key(flow, "split_add")):
        flow.add_split_line()
        st.rerun()

    st.button("Apply", disabled=not flow.apply_split_config(), key=_key(flow, "split_apply"))


def render_sidebar(flow: TransactionComposerFlow):
    """Connection status, and the raw validation result in debug mode."""
    with st.sidebar:
        st.markdown("### Status")
        status = validate_all_settings()
        for name in ("api", "app"):
            if status.get(name, False):
                st.success(f"✅ {name} settings loaded")
            else:
                st.error(f"❌ {name} settings: {status.get(f'{name}_error')}")

        app_settings = get_settings().app
        st.caption(f"Environment: {app_settings.app_environment}")
        if app_settings.debug_mode:
            st.json(flow.validation().model_dump(mode="json"))


def main():
    """Main application entry point."""
    logging.basicConfig(level=get_settings().app.log_level.upper())
    flow = get_flow()
    render_sidebar(flow)

    st.title("💸 New Transaction")

    flash = st.session_state.pop("flash", None)
    if flash:
        st.success(flash)

    modes = list(TransactionMode)
    mode = st.radio(
        "Mode",
        modes,
        index=modes.index(flow.draft.mode),
        format_func=lambda m: MODE_LABELS[m],
        horizontal=True,
        key=_key(flow, "mode"),
    )
    if mode != flow.draft.mode:
        flow.change_mode(mode)
        st.rerun()

    types = entry_types_for(flow.draft.mode)
    if len(types) > 1:
        entry_type = st.selectbox(
            "Type",
            types,
            index=types.index(flow.draft.entry_type),
            format_func=lambda t: ENTRY_TYPE_LABELS[t],
            key=_key(flow, "entry_type", flow.draft.mode.value),
        )
        if entry_type != flow.draft.entry_type:
            flow.change_entry_type(entry_type)
            st.rerun()

    render_simple_fields(flow)

    if flow.draft.mode != TransactionMode.TRANSFER:
        uploaded = st.file_uploader(
            "Receipt (optional)",
            type=["jpg", "jpeg", "png", "webp"],
            key=_key(flow, "attachment"),
        )
        if uploaded is not None:
            try:
                flow.set_field("attachment", {
                    "filename": uploaded.name,
                    "content": uploaded.getvalue(),
                    "content_type": uploaded.type,
                })
            except ValueError as e:
                st.error(str(e))
        elif flow.draft.attachment is not None:
            flow.set_field("attachment", None)

        split = st.toggle("Split across accounts", value=flow.split_enabled, key=_key(flow, "split"))
        flow.toggle_split(split)
        if flow.split_enabled:
            render_split_editor(flow)

    st.markdown("---")
    if not flow.can_submit and not flow.is_submitting:
        st.caption(flow.validation_summary())

    if st.button("💾 Save", type="primary", disabled=not flow.can_submit, key=_key(flow, "save")):
        with st.spinner("Saving..."):
            outcome = run_async(flow.submit())
        if outcome.success:
            # The flow started a new draft; rerun so the form shows it
            st.session_state["flash"] = outcome.message
            st.rerun()
        st.error(outcome.message)

    if st.button("Cancel", key=_key(flow, "cancel")):
        flow.cancel()
        st.rerun()


if __name__ == "__main__":
    main()
