"""
Streamlit Frontend for Cab Ledger

Two kinds of users open this app:
- Drivers, on a phone at the end of a shift, filing the day's report
- The fleet owner (admin), reviewing figures and exporting statements

DESIGN PRINCIPLES:
1. Big, simple inputs; amounts accept whatever the user types
2. Totals are shown live while typing and always derived, never entered
3. Every delete asks for confirmation; there is no undo
4. The connection page says plainly which store is in use
"""

import asyncio
from datetime import date, datetime, time
from typing import Optional

import pandas as pd
import streamlit as st

from cabledger.calculations import compute_totals, trip_expense_total
from cabledger.config import get_settings, validate_all_settings
from cabledger.formatting import format_time_12h, group_indian
from cabledger.models.ledger import (
    DRIVER_NAME_MAX_LENGTH,
    NOTES_MAX_LENGTH,
    PIN_MAX_LENGTH,
    VEHICLE_MAX_LENGTH,
    DailyReport,
    DateFilter,
    Driver,
    SessionUser,
)
from cabledger.orchestrator import (
    AppComponents,
    DriverFormData,
    LoginError,
    ReportFormData,
    ValidationFailedError,
    create_app_components,
)
from cabledger.queries import (
    ALL_DRIVERS,
    expense_distribution,
    filter_reports,
    summarize,
    trend_series,
)
from cabledger.services.statement import StatementError
from cabledger.services.storage import NotFoundError, StorageError


# Page configuration
st.set_page_config(
    page_title="Trusty Yellow Cab",
    page_icon="🚕",
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
    .total-box {
        padding: 16px;
        background-color: #fff8e1;
        border-radius: 10px;
        border-left: 5px solid #f5b700;
        margin: 10px 0;
    }
    .big-number {
        font-size: 2em;
        font-weight: bold;
        color: #2c3e50;
    }
</style>
""", unsafe_allow_html=True)


DATE_FILTER_LABELS = {
    DateFilter.TODAY: "Today",
    DateFilter.WEEK: "Last 7 Days",
    DateFilter.MONTH: "This Month",
    DateFilter.YEAR: "This Year",
    DateFilter.CUSTOM: "Custom Range",
    DateFilter.ALL: "All Time",
}


def run_async(coro):
    """Helper to run async functions in Streamlit."""
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        return loop.run_until_complete(coro)
    finally:
        loop.close()


def get_components() -> AppComponents:
    """Components for this browser session; the remote store is pinged on first use."""
    if "components" not in st.session_state:
        st.session_state.components = run_async(create_app_components(use_remote=True))
    return st.session_state.components


def rupees(value: float) -> str:
    return f"₹{group_indian(value)}"


def _parse_hhmm(value: str) -> Optional[time]:
    if not value or value == "00:00":
        return None
    try:
        return datetime.strptime(value, "%H:%M").time()
    except ValueError:
        return None


def _to_hhmm(value: Optional[time]) -> str:
    return value.strftime("%H:%M") if value else ""


def _amount_text(value: float) -> str:
    return "" if not value else f"{value:g}"


def prepared_statement(state, filters: tuple) -> Optional[tuple[str, bytes]]:
    """The statement prepared for `filters`. One built for other filters is dropped."""
    prepared = state.get("statement")
    if not prepared:
        return None
    if prepared[0] != filters:
        state.pop("statement", None)
        return None
    return prepared[1], prepared[2]


def load_data(components: AppComponents) -> tuple[list[Driver], list[DailyReport]]:
    """Fetch drivers and reports for this rerun."""
    try:
        drivers = run_async(components.storage.get_drivers())
        reports = run_async(components.storage.get_reports())
        return drivers, reports
    except StorageError as e:
        components.activity.log_error("load_failed", str(e))
        st.error(f"❌ Could not load data: {e}")
        return [], []


def main():
    """Main application entry point."""
    components = get_components()

    if "user" not in st.session_state:
        st.session_state.user = None

    drivers, reports = load_data(components)
    user: Optional[SessionUser] = st.session_state.user

    if user is None:
        render_login_page(components, drivers)
        return

    # Sidebar navigation
    st.sidebar.title("🚕 Trusty Yellow Cab")
    st.sidebar.markdown(f"Signed in as **{user.name}**")
    if user.vehicle:
        st.sidebar.caption(user.vehicle)
    st.sidebar.markdown("---")

    if user.is_admin:
        pages = ["📊 Dashboard", "👥 Drivers & Security", "🔌 Connection"]
    else:
        pages = ["📊 My Reports", "📝 New Report"]
    page = st.sidebar.radio("Navigate to:", pages, index=0)

    st.sidebar.markdown("---")
    if st.sidebar.button("🚪 Sign out"):
        components.login.logout(user)
        st.session_state.user = None
        st.rerun()

    # Route to appropriate page
    if page == "📊 Dashboard":
        render_admin_dashboard(components, drivers, reports)
    elif page == "👥 Drivers & Security":
        render_admin_management(components, drivers)
    elif page == "🔌 Connection":
        render_connection_page(components)
    elif page == "📊 My Reports":
        render_driver_dashboard(components, user, reports)
    elif page == "📝 New Report":
        render_report_form(components, user)


# =============================================================================
# LOGIN
# =============================================================================

def render_login_page(components: AppComponents, drivers: list[Driver]):
    """Role toggle, driver picker and PIN / password."""
    st.title("🚕 Trusty Yellow Cab")
    st.markdown("Daily trip ledger. Please sign in.")

    role = st.radio("I am a", ["Driver", "Admin"], horizontal=True)

    with st.form("login_form"):
        driver_id = None
        if role == "Driver":
            if not drivers:
                st.warning("No drivers registered yet. Ask the admin to add you.")
            driver_id = st.selectbox(
                "Select your name",
                options=[d.id for d in drivers],
                format_func=lambda i: next(
                    (f"{d.name} ({d.vehicle})" if d.vehicle else d.name
                     for d in drivers if d.id == i),
                    i,
                ),
            )
            secret = st.text_input("PIN", type="password")
        else:
            secret = st.text_input("Admin Password", type="password")

        submitted = st.form_submit_button("Sign in", type="primary")

    if submitted:
        try:
            if role == "Driver":
                user = components.login.login_driver(drivers, driver_id, secret)
            else:
                user = run_async(components.login.login_admin(secret))
        except LoginError as e:
            st.error(str(e))
            return
        except StorageError as e:
            st.error(f"❌ Could not check the password: {e}")
            return

        st.session_state.user = user
        st.rerun()


# =============================================================================
# SHARED WIDGETS
# =============================================================================

def render_date_filter(key: str) -> tuple[DateFilter, Optional[date], Optional[date]]:
    """Date window picker used on both dashboards."""
    default = DateFilter(get_settings().app.default_date_filter)
    options = list(DATE_FILTER_LABELS)
    mode = st.selectbox(
        "Period",
        options=options,
        index=options.index(default),
        format_func=lambda m: DATE_FILTER_LABELS[m],
        key=f"{key}_mode",
    )

    start = end = None
    if mode == DateFilter.CUSTOM:
        col1, col2 = st.columns(2)
        with col1:
            start = st.date_input("From", value=None, key=f"{key}_start")
        with col2:
            end = st.date_input("To", value=None, key=f"{key}_end")
        if not start or not end:
            st.caption("Pick both dates to narrow the range. Showing all reports.")
    return mode, start, end


def render_trend_chart(reports: list[DailyReport]):
    points = trend_series(reports, limit=get_settings().app.trend_points)
    if not points:
        st.info("No data for the trend chart yet.")
        return
    df = pd.DataFrame(
        [{"Date": p.day, "Income": p.income, "Profit": p.profit} for p in points]
    ).set_index("Date")
    st.line_chart(df)


def render_report_editor(
    components: AppComponents,
    report: DailyReport,
    actor_id: str,
    key: str,
):
    """Edit form for one report; totals are derived again on save."""
    with st.form(f"edit_{key}"):
        col1, col2, col3 = st.columns(3)
        with col1:
            report_date = st.date_input(
                "Date", value=report.report_date, key=f"{key}_date"
            )
            kms = st.text_input(
                "Kms Driven", value=_amount_text(report.kms_driven), key=f"{key}_kms"
            )
        with col2:
            login_time = st.time_input(
                "Login", value=_parse_hhmm(report.login_time), key=f"{key}_login"
            )
            logout_time = st.time_input(
                "Logout", value=_parse_hhmm(report.logout_time), key=f"{key}_logout"
            )
        with col3:
            salary = st.text_input(
                "Driver Salary",
                value=_amount_text(report.driver_salary),
                key=f"{key}_salary",
            )

        st.markdown("**Income**")
        c1, c2, c3 = st.columns(3)
        income = {
            "local": c1.text_input(
                "Local", value=_amount_text(report.income.local), key=f"{key}_inc_local"
            ),
            "outstation": c2.text_input(
                "Outstation",
                value=_amount_text(report.income.outstation),
                key=f"{key}_inc_out",
            ),
            "other": c3.text_input(
                "Other", value=_amount_text(report.income.other), key=f"{key}_inc_other"
            ),
        }

        st.markdown("**Expenses**")
        e1, e2, e3, e4 = st.columns(4)
        expenses = {
            "fuel": e1.text_input(
                "Fuel", value=_amount_text(report.expenses.fuel), key=f"{key}_exp_fuel"
            ),
            "maintenance": e2.text_input(
                "Maintenance",
                value=_amount_text(report.expenses.maintenance),
                key=f"{key}_exp_maint",
            ),
            "toll": e3.text_input(
                "Toll", value=_amount_text(report.expenses.toll), key=f"{key}_exp_toll"
            ),
            "other": e4.text_input(
                "Other", value=_amount_text(report.expenses.other), key=f"{key}_exp_other"
            ),
        }
        notes = st.text_area(
            "Notes",
            value=report.notes or "",
            max_chars=NOTES_MAX_LENGTH,
            key=f"{key}_notes",
        )

        saved = st.form_submit_button("💾 Save changes", type="primary")

    if saved:
        form = ReportFormData(
            report_date=report_date,
            kms_driven=kms,
            login_time=_to_hhmm(login_time),
            logout_time=_to_hhmm(logout_time),
            income=income,
            expenses=expenses,
            salary=salary,
            notes=notes,
        )
        try:
            run_async(components.reports.update_report(report, form, actor_id))
        except NotFoundError:
            st.error("This report no longer exists.")
            return
        except ValidationFailedError as e:
            st.error(str(e))
            return
        except StorageError as e:
            st.error(f"❌ Could not save: {e}")
            return
        st.session_state.pop("editing_report", None)
        st.success("✅ Report updated")
        st.rerun()


def render_delete_confirmation(
    components: AppComponents,
    report: DailyReport,
    actor_id: str,
    key: str,
):
    """Two-step delete: ask, then confirm."""
    pending = st.session_state.get("pending_delete")
    if pending != report.id:
        if st.button("🗑️ Delete", key=f"delete_{key}"):
            st.session_state.pending_delete = report.id
            st.rerun()
        return

    st.warning(
        "Are you sure you want to delete this report? This action cannot be undone."
    )
    col1, col2 = st.columns(2)
    with col1:
        if st.button("Yes, delete", key=f"confirm_delete_{key}", type="primary"):
            try:
                run_async(components.reports.delete_report(report.id, actor_id))
            except StorageError as e:
                st.error(f"❌ Could not delete: {e}")
                return
            st.session_state.pending_delete = None
            st.rerun()
    with col2:
        if st.button("Cancel", key=f"cancel_delete_{key}"):
            st.session_state.pending_delete = None
            st.rerun()


def render_report_card(
    components: AppComponents,
    report: DailyReport,
    actor_id: str,
):
    """One report in a list, with edit and delete actions."""
    title = (
        f"{report.report_date.strftime('%d %b %Y')} · {report.driver_name} · "
        f"Profit {rupees(report.net_profit)}"
    )
    with st.expander(title):
        col1, col2, col3, col4 = st.columns(4)
        col1.metric("Income", rupees(report.total_income))
        col2.metric("Expenses", rupees(report.trip_expenses))
        col3.metric("Salary", rupees(report.driver_salary))
        col4.metric("Net Profit", rupees(report.net_profit))
        st.caption(
            f"{report.kms_driven:g} km · "
            f"{format_time_12h(report.login_time)} - {format_time_12h(report.logout_time)}"
        )
        if report.notes:
            st.markdown(f"📝 {report.notes}")

        if st.session_state.get("editing_report") == report.id:
            render_report_editor(components, report, actor_id, report.id)
            if st.button("Close editor", key=f"close_{report.id}"):
                st.session_state.pop("editing_report", None)
                st.rerun()
        else:
            col_a, col_b = st.columns(2)
            with col_a:
                if st.button("✏️ Edit", key=f"edit_btn_{report.id}"):
                    st.session_state.editing_report = report.id
                    st.rerun()
            with col_b:
                render_delete_confirmation(components, report, actor_id, report.id)


# =============================================================================
# DRIVER PAGES
# =============================================================================

def render_driver_dashboard(
    components: AppComponents,
    user: SessionUser,
    reports: list[DailyReport],
):
    """The driver's own reports."""
    st.title(f"👋 Hello, {user.name.split(' ')[0]}")

    mode, start, end = render_date_filter("driver")
    mine = filter_reports(reports, user.id, mode, start, end)
    summary = summarize(mine)

    col1, col2, col3 = st.columns(3)
    col1.metric("Income", rupees(summary.total_income))
    col2.metric("Expenses", rupees(summary.trip_expenses))
    col3.metric("My Salary", rupees(summary.driver_salary))

    st.markdown("### 📈 Trend")
    render_trend_chart(mine)

    st.markdown("### 🧾 Reports")
    if not mine:
        st.info("No reports in this period. Use 'New Report' to file today's.")
    for report in mine:
        render_report_card(components, report, user.id)


def render_report_form(components: AppComponents, user: SessionUser):
    """New daily report with live totals."""
    st.title("📝 Daily Report")
    st.markdown("Fill in today's figures. Totals update as you type.")

    col1, col2, col3 = st.columns(3)
    with col1:
        report_date = st.date_input("Date", value=date.today(), key="new_date")
    with col2:
        login_time = st.time_input("Login Time", value=None, key="new_login")
    with col3:
        logout_time = st.time_input("Logout Time", value=None, key="new_logout")
    kms = st.text_input("Kms Driven", placeholder="0", key="new_kms")

    st.markdown("### 💰 Income")
    c1, c2, c3 = st.columns(3)
    income = {
        "local": c1.text_input("Local Trips", placeholder="0", key="new_inc_local"),
        "outstation": c2.text_input(
            "Outstation Trips", placeholder="0", key="new_inc_out"
        ),
        "other": c3.text_input("Other", placeholder="0", key="new_inc_other"),
    }

    st.markdown("### ⛽ Expenses")
    e1, e2, e3, e4 = st.columns(4)
    expenses = {
        "fuel": e1.text_input("Fuel", placeholder="0", key="new_exp_fuel"),
        "maintenance": e2.text_input(
            "Maintenance", placeholder="0", key="new_exp_maint"
        ),
        "toll": e3.text_input("Toll", placeholder="0", key="new_exp_toll"),
        "other": e4.text_input("Other", placeholder="0", key="new_exp_other"),
    }
    salary = st.text_input("Driver Salary / Commission", placeholder="0", key="new_salary")
    notes = st.text_area("Notes", max_chars=NOTES_MAX_LENGTH, key="new_notes")

    totals = compute_totals(income, expenses, salary)
    st.markdown(
        f"""
        <div class="total-box">
            Income <span class="big-number">{rupees(totals.total_income)}</span>
            &nbsp;·&nbsp; Expenses {rupees(trip_expense_total(expenses))}
            &nbsp;·&nbsp; Net <b>{rupees(totals.net_profit)}</b>
        </div>
        """,
        unsafe_allow_html=True,
    )

    form = ReportFormData(
        report_date=report_date,
        kms_driven=kms,
        login_time=_to_hhmm(login_time),
        logout_time=_to_hhmm(logout_time),
        income=income,
        expenses=expenses,
        salary=salary,
        notes=notes,
    )

    if st.button("✅ Submit Report", type="primary"):
        try:
            report = run_async(components.reports.submit_report(user, form))
        except ValidationFailedError as e:
            st.error(str(e))
            return
        except StorageError as e:
            st.error(f"❌ Could not save the report: {e}")
            return
        for warning in components.validator.validate_report(report).warnings:
            st.warning(f"⚠️ {warning}")
        st.success(
            f"✅ Report saved. Net profit for {report.report_date.isoformat()}: "
            f"{rupees(report.net_profit)}"
        )
        st.balloons()


# =============================================================================
# ADMIN PAGES
# =============================================================================

def render_admin_dashboard(
    components: AppComponents,
    drivers: list[Driver],
    reports: list[DailyReport],
):
    """Fleet overview, charts, report table, PDF and AI analysis."""
    st.title("📊 Fleet Dashboard")

    col1, col2 = st.columns(2)
    with col1:
        driver_id = st.selectbox(
            "Driver",
            options=[ALL_DRIVERS] + [d.id for d in drivers],
            format_func=lambda i: "All Drivers" if i == ALL_DRIVERS else next(
                (d.name for d in drivers if d.id == i), i
            ),
        )
    with col2:
        mode, start, end = render_date_filter("admin")

    selected = filter_reports(reports, driver_id, mode, start, end)
    summary = summarize(selected)

    st.caption(f"{summary.record_count} reports")
    col1, col2, col3 = st.columns(3)
    col1.metric("Total Revenue", rupees(summary.total_income))
    col2.metric("Total Expenses", rupees(summary.trip_expenses))
    col3.metric("Net Profit", rupees(summary.net_profit))

    chart1, chart2 = st.columns(2)
    with chart1:
        st.markdown("#### Income & Profit")
        render_trend_chart(selected)
    with chart2:
        st.markdown("#### Where the money went")
        distribution = expense_distribution(selected)
        if any(distribution.values()):
            st.bar_chart(pd.Series(distribution, name="Amount"))
        else:
            st.info("No expenses in this period.")

    current_filters = (driver_id, mode, start, end)
    prepared = prepared_statement(st.session_state, current_filters)

    st.markdown("---")
    col1, col2 = st.columns(2)
    with col1:
        if st.button("📄 Prepare PDF Statement"):
            try:
                filename, pdf_bytes = components.statements.export(
                    reports, drivers, driver_id, mode, start, end
                )
                st.session_state.statement = (current_filters, filename, pdf_bytes)
                prepared = (filename, pdf_bytes)
            except StatementError as e:
                st.error(f"❌ Failed to generate PDF: {e}")
        if prepared:
            filename, pdf_bytes = prepared
            st.download_button(
                "⬇️ Download Statement",
                data=pdf_bytes,
                file_name=filename,
                mime="application/pdf",
            )
    with col2:
        if st.button("🤖 AI Analysis"):
            with st.spinner("Analyzing reports..."):
                st.session_state.analysis = run_async(
                    components.analysis.analyze(selected)
                )
        if st.session_state.get("analysis"):
            st.markdown(st.session_state.analysis)

    # Report table
    st.markdown("---")
    st.markdown("### 🧾 Reports")
    if not selected:
        st.info("No reports match these filters.")
        return

    table = pd.DataFrame([
        {
            "Date": r.report_date,
            "Driver": r.driver_name,
            "Km": r.kms_driven,
            "Income": r.total_income,
            "Expenses": r.trip_expenses,
            "Salary": r.driver_salary,
            "Profit": r.net_profit,
        }
        for r in selected
    ])
    st.dataframe(table, use_container_width=True, hide_index=True)

    for report in selected:
        render_report_card(components, report, st.session_state.user.id)


def render_admin_management(components: AppComponents, drivers: list[Driver]):
    """Driver list, add/edit/delete, admin password."""
    st.title("👥 Drivers & Security")

    st.markdown("### Drivers")
    for driver in drivers:
        col1, col2, col3 = st.columns([4, 1, 1])
        col1.markdown(f"**{driver.name}**  \n{driver.vehicle or '—'}")
        if col2.button("✏️", key=f"edit_driver_{driver.id}"):
            st.session_state.driver_form = driver.id
            st.rerun()
        if st.session_state.get("pending_driver_delete") == driver.id:
            st.warning(f"Are you sure you want to delete {driver.name}?")
            c1, c2 = st.columns(2)
            if c1.button("Yes, delete", key=f"confirm_driver_{driver.id}", type="primary"):
                try:
                    run_async(components.drivers.delete_driver(driver.id))
                except StorageError as e:
                    st.error(f"❌ Could not delete: {e}")
                    return
                st.session_state.pending_driver_delete = None
                st.rerun()
            if c2.button("Cancel", key=f"cancel_driver_{driver.id}"):
                st.session_state.pending_driver_delete = None
                st.rerun()
        elif col3.button("🗑️", key=f"delete_driver_{driver.id}"):
            st.session_state.pending_driver_delete = driver.id
            st.rerun()

    if st.button("➕ Add Driver"):
        st.session_state.driver_form = "new"
        st.rerun()

    editing = st.session_state.get("driver_form")
    if editing:
        current = next((d for d in drivers if d.id == editing), None)
        with st.form("driver_form"):
            st.markdown("#### " + ("Edit Driver" if current else "New Driver"))
            name = st.text_input(
                "Name",
                value=current.name if current else "",
                max_chars=DRIVER_NAME_MAX_LENGTH,
            )
            vehicle = st.text_input(
                "Vehicle",
                value=current.vehicle if current else "",
                max_chars=VEHICLE_MAX_LENGTH,
            )
            pin = st.text_input(
                "PIN",
                value=current.pin if current else "",
                max_chars=PIN_MAX_LENGTH,
            )
            saved = st.form_submit_button("💾 Save Driver", type="primary")
        if saved:
            form = DriverFormData(
                id=current.id if current else None,
                name=name,
                vehicle=vehicle,
                pin=pin,
            )
            try:
                run_async(components.drivers.save_driver(form))
            except ValidationFailedError as e:
                st.error(str(e))
                return
            except StorageError as e:
                st.error(f"❌ Could not save: {e}")
                return
            st.session_state.driver_form = None
            st.rerun()

    st.markdown("---")
    st.markdown("### 🔒 Admin Password")
    with st.form("password_form", clear_on_submit=True):
        new_password = st.text_input("New Password", type="password")
        confirm_password = st.text_input("Confirm Password", type="password")
        changed = st.form_submit_button("Update Password")
    if changed:
        try:
            run_async(
                components.drivers.change_admin_password(new_password, confirm_password)
            )
        except ValidationFailedError as e:
            st.error(str(e))
        except StorageError as e:
            st.error(f"❌ Could not save: {e}")
        else:
            st.success("Admin password updated successfully")


def render_connection_page(components: AppComponents):
    """Which store is active and which services are configured."""
    st.title("🔌 Connection Status")

    if components.using_fallback:
        st.warning(
            "⚠️ Google Sheets is not reachable. Data is being saved on this "
            "device only."
        )
    else:
        st.success("✅ Connected to Google Sheets")

    st.markdown("### Configuration")
    status = validate_all_settings()
    services = [
        ("Google Sheets (Storage)", "google_sheets"),
        ("Local Store (Fallback)", "local_store"),
        ("Gemini (AI Analysis)", "gemini"),
        ("Company Details", "company"),
    ]
    for name, key in services:
        if status.get(key, False):
            st.success(f"✅ {name} - Configured")
        else:
            error = status.get(f"{key}_error", "Not configured")
            st.error(f"❌ {name} - {error}")

    st.markdown(
        "To configure the application, create a `.env` file with your keys. "
        "See `.env.example` for the required variables."
    )


if __name__ == "__main__":
    main()
