"""
M-Pesa SMS Transaction Parser - Streamlit Frontend
Paste a notification to preview the parsed record, or scan an inbox export
"""

import streamlit as st
import sys
import logging
from pathlib import Path
from datetime import datetime

# Add backend to path
backend_path = Path(__file__).parent.parent / 'backend'
sys.path.insert(0, str(backend_path))

# Import backend modules
from config import config
from logging_config import setup_logging
from extractors.sms_extractor import parse_sms
from loaders.sms_loader import load_inbox_text, SmsLoadError
from pipeline import SmsScanPipeline, TransactionGrouper
from output.writer import write_transactions

setup_logging(log_file="frontend.log")
logger = logging.getLogger(__name__)

SAMPLE_MESSAGE = (
    "Confirmed. Ksh500.00 sent to JOHN DOE 254712345678 on 1/6/25 at 2:30 PM. "
    "New M-PESA balance is Ksh1,500.00. Transaction cost, Ksh0.00."
)

# Page configuration
st.set_page_config(
    page_title="M-Pesa SMS Parser",
    page_icon="📱",
    layout="wide",
    initial_sidebar_state="expanded"
)

# Custom CSS
st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #43b02a;
        margin-bottom: 0.5rem;
    }
    .sub-header {
        font-size: 1.2rem;
        color: #808183;
        margin-bottom: 2rem;
    }
</style>
""", unsafe_allow_html=True)

# Initialize session state
if 'scan_results' not in st.session_state:
    st.session_state.scan_results = None


def main():
    """Main application function."""

    st.markdown('<div class="main-header">📱 M-Pesa SMS Transaction Parser</div>', unsafe_allow_html=True)
    st.markdown('<div class="sub-header">Turn M-Pesa notifications into structured transactions</div>', unsafe_allow_html=True)

    paste_tab, scan_tab = st.tabs(["Paste SMS", "Scan Inbox Export"])

    with paste_tab:
        render_paste_tab()

    with scan_tab:
        render_scan_tab()


def render_paste_tab():
    """Single-message preview."""
    message = st.text_area("M-Pesa message", value=SAMPLE_MESSAGE, height=140)

    col1, col2 = st.columns(2)
    with col1:
        received_date = st.date_input("Received on", value=datetime.now().date())
    with col2:
        received_time = st.time_input("Received at", value=datetime.now().time().replace(microsecond=0))

    if not st.button("🔍 Parse", type="primary"):
        return

    if not message.strip():
        st.error("❌ Please paste a message first")
        return

    received_at = datetime.combine(received_date, received_time)
    transaction = parse_sms(message, received_at)

    if transaction is None:
        st.warning("⚠️ Not a recognized M-Pesa transaction message")
        return

    st.success(f"✅ {transaction.category.value.replace('_', ' ').title()}")

    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Amount", transaction.amount_display)
    with col2:
        st.metric("Counterparty", transaction.counterparty)
    with col3:
        st.metric("Balance", f"{transaction.balance:,.2f}")
    with col4:
        st.metric("Cost", f"{transaction.transaction_cost:,.2f}")

    st.markdown("**Parsed record**")
    st.json(transaction.to_dict())
    st.markdown("**Storage row**")
    st.json(transaction.to_storage_row())


def render_scan_tab():
    """Inbox export scan with month filter and CSV download."""
    uploaded_file = st.file_uploader(
        "Inbox export",
        type=[ext.lstrip('.') for ext in config.ALLOWED_INBOX_TYPES],
        help="Plain text (messages separated by blank lines) or JSON"
    )
    keywords_input = st.text_input("Counterparty keywords (comma-separated, optional)")

    if st.button("🚀 Scan Inbox", type="primary", disabled=uploaded_file is None):
        scan_inbox(uploaded_file, keywords_input)

    if st.session_state.scan_results:
        display_scan_results()


def scan_inbox(uploaded_file, keywords_input):
    """Run the scan pipeline over an uploaded export."""
    content = uploaded_file.getvalue()
    is_valid, error = config.validate_file(uploaded_file.name, len(content))
    if not is_valid:
        st.error(f"❌ {error}")
        return

    keywords = [k.strip() for k in keywords_input.split(',') if k.strip()]
    fmt = "json" if uploaded_file.name.lower().endswith(".json") else "text"

    try:
        with st.spinner("Scanning messages..."):
            entries = load_inbox_text(content.decode("utf-8"), fmt)
            pipeline = SmsScanPipeline(strict_mode=False)
            transactions = pipeline.run(entries, keywords)

            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            export_path = write_transactions(
                str(config.get_output_path(f"mpesa_{timestamp}.csv")), transactions
            )

        st.session_state.scan_results = {
            'transactions': transactions,
            'stats': pipeline.stats,
            'extraction': pipeline.extraction_stats,
            'export_path': export_path,
        }
    except (SmsLoadError, UnicodeDecodeError) as e:
        st.error(f"❌ Could not read inbox: {str(e)}")
    except Exception as e:
        logger.error(f"Scan failed: {e}", exc_info=True)
        st.error(f"❌ Error scanning inbox: {str(e)}")
        st.exception(e)


def display_scan_results():
    """Display scan summary, monthly breakdown and download button."""
    results = st.session_state.scan_results
    transactions = results['transactions']
    summary = TransactionGrouper.summarize(transactions)

    st.subheader("📊 Summary")
    col1, col2, col3, col4 = st.columns(4)
    with col1:
        st.metric("Messages", results['stats']['messages_loaded'])
    with col2:
        st.metric("Transactions", summary['count'])
    with col3:
        st.metric("Money In", f"{summary['total_in']:,.2f}")
    with col4:
        st.metric("Money Out", f"{summary['total_out']:,.2f}")

    skipped = results['extraction'].get('unrecognized', 0)
    if skipped:
        st.warning(f"⚠️ {skipped} M-Pesa messages were not recognized")

    st.subheader("📅 Monthly Breakdown")
    for month, month_summary in TransactionGrouper.summarize_by_month(transactions).items():
        with st.expander(f"**{month}** - {month_summary['count']} transactions, Net: {month_summary['net']:+,.2f}"):
            st.table([
                {"category": category, **totals}
                for category, totals in sorted(month_summary['by_category'].items())
            ])

    st.subheader("🧾 Transactions")
    st.dataframe([txn.to_dict() for txn in transactions], use_container_width=True)

    export_path = results['export_path']
    if export_path and Path(export_path).exists():
        st.download_button(
            label="📄 Download CSV",
            data=Path(export_path).read_bytes(),
            file_name=Path(export_path).name,
            mime="text/csv",
            type="primary"
        )

    if st.button("🔄 Scan Another Inbox"):
        st.session_state.scan_results = None
        st.rerun()


if __name__ == "__main__":
    main()
