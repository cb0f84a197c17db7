"""
Hospital Price Transparency MRF Validator - Upload Page

Upload a CSV or JSON machine-readable file, pick the schema version, and see
errors, warnings and alerts.

Tech: Streamlit (zero frontend code needed)
Run: streamlit run app.py
"""

import streamlit as st
import time

from mrf_validator import ValidationOptions, validate_csv, validate_json, validate_filename
from mrf_validator.config.catalog_loader import get_catalog_loader
from mrf_validator.utils.error_handler import ErrorHandler
from mrf_validator.utils.logger import get_logger
from mrf_validator.utils.reporting import get_validation_reporter

# ==============================================================================
# PAGE CONFIGURATION
# ==============================================================================

st.set_page_config(
    page_title="MRF Validator",
    page_icon="🏥",
    layout="wide",
    initial_sidebar_state="collapsed"
)

logger = get_logger("app")

# ==============================================================================
# HELPER FUNCTIONS
# ==============================================================================

def get_error_handler() -> ErrorHandler:
    """Get singleton error handler."""
    if 'error_handler' not in st.session_state:
        st.session_state.error_handler = ErrorHandler(logger.logger)
    return st.session_state.error_handler


def run_validation(uploaded_file, version: str, max_errors: int) -> dict:
    """
    Validate an uploaded file.

    Returns:
        dict: result, operational error message (if any), and timing
    """
    outcome = {'result': None, 'error': None, 'total_time': 0}
    start_total = time.time()

    options = ValidationOptions(max_errors=max_errors)
    validate = validate_json if uploaded_file.name.lower().endswith(".json") else validate_csv

    uploaded_file.seek(0)
    wrapped = get_error_handler().wrap_operation(validate, uploaded_file, version, options)
    if wrapped.success:
        outcome['result'] = wrapped.value
    else:
        outcome['error'] = wrapped.error.message

    outcome['total_time'] = round(time.time() - start_total, 2)
    return outcome


def display_status_badge(result):
    """Display status badge with appropriate color."""
    if result.valid and result.warning_count == 0:
        st.success("✅ **VALID**")
    elif result.valid:
        st.warning(f"⚠️ **VALID** with {result.warning_count} warning(s) not yet enforced")
    else:
        st.error(f"❌ **INVALID** ({result.error_count} error(s))")


def display_violations(title: str, found: list):
    if not found:
        return
    st.markdown("---")
    st.subheader(title)
    st.dataframe(
        [violation.to_output() for violation in found],
        use_container_width=True
    )


# ==============================================================================
# MAIN APP UI
# ==============================================================================

st.title("🏥 Hospital Price Transparency MRF Validator")
st.markdown("Upload a machine-readable standard charges file to check it against the CMS schema")
st.markdown("---")

with st.expander("ℹ️ How to Use This App", expanded=False):
    st.markdown("""
    1. **Pick the schema version** the file claims to follow
    2. **Upload** the CSV or JSON file
    3. **Review** errors (must fix), warnings (enforced at a later date) and alerts (advisory)

    Setting an error limit stops validation early once that many errors are found.
    """)

versions = get_catalog_loader().supported_versions()
col1, col2 = st.columns(2)
with col1:
    version = st.selectbox("Schema version", versions, index=len(versions) - 1)
with col2:
    max_errors = st.number_input("Error limit (0 = no limit)", min_value=0, value=1000, step=100)

uploaded_file = st.file_uploader(
    "Upload machine-readable file",
    type=['csv', 'json'],
    help="Select a CSV or JSON file from your computer"
)

if uploaded_file is not None:
    st.markdown("---")

    if validate_filename(uploaded_file.name):
        st.success("✅ File name follows the CMS naming convention")
    else:
        st.warning(
            "⚠️ File name does not follow the CMS naming convention: "
            "<ein>[-<npi>]_<hospital-name>_standardcharges.<csv|json>"
        )

    with st.spinner("Validating..."):
        outcome = run_validation(uploaded_file, version, int(max_errors))

    st.subheader(f"Results for: {uploaded_file.name}")

    if outcome['error']:
        st.error(f"🔴 Unable to validate file: {outcome['error']}")
    else:
        result = outcome['result']
        display_status_badge(result)

        errors = [violation for violation in result.errors if not violation.warning]
        warnings = [violation for violation in result.errors if violation.warning]
        display_violations("❌ Errors", errors)
        display_violations("⚠️ Warnings", warnings)
        display_violations("ℹ️ Alerts", result.alerts)

        st.markdown("---")
        st.metric("Total Processing Time", f"{outcome['total_time']}s")

        reporter = get_validation_reporter()
        col1, col2 = st.columns(2)
        with col1:
            st.download_button(
                "Download text report",
                reporter.generate_report(result, file_name=uploaded_file.name, version=version),
                file_name=f"{uploaded_file.name}.report.txt"
            )
        with col2:
            st.download_button(
                "Download JSON report",
                reporter.export_to_json(result, file_name=uploaded_file.name, version=version),
                file_name=f"{uploaded_file.name}.report.json",
                mime="application/json"
            )

else:
    st.info("👆 Upload a CSV or JSON file above to start validation")

st.markdown("---")
st.caption("Hospital Price Transparency MRF Validator")
