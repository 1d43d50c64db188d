"""UI subpackage - Streamlit calculator and display helpers."""
