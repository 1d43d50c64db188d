"""
Streamlit UI for the Vehicle Graphics Pricing Tool.

Features:
- Calculator that re-prices on every selection change
- Saved quotes with CSV/Excel download
- Catalog overview
- CSV import/export of catalog datasets
"""
import io
import sys
from datetime import datetime
from pathlib import Path

import pandas as pd
import streamlit as st

# Add src to path for imports
src_path = Path(__file__).parent.parent.parent
if str(src_path) not in sys.path:
    sys.path.insert(0, str(src_path))

from wrap_pricing.config.settings import get_settings
from wrap_pricing.config.logging_config import setup_logging
from wrap_pricing.data.csv_io import (
    EXPORTERS,
    QuoteRecord,
    export_dataset,
    import_files,
    quotes_frame,
    read_csv,
    write_quotes,
)
from wrap_pricing.data.store import CatalogStore
from wrap_pricing.engine import PricingEngine
from wrap_pricing.engine.selection_state import (
    CatalogReloaded,
    CoverageSelected,
    ExtraOptionToggled,
    LaminationSelected,
    PrintMaterialSelected,
    SelectionReset,
    VehicleSelected,
    WhitePrintToggled,
    initial_state,
    reduce,
)
from wrap_pricing.services import CatalogService
from wrap_pricing.ui.formatting import describe_pricing, format_price, format_total


st.set_page_config(
    page_title="Vehicle Graphics Calculator",
    layout="wide",
    initial_sidebar_state="expanded"
)


@st.cache_resource
def get_services():
    """Get cached settings, engine and catalog service."""
    settings = get_settings()
    setup_logging(settings.log_level)
    store = CatalogStore(settings.data_file)
    engine = PricingEngine(settings=settings, store=store)
    catalog_service = CatalogService(store, on_change=engine.set_catalog)
    engine.set_catalog(catalog_service.catalog)
    return settings, engine, catalog_service


try:
    settings, engine, catalog_service = get_services()
except Exception as e:
    st.error(f"System Error: {e}")
    st.stop()

catalog = engine.catalog
currency = settings.currency


def dispatch(action):
    st.session_state.selection = reduce(engine.catalog, st.session_state.selection, action)


def money(amount: float) -> str:
    return format_price(amount, currency, settings.price_decimals)


# Session state: selection follows catalog changes made in other tabs
if 'selection' not in st.session_state:
    st.session_state.selection = initial_state(catalog)
    st.session_state.catalog_seen = catalog
if st.session_state.get('catalog_seen') is not catalog:
    dispatch(CatalogReloaded())
    st.session_state.catalog_seen = catalog
if 'quotes' not in st.session_state:
    st.session_state.quotes = []


# ============================================================================
# SIDEBAR
# ============================================================================
with st.sidebar:
    st.header("🚐 Vehicle Graphics")
    stats = catalog_service.get_stats()
    st.caption(f"**{stats['vehicles']}** vehicles · **{stats['coverages']}** coverages")
    st.caption(f"**{stats['print_materials']}** print · **{stats['lamination_materials']}** lamination materials")
    st.divider()
    if st.button("🔄 Reset Selection", use_container_width=True):
        dispatch(SelectionReset())
        st.rerun()


st.title("Vehicle Graphics Calculator")
st.caption(f"v1.0 | Pricing Engine Active | {datetime.now().strftime('%Y-%m-%d')}")

tab1, tab2, tab3, tab4 = st.tabs(["🧮 Calculator", "📚 Catalog", "📦 Import / Export", "📊 System"])


# ============================================================================
# TAB 1: CALCULATOR
# ============================================================================
with tab1:
    selection = st.session_state.selection
    col1, col2 = st.columns([1.8, 1.2], gap="large")

    with col1:
        st.subheader("1. Vehicle and coverage")
        vehicle_ids = [None] + [v.id for v in catalog.vehicles]
        vehicle_id = st.selectbox(
            "Vehicle",
            options=vehicle_ids,
            index=vehicle_ids.index(selection.vehicle_id) if selection.vehicle_id in vehicle_ids else 0,
            format_func=lambda vid: "Choose a vehicle..." if vid is None else catalog.get_vehicle(vid).display_name,
        )
        if vehicle_id != selection.vehicle_id:
            dispatch(VehicleSelected(vehicle_id))
            st.rerun()

        vehicle = catalog.get_vehicle(selection.vehicle_id)
        if vehicle:
            coverage_ids = [None] + [c.id for c in vehicle.coverages]
            coverage_id = st.selectbox(
                "Coverage",
                options=coverage_ids,
                index=coverage_ids.index(selection.coverage_id) if selection.coverage_id in coverage_ids else 0,
                format_func=lambda cid: "Choose a coverage..." if cid is None else (
                    f"{vehicle.get_coverage(cid).name} ({money(vehicle.get_coverage(cid).price)})"
                ),
            )
            if coverage_id != selection.coverage_id:
                dispatch(CoverageSelected(coverage_id))
                st.rerun()

            if vehicle.extra_options:
                st.subheader("2. Extra options")
                for option in vehicle.extra_options:
                    checked = st.checkbox(
                        f"{option.name} (+{money(option.price)})",
                        value=option.id in selection.extra_option_ids,
                        key=f"opt_{vehicle.id}_{option.id}",
                    )
                    if checked != (option.id in selection.extra_option_ids):
                        dispatch(ExtraOptionToggled(option.id))
                        st.rerun()

            st.subheader("3. Materials")
            m1, m2 = st.columns(2)
            with m1:
                print_ids = [m.id for m in catalog.print_materials]
                print_id = st.selectbox(
                    "Print material",
                    options=print_ids,
                    index=print_ids.index(selection.print_material_id) if selection.print_material_id in print_ids else 0,
                    format_func=lambda mid: (
                        f"{catalog.get_print_material(mid).name} "
                        f"({describe_pricing(catalog.get_print_material(mid).calculation_mode, catalog.get_print_material(mid).value, currency)})"
                    ),
                )
                if print_ids and print_id != selection.print_material_id:
                    dispatch(PrintMaterialSelected(print_id))
                    st.rerun()
            with m2:
                lamination_ids = [m.id for m in catalog.lamination_materials]
                if not settings.require_lamination:
                    lamination_ids = [None] + lamination_ids
                lamination_id = st.selectbox(
                    "Lamination",
                    options=lamination_ids,
                    index=(lamination_ids.index(selection.lamination_material_id)
                           if selection.lamination_material_id in lamination_ids else 0),
                    format_func=lambda mid: "No lamination" if mid is None else (
                        f"{catalog.get_lamination_material(mid).name} "
                        f"({describe_pricing(catalog.get_lamination_material(mid).calculation_mode, catalog.get_lamination_material(mid).value, currency)})"
                    ),
                )
                if lamination_ids and lamination_id != selection.lamination_material_id:
                    dispatch(LaminationSelected(lamination_id))
                    st.rerun()

            print_material = catalog.get_print_material(selection.print_material_id)
            if print_material and print_material.allows_white_print:
                white = st.checkbox("Add white print", value=selection.white_print_requested)
                if white != selection.white_print_requested:
                    dispatch(WhitePrintToggled(white))
                    st.rerun()

    with col2:
        st.subheader("Quote Summary")

        with st.container(border=True):
            selection = st.session_state.selection
            breakdown = engine.try_calculate(selection)
            if settings.require_lamination and selection.lamination_material_id is None:
                breakdown = None

            if breakdown is None:
                st.metric("Total", format_total(None))
                st.info("Choose a vehicle and a coverage to start the calculation.")
            else:
                for line in breakdown.lines:
                    c1, c2 = st.columns([2, 1])
                    c1.write(line.label)
                    c2.write(f"`{money(line.amount)}`")
                st.divider()
                st.metric("Total", format_total(breakdown, currency, settings.price_decimals))

                if st.button("💾 Save Quote", type="primary", use_container_width=True):
                    st.session_state.quotes.append(QuoteRecord.from_selection(catalog, selection, breakdown))
                    st.toast("Quote saved")

                with st.expander("🔍 Calculation Details"):
                    st.text(breakdown.get_trace_text())

    # Saved quotes (full width)
    if st.session_state.quotes:
        st.markdown("### 📝 Saved Quotes")
        saved_df = quotes_frame(st.session_state.quotes)
        st.dataframe(saved_df, use_container_width=True, hide_index=True)

        b1, b2, b3, b4 = st.columns(4)
        with b1:
            st.download_button(
                "📥 CSV",
                data=saved_df.to_csv(index=False),
                file_name="quotes.csv",
                mime="text/csv",
                use_container_width=True
            )
        with b2:
            buffer = io.BytesIO()
            saved_df.to_excel(buffer, index=False, sheet_name="Quotes", engine="openpyxl")
            st.download_button(
                "📊 Excel",
                data=buffer.getvalue(),
                file_name="quotes.xlsx",
                mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
                use_container_width=True
            )
        with b3:
            if st.button("🗄️ Archive", use_container_width=True):
                stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
                path = write_quotes(st.session_state.quotes, settings.export_dir / f"quotes_{stamp}.xlsx")
                st.toast(f"Saved to {path}")
        with b4:
            if st.button("🗑️ Clear", use_container_width=True):
                st.session_state.quotes = []
                st.rerun()


# ============================================================================
# TAB 2: CATALOG
# ============================================================================
with tab2:
    st.subheader("📚 Catalog")

    search_term = st.text_input("Search vehicles", placeholder="Manufacturer or model...", label_visibility="collapsed")
    vehicles_df = export_dataset(catalog, 'vehicles')
    if search_term:
        mask = (
            vehicles_df['Manufacturer'].str.contains(search_term, case=False, na=False) |
            vehicles_df['Model'].str.contains(search_term, case=False, na=False)
        )
        vehicles_df = vehicles_df[mask]
    st.dataframe(vehicles_df, use_container_width=True, hide_index=True)

    c1, c2 = st.columns(2)
    with c1:
        st.markdown("##### Coverages")
        st.dataframe(export_dataset(catalog, 'coverages'), use_container_width=True, hide_index=True)
    with c2:
        st.markdown("##### Extra Options")
        st.dataframe(export_dataset(catalog, 'extra_options'), use_container_width=True, hide_index=True)

    st.markdown("##### Materials")
    st.dataframe(export_dataset(catalog, 'materials'), use_container_width=True, hide_index=True)

    white = catalog.white_print_settings
    st.caption(f"White print surcharge: {describe_pricing(white.calculation_mode, white.value, currency)} of base + print")


# ============================================================================
# TAB 3: IMPORT / EXPORT
# ============================================================================
with tab3:
    st.subheader("📤 Export")
    cols = st.columns(len(EXPORTERS))
    for col, dataset in zip(cols, EXPORTERS):
        with col:
            df = export_dataset(catalog, dataset)
            st.download_button(
                f"{dataset.replace('_', ' ').title()} ({len(df)})",
                data=df.to_csv(index=False),
                file_name=f"{dataset}.csv",
                mime="text/csv",
                use_container_width=True
            )

    st.divider()
    st.subheader("📥 Import")
    st.caption(
        "The file name selects the data type: names containing `categor`, `vehicle`, "
        "`coverage`, `option` or `material`."
    )
    uploads = st.file_uploader("CSV files", type=["csv"], accept_multiple_files=True, label_visibility="collapsed")

    if uploads and st.button("Import Data", type="primary"):
        files = {}
        for upload in uploads:
            try:
                files[upload.name] = read_csv(upload)
            except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
                st.error(f"Cannot read {upload.name}: {e}")

        new_catalog, result = import_files(catalog, files)
        if result.success or result.updated:
            catalog_service.replace_catalog(new_catalog)

        if result.success or result.updated:
            st.success(f"{result.success} records imported, {result.updated} updated")
        for warning in result.warnings:
            st.warning(warning)
        for error in result.errors:
            st.error(error)


# ============================================================================
# TAB 4: SYSTEM INFO
# ============================================================================
with tab4:
    st.header("System Status")

    c1, c2, c3, c4 = st.columns(4)
    c1.metric("Vehicles", stats['vehicles'])
    c2.metric("Categories", stats['categories'])
    c3.metric("Print Materials", stats['print_materials'])
    c4.metric("Lamination Materials", stats['lamination_materials'])

    st.caption(f"Data file: `{settings.data_file}`" + ("" if catalog_service.store.exists() else " (defaults, not saved yet)"))
    st.caption(f"Lamination required: {'yes' if settings.require_lamination else 'no'}")

    if st.button("🔄 Reload Catalog", type="secondary"):
        catalog_service.reload()
        st.toast("Catalog reloaded")
        st.rerun()
