"""
Data API - CSV export and import of catalog datasets.
"""
import io

import pandas as pd
from fastapi import APIRouter, File, HTTPException, UploadFile
from fastapi.responses import Response

from ..data.csv_io import EXPORTERS, IMPORTERS, export_dataset, import_dataset, read_csv
from .state import catalog_service

router = APIRouter(prefix="/api", tags=["data"])


@router.get("/export/{dataset}")
async def export_csv(dataset: str):
    """Download one catalog dataset as CSV."""
    if dataset not in EXPORTERS:
        raise HTTPException(status_code=404, detail=f"Unknown dataset '{dataset}'")
    df = export_dataset(catalog_service.catalog, dataset)
    return Response(
        content=df.to_csv(index=False),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{dataset}.csv"'},
    )


@router.post("/import/{dataset}")
async def import_csv(dataset: str, file: UploadFile = File(...)):
    """Reconcile an uploaded CSV into the catalog."""
    if dataset not in IMPORTERS:
        raise HTTPException(status_code=404, detail=f"Unknown dataset '{dataset}'")

    content = await file.read()
    try:
        df = read_csv(io.BytesIO(content))
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise HTTPException(status_code=400, detail=f"Cannot parse CSV: {e}")

    catalog, result = import_dataset(catalog_service.catalog, dataset, df)
    if result.success or result.updated:
        catalog_service.replace_catalog(catalog)

    return {
        "success": result.success,
        "updated": result.updated,
        "errors": result.errors,
        "warnings": result.warnings,
    }
