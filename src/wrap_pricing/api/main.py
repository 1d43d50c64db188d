import logging
from typing import List, Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from wrap_pricing import __version__
from wrap_pricing.config.logging_config import setup_logging
from wrap_pricing.engine import Selection, SelectionError
from wrap_pricing.api.catalog_api import router as catalog_router
from wrap_pricing.api.data_api import router as data_router
from wrap_pricing.api.state import catalog_service, cart_service, engine, settings

setup_logging(settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="Vehicle Graphics Pricing API",
    description="Backend API for the vinyl wrap quote configurator",
    version=__version__,
)

# Enable CORS for frontend development
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(catalog_router)
app.include_router(data_router)


class SelectionRequest(BaseModel):
    vehicle_id: Optional[str] = None
    coverage_id: Optional[str] = None
    print_material_id: Optional[str] = None
    extra_option_ids: List[str] = []
    lamination_material_id: Optional[str] = None
    white_print_requested: bool = False

    def to_selection(self) -> Selection:
        return Selection(
            vehicle_id=self.vehicle_id,
            coverage_id=self.coverage_id,
            print_material_id=self.print_material_id,
            extra_option_ids=tuple(self.extra_option_ids),
            lamination_material_id=self.lamination_material_id,
            white_print_requested=self.white_print_requested,
        )


class CartRequest(SelectionRequest):
    total: Optional[float] = None


def _check_lamination(req: SelectionRequest):
    if settings.require_lamination and req.lamination_material_id is None:
        raise HTTPException(
            status_code=422,
            detail={"field": "laminationMaterial", "kind": "required", "value": None},
        )


@app.get("/")
async def root():
    return {"status": "online", "message": "Vehicle Graphics Pricing API Active"}


@app.post("/calculate")
async def calculate_price(req: SelectionRequest):
    _check_lamination(req)
    try:
        breakdown = engine.calculate(req.to_selection())
    except SelectionError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    return {
        "lines": breakdown.to_dict()["lines"],
        "total": breakdown.total,
        "currency": settings.currency,
        "trace": breakdown.get_trace_text(),
    }


@app.get("/catalog")
async def get_catalog():
    return engine.catalog.to_dict()


@app.post("/cart")
async def add_to_cart(req: CartRequest):
    _check_lamination(req)
    try:
        line = cart_service.add_to_cart(req.to_selection(), client_total=req.total)
    except SelectionError as e:
        raise HTTPException(status_code=422, detail=e.to_dict())
    return line.to_dict()


@app.get("/cart")
async def get_cart():
    return {
        "lines": [line.to_dict() for line in cart_service.lines],
        "total": cart_service.total,
        "currency": settings.currency,
    }


@app.get("/system/status")
async def get_status():
    return {
        "engine_active": True,
        "data_file": str(settings.data_file),
        "data_file_exists": catalog_service.store.exists(),
        "require_lamination": settings.require_lamination,
        "counts": catalog_service.get_stats(),
    }