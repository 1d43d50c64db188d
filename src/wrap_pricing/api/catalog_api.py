"""
Catalog API - FastAPI router for catalog maintenance.
"""
from fastapi import APIRouter, HTTPException
from pydantic import BaseModel
from typing import Optional

from .state import catalog_service

router = APIRouter(prefix="/api/catalog", tags=["catalog"])


# Pydantic models for API
class CategoryIn(BaseModel):
    name: str


class VehicleCreate(BaseModel):
    manufacturer: str
    model: str
    category_id: str = ""
    production_period: str = ""


class VehicleUpdate(BaseModel):
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    category_id: Optional[str] = None
    production_period: Optional[str] = None


class PricedItemCreate(BaseModel):
    """Request model for coverages and extra options."""
    name: str
    price: float


class PricedItemUpdate(BaseModel):
    name: Optional[str] = None
    price: Optional[float] = None


class PrintMaterialCreate(BaseModel):
    name: str
    calculation_mode: str
    value: float
    allows_white_print: bool = False


class PrintMaterialUpdate(BaseModel):
    name: Optional[str] = None
    calculation_mode: Optional[str] = None
    value: Optional[float] = None
    allows_white_print: Optional[bool] = None


class LaminationMaterialCreate(BaseModel):
    name: str
    calculation_mode: str
    value: float


class LaminationMaterialUpdate(BaseModel):
    name: Optional[str] = None
    calculation_mode: Optional[str] = None
    value: Optional[float] = None


class WhitePrintSettingsIn(BaseModel):
    calculation_mode: str
    value: float


class ValidationResponse(BaseModel):
    """Response model for validation."""
    valid: bool
    errors: list[str]
    warnings: list[str]


def _call(fn, *args):
    """Run a service call, mapping its exceptions to HTTP errors."""
    try:
        return fn(*args)
    except LookupError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))


# Endpoints

@router.get("/stats")
async def get_stats():
    """Get catalog counts."""
    return catalog_service.get_stats()


@router.get("/categories")
async def list_categories():
    return [c.to_dict() for c in catalog_service.catalog.categories]


@router.post("/categories")
async def create_category(data: CategoryIn):
    return _call(catalog_service.create_category, data.name).to_dict()


@router.put("/categories/{category_id}")
async def update_category(category_id: str, data: CategoryIn):
    return _call(catalog_service.update_category, category_id, data.name).to_dict()


@router.delete("/categories/{category_id}")
async def delete_category(category_id: str):
    _call(catalog_service.delete_category, category_id)
    return {"success": True, "message": f"Category '{category_id}' deleted"}


@router.get("/vehicles")
async def list_vehicles():
    return [v.to_dict() for v in catalog_service.catalog.vehicles]


@router.get("/vehicles/{vehicle_id}")
async def get_vehicle(vehicle_id: str):
    vehicle = catalog_service.catalog.get_vehicle(vehicle_id)
    if not vehicle:
        raise HTTPException(status_code=404, detail=f"Vehicle '{vehicle_id}' not found")
    return vehicle.to_dict()


@router.post("/vehicles")
async def create_vehicle(data: VehicleCreate):
    vehicle = _call(
        catalog_service.create_vehicle,
        data.manufacturer, data.model, data.category_id, data.production_period,
    )
    return vehicle.to_dict()


@router.put("/vehicles/{vehicle_id}")
async def update_vehicle(vehicle_id: str, updates: VehicleUpdate):
    update_dict = updates.model_dump(exclude_unset=True)
    return _call(catalog_service.update_vehicle, vehicle_id, update_dict).to_dict()


@router.delete("/vehicles/{vehicle_id}")
async def delete_vehicle(vehicle_id: str):
    _call(catalog_service.delete_vehicle, vehicle_id)
    return {"success": True, "message": f"Vehicle '{vehicle_id}' deleted"}


@router.post("/vehicles/{vehicle_id}/coverages")
async def add_coverage(vehicle_id: str, data: PricedItemCreate):
    return _call(catalog_service.add_coverage, vehicle_id, data.name, data.price).to_dict()


@router.put("/vehicles/{vehicle_id}/coverages/{coverage_id}")
async def update_coverage(vehicle_id: str, coverage_id: str, updates: PricedItemUpdate):
    update_dict = updates.model_dump(exclude_unset=True)
    return _call(catalog_service.update_coverage, vehicle_id, coverage_id, update_dict).to_dict()


@router.delete("/vehicles/{vehicle_id}/coverages/{coverage_id}")
async def delete_coverage(vehicle_id: str, coverage_id: str):
    _call(catalog_service.delete_coverage, vehicle_id, coverage_id)
    return {"success": True, "message": f"Coverage '{coverage_id}' deleted"}


@router.post("/vehicles/{vehicle_id}/extra-options")
async def add_extra_option(vehicle_id: str, data: PricedItemCreate):
    return _call(catalog_service.add_extra_option, vehicle_id, data.name, data.price).to_dict()


@router.put("/vehicles/{vehicle_id}/extra-options/{option_id}")
async def update_extra_option(vehicle_id: str, option_id: str, updates: PricedItemUpdate):
    update_dict = updates.model_dump(exclude_unset=True)
    return _call(catalog_service.update_extra_option, vehicle_id, option_id, update_dict).to_dict()


@router.delete("/vehicles/{vehicle_id}/extra-options/{option_id}")
async def delete_extra_option(vehicle_id: str, option_id: str):
    _call(catalog_service.delete_extra_option, vehicle_id, option_id)
    return {"success": True, "message": f"Extra option '{option_id}' deleted"}


@router.get("/print-materials")
async def list_print_materials():
    return [m.to_dict() for m in catalog_service.catalog.print_materials]


@router.post("/print-materials")
async def create_print_material(data: PrintMaterialCreate):
    material = _call(
        catalog_service.create_print_material,
        data.name, data.calculation_mode, data.value, data.allows_white_print,
    )
    return material.to_dict()


@router.put("/print-materials/{material_id}")
async def update_print_material(material_id: str, updates: PrintMaterialUpdate):
    update_dict = updates.model_dump(exclude_unset=True)
    return _call(catalog_service.update_print_material, material_id, update_dict).to_dict()


@router.delete("/print-materials/{material_id}")
async def delete_print_material(material_id: str):
    _call(catalog_service.delete_print_material, material_id)
    return {"success": True, "message": f"Print material '{material_id}' deleted"}


@router.get("/lamination-materials")
async def list_lamination_materials():
    return [m.to_dict() for m in catalog_service.catalog.lamination_materials]


@router.post("/lamination-materials")
async def create_lamination_material(data: LaminationMaterialCreate):
    material = _call(
        catalog_service.create_lamination_material,
        data.name, data.calculation_mode, data.value,
    )
    return material.to_dict()


@router.put("/lamination-materials/{material_id}")
async def update_lamination_material(material_id: str, updates: LaminationMaterialUpdate):
    update_dict = updates.model_dump(exclude_unset=True)
    return _call(catalog_service.update_lamination_material, material_id, update_dict).to_dict()


@router.delete("/lamination-materials/{material_id}")
async def delete_lamination_material(material_id: str):
    _call(catalog_service.delete_lamination_material, material_id)
    return {"success": True, "message": f"Lamination material '{material_id}' deleted"}


@router.get("/white-print")
async def get_white_print_settings():
    return catalog_service.catalog.white_print_settings.to_dict()


@router.put("/white-print")
async def update_white_print_settings(data: WhitePrintSettingsIn):
    settings = _call(catalog_service.update_white_print_settings, data.calculation_mode, data.value)
    return settings.to_dict()


@router.post("/print-materials/validate", response_model=ValidationResponse)
async def validate_print_material(data: PrintMaterialCreate):
    """Validate a material without saving."""
    result = catalog_service.validate_material(data.name, data.calculation_mode, data.value)
    return ValidationResponse(valid=result.valid, errors=result.errors, warnings=result.warnings)
