"""Project and plot schemas."""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from landbook.models.project import PlotStatus


class ProjectCreate(BaseModel):
    """Create a land project."""

    name: str = Field(..., min_length=1, max_length=200)
    location: str = Field("", max_length=200)
    capacity: int = Field(0, ge=0)
    buying_price: Decimal = Field(Decimal("0"), ge=0)
    description: Optional[str] = Field(None, max_length=2000)


class ProjectResponse(BaseModel):
    id: int
    name: str
    location: str
    capacity: int
    total_plots: int
    buying_price: Decimal
    description: Optional[str]
    created_at: datetime

    model_config = {"from_attributes": True}


class PlotCreate(BaseModel):
    """Add a plot to a project."""

    plot_number: str = Field(..., min_length=1, max_length=50)
    price: Decimal = Field(..., ge=0)
    size: str = Field("", max_length=50)
    notes: Optional[str] = Field(None, max_length=2000)


class BulkPlotCreate(BaseModel):
    """Add several plots at once."""

    plots: List[PlotCreate] = Field(..., min_length=1, max_length=500)


class PlotResponse(BaseModel):
    id: int
    project_id: int
    plot_number: str
    size: str
    price: Decimal
    status: PlotStatus
    client_id: Optional[int]
    sold_at: Optional[datetime]
    notes: Optional[str]

    model_config = {"from_attributes": True}


class PlotCountsResponse(BaseModel):
    total: int
    available: int
    sold: int
    reserved: int

    model_config = {"from_attributes": True}


class ProjectStatsResponse(BaseModel):
    project_id: int
    name: str
    location: str
    capacity: int  # max(planned capacity, registered plots)
    stats: PlotCountsResponse

    model_config = {"from_attributes": True}


class InventoryStatsResponse(BaseModel):
    """Tenant-wide inventory overview."""

    total_projects: int
    total_plots: int
    total_capacity: int
    available_plots: int
    sold_plots: int
    reserved_plots: int
    fully_sold_projects: int
    projects: List[ProjectStatsResponse]

    model_config = {"from_attributes": True}
