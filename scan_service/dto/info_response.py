from pydantic import BaseModel, Field


class InfoResponse(BaseModel):
    """Response payload for the /api/info endpoint."""

    service_app_name: str = Field(..., description="Service name.")
    service_version: str = Field(..., description="Service version string.")
    service_model: str = Field(..., description="Tesseract model path/prefix.")
    symbologies: list[str] = Field(..., description="Barcode symbologies the decoder accepts.")
    currency_symbol: str = Field(..., description="Currency symbol the receipt parser looks for.")
