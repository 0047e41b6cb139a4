"""
FastAPI REST API for SynthProof

Provides endpoints for:
- Dataset registration
- Synthetic data generation
- Proof verification
- Receipt export
- Result download
- Configuration presets
"""

from fastapi import FastAPI, HTTPException, Query, Header
from fastapi.responses import StreamingResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Optional, List
from dataclasses import asdict
from datetime import datetime
import io
import logging
import os

from synthproof.config import ConfigLoader, get_default_config
from synthproof.exceptions import NotFoundError, SynthProofError, ValidationError
from synthproof.service import build_service
from synthproof.utils import PathManager, setup_logging

# Configure logging
setup_logging(level=logging.INFO)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="SynthProof API",
    description="Synthetic tabular data with verifiable commitments",
    version="1.0.0"
)

# CORS middleware
allowed_origins = [o.strip() for o in os.getenv("ALLOWED_ORIGINS", "http://localhost:3000,http://localhost:5173").split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def load_service_config():
    """Preset named by SYNTHPROOF_PRESET, overridden by SYNTHPROOF_CONFIG and SYNTHPROOF_RUNTIME_DIR"""
    loader = ConfigLoader()
    preset = os.getenv("SYNTHPROOF_PRESET")
    config = loader.load_preset(preset) if preset else get_default_config()

    config_file = os.getenv("SYNTHPROOF_CONFIG")
    if config_file:
        config = loader.merge_configs(config, loader.read_file(config_file))

    runtime_dir = os.getenv("SYNTHPROOF_RUNTIME_DIR")
    if runtime_dir:
        config.storage.backend = "json"
        config.storage.runtime_dir = runtime_dir

    return config


service = build_service(load_service_config())


def require_api_key(x_api_key: Optional[str] = Header(default=None)):
    expected = os.getenv("API_KEY")
    if expected and x_api_key != expected:
        raise HTTPException(status_code=401, detail="Invalid or missing API key")


def to_http_exception(error: SynthProofError) -> HTTPException:
    """Map pipeline errors onto HTTP status codes"""
    if isinstance(error, ValidationError):
        status_code = 422
    elif isinstance(error, NotFoundError):
        status_code = 404
    else:
        status_code = 500

    detail = error.to_dict()
    if isinstance(error, ValidationError):
        detail["errors"] = error.errors
    return HTTPException(status_code=status_code, detail=detail)


# Pydantic models
class ApiModel(BaseModel):
    """Accepts snake_case or camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class DatasetRegistration(ApiModel):
    """Dataset registration request"""
    user_address: str = Field(..., min_length=1, description="Owner address")
    filename: str = Field(..., min_length=1)
    original_hash: str = Field(..., min_length=1,
                               description="Client-side content fingerprint")
    column_count: int = Field(..., ge=0)
    row_count: int = Field(..., ge=0)
    dataset_type: str = Field("custom")


class ColumnModel(BaseModel):
    """Classified column"""
    name: str
    kind: str = Field(..., validation_alias=AliasChoices("kind", "type"))
    selected: bool = True


class GenerateBody(ApiModel):
    """Generation request"""
    dataset_id: str
    columns: List[ColumnModel] = Field(default_factory=list)
    headers: List[str] = Field(default_factory=list)
    hide_sensitive: bool = True
    privacy_safe_ranges: bool = False
    synthetic_rows: int = Field(100, description="Number of rows to generate")
    output_format: str = "csv"
    quality_mode: str = "balanced"
    original_data_hash: str = ""
    user_address: Optional[str] = None


class VerifyBody(ApiModel):
    """Verification request"""
    generation_id: str
    claimed_commitment: str


# API Endpoints

@app.get("/", tags=["General"])
async def root():
    """API root endpoint"""
    return {
        "name": "SynthProof API",
        "version": "1.0.0",
        "status": "running",
        "endpoints": {
            "datasets": "/datasets",
            "generate": "/generate",
            "verify": "/verify",
            "receipts": "/receipts/{generation_id}",
            "download": "/generations/{generation_id}/download",
            "presets": "/presets"
        }
    }


@app.get("/health", tags=["General"])
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now().isoformat(),
        "network": service.config.network.network,
        "digest": service.config.commitment.digest,
        "store": type(service.store).__name__
    }


@app.post("/datasets", tags=["Datasets"])
async def register_dataset(body: DatasetRegistration, x_api_key: Optional[str] = Header(default=None)):
    """
    Register a dataset by its content fingerprint

    Only the fingerprint and counts are sent; the raw content stays with the client.
    """
    require_api_key(x_api_key)
    try:
        result = service.register_dataset(
            user_address=body.user_address,
            filename=body.filename,
            original_hash=body.original_hash,
            column_count=body.column_count,
            row_count=body.row_count,
            dataset_type=body.dataset_type,
        )
        return asdict(result)

    except SynthProofError as e:
        logger.error(f"Registration error: {e}")
        raise to_http_exception(e)


@app.post("/generate", tags=["Generation"])
async def generate_synthetic_data(body: GenerateBody, x_api_key: Optional[str] = Header(default=None)):
    """
    Generate a committed synthetic table for a registered dataset
    """
    require_api_key(x_api_key)
    try:
        response = service.generate(body.model_dump())
        return response.to_dict()

    except SynthProofError as e:
        logger.error(f"Generation error: {e}")
        raise to_http_exception(e)


@app.post("/verify", tags=["Verification"])
async def verify_proof(body: VerifyBody):
    """
    Check a claimed synthetic-output commitment against the stored proof
    """
    try:
        result = service.verify(body.generation_id, body.claimed_commitment)
        return asdict(result)

    except SynthProofError as e:
        logger.error(f"Verification error: {e}")
        raise to_http_exception(e)


@app.post("/receipts/{generation_id}", tags=["Verification"])
async def export_receipt(generation_id: str):
    """
    Export the verifiable receipt of a generation
    """
    try:
        result = service.export(generation_id)
        return {
            "receipt": result.receipt.to_dict(),
            "export_tx_id": result.export_tx_id
        }

    except SynthProofError as e:
        logger.error(f"Export error: {e}")
        raise to_http_exception(e)


@app.get("/generations/{generation_id}/download", tags=["Generation"])
async def download_data(
    generation_id: str,
    format: Optional[str] = Query(None, pattern="^(csv|json)$")
):
    """
    Download a synthetic table

    Defaults to the output format chosen at generation time
    """
    try:
        generation = service.get_generation(generation_id)
        output_format = format or generation.output_format
        content = service.download(generation_id, output_format)

    except SynthProofError as e:
        logger.error(f"Download error: {e}")
        raise to_http_exception(e)

    media_type = "text/csv" if output_format == "csv" else "application/json"
    filename = f"{PathManager.clean_filename('synthetic_data_' + generation_id[:8])}.{output_format}"

    return StreamingResponse(
        io.BytesIO(content.encode()),
        media_type=media_type,
        headers={"Content-Disposition": f"attachment; filename={filename}"}
    )


@app.get("/presets", tags=["Configuration"])
async def list_presets():
    """
    List available configuration presets
    """
    loader = ConfigLoader()
    presets = loader.list_presets()

    return {
        "presets": presets,
        "count": len(presets)
    }


@app.get("/presets/{preset_name}", tags=["Configuration"])
async def get_preset(preset_name: str):
    """
    Get a configuration preset
    """
    try:
        loader = ConfigLoader()
        config = loader.load_preset(preset_name)

        return {
            "preset_name": preset_name,
            "config": config.to_dict()
        }

    except ValueError as e:
        raise HTTPException(status_code=404, detail=str(e))


# Run with: uvicorn api:app --reload
if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
