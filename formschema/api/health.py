"""Health check reporting the form normalization setup."""

from pydantic import BaseModel

from formschema.core.logger import LogIcon, logger
from formschema.core.router import FORM_ENDPOINTS, Router
from formschema.core.settings import settings as st

router = Router(__file__, prefix="/")


class FormNormalizationStatus(BaseModel):
    enabled: bool
    max_depth: int
    endpoints: list[str]


class HealthResponse(BaseModel):
    """Service identity plus the form bodies it rewrites."""

    status: str
    service: str
    version: str
    forms: FormNormalizationStatus


def form_status() -> FormNormalizationStatus:
    """Current normalization settings and the endpoints taking model bodies."""
    return FormNormalizationStatus(
        enabled=st.FORM_NORMALIZATION,
        max_depth=st.NORMALIZER_MAX_DEPTH,
        endpoints=sorted(FORM_ENDPOINTS),
    )


@router.get("/health")
async def health_check() -> HealthResponse:
    forms = form_status()
    logger.info("Health check requested", icon=LogIcon.HEALTHCHECK, form_endpoints=len(forms.endpoints))
    return HealthResponse(status="healthy", service=st.API_NAME, version=st.API_VERSION, forms=forms)
