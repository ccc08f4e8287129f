# pairup/routers/analysis.py
import logging
from functools import lru_cache

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile, status

from pairup.core.config import get_settings
from pairup.core.exceptions import (
    AnalysisConfigurationError,
    AnalysisParseError,
    AnalysisServiceError,
    AnalysisTimeoutError,
)
from pairup.core.gemini_client import PairingAnalyzer
from pairup.schemas.analysis import AnalysisResponse

logger = logging.getLogger(__name__)
settings = get_settings()

router = APIRouter(prefix="/analyze-pairing", tags=["Analysis"])


@lru_cache
def get_analyzer() -> PairingAnalyzer:
    return PairingAnalyzer(api_key=settings.GEMINI_API_KEY, model_name=settings.GEMINI_MODEL)


@router.post("", response_model=AnalysisResponse)
async def analyze_pairing(
    image: UploadFile | None = File(None),
    analyzer: PairingAnalyzer = Depends(get_analyzer),
):
    """
    Annotate a pairing photo with Gemini.

    The result only pre-fills the pairing form; failures here never block
    submission.

    Errors:
      - 400 no image
      - 500 API key not configured / unparseable model output
      - 502 Gemini request failed
      - 504 analysis timed out
    """
    if not analyzer.configured:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Gemini API key not configured. Set GEMINI_API_KEY in .env",
        )

    if image is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image is required",
        )

    data = await image.read()
    if not data:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Image is required",
        )

    try:
        analysis = await analyzer.analyze(
            data,
            image.content_type or "image/jpeg",
            timeout=settings.ANALYSIS_TIMEOUT_SECONDS,
        )
    except AnalysisConfigurationError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except AnalysisTimeoutError as e:
        raise HTTPException(status_code=status.HTTP_504_GATEWAY_TIMEOUT, detail=str(e))
    except AnalysisParseError as e:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(e))
    except AnalysisServiceError as e:
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(e))

    return AnalysisResponse(analysis=analysis)
