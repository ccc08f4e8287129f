# pairup/schemas/analysis.py
from pydantic import ConfigDict
from sqlmodel import SQLModel


class PairingAnalysis(SQLModel):
    """
    Structured annotation returned by the AI analysis.

    Used only to pre-fill the pairing form; every field stays editable.
    """

    model_config = ConfigDict(extra="forbid")

    food_name: str
    beverage_type: str
    flavor_principle: str
    review_text: str
    beverage_brand: str | None = None
    food_brand: str | None = None


class AnalysisResponse(SQLModel):
    success: bool = True
    analysis: PairingAnalysis
