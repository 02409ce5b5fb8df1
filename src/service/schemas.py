"""Pydantic schemas for the collaborative-filtering HTTP API."""

from __future__ import annotations

from typing import Literal, Optional

from pydantic import BaseModel, Field


class PredictRequest(BaseModel):
    """Raw utility-file text plus engine options; omitted options use config defaults."""

    rawText: str = Field(..., min_length=1, description="Utility file: min, max, then rows with '-' for unknown.")
    metric: Optional[Literal["pearson", "cosine", "euclidean"]] = Field(None, description="Similarity metric.")
    k: Optional[int] = Field(None, ge=1, le=1000, description="Neighbourhood size.")
    predictionType: Optional[Literal["simple", "mean-diff", "mean-difference"]] = Field(
        None, description="Prediction formula."
    )
    neighborPolicy: Optional[Literal["fixed", "expand"]] = Field(
        None, description="'fixed' top-k pool per user, or 'expand' per-item top-k among raters."
    )


class NeighborItem(BaseModel):
    neighborIndex: int
    similarity: float


class NeighborUsedItem(NeighborItem):
    rating: float
    neighborMean: Optional[float] = None


class PredictionItem(BaseModel):
    user: int
    item: int
    neighborsUsed: list[NeighborUsedItem]
    rawPrediction: float
    finalPrediction: float
    formula: str


class RecommendedItem(BaseModel):
    item: int
    predicted: float


class UserRecommendationsItem(BaseModel):
    user: int
    recommendations: list[RecommendedItem]


class PredictResponse(BaseModel):
    completedMatrix: list[list[float]]
    simMatrix: list[list[float]]
    neighbors: list[list[NeighborItem]]
    predictions: list[PredictionItem]
    recommendations: list[UserRecommendationsItem]

    minRating: float
    maxRating: float
    metric: str
    k: int
    predictionType: str
    neighborPolicy: str


class DocumentIn(BaseModel):
    name: str = Field(..., description="Display name of the document.")
    content: str = Field("", description="Plain-text content.")


class AnalyzeDocumentsRequest(BaseModel):
    """Documents to compare; stopwords/lemmatizer fall back to config when omitted."""

    documents: list[DocumentIn]
    stopwords: Optional[list[str]] = None
    lemmatizer: Optional[dict[str, str]] = None


class TermItem(BaseModel):
    index: int
    term: str
    tf: float
    idf: float
    tfidf: float


class DocumentTermsItem(BaseModel):
    name: str
    terms: list[TermItem]


class AnalyzeDocumentsResponse(BaseModel):
    documents: list[DocumentTermsItem]
    similarityMatrix: list[list[float]]
    termSet: list[str]
    termSetsPerDoc: list[list[str]]
