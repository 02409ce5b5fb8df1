"""FastAPI service entrypoint for the collaborative-filtering engine."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException

from ..config import AppConfig, load_config
from ..data import parse_utility_text
from ..documents.analyzer import Document, analyze_documents
from ..user_cf.predict import normalize_formula
from ..user_cf.recommender import UserUserCFRecommender
from ..utils import setup_logging
from .schemas import (
    AnalyzeDocumentsRequest,
    AnalyzeDocumentsResponse,
    PredictRequest,
    PredictResponse,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging(os.getenv("LOG_LEVEL", "INFO"))

    config = load_config()
    logger.info("Starting service with config=%s", config.config_path)
    app.state.config = config
    app.state.user_cf = UserUserCFRecommender(config.recommender)
    yield


app = FastAPI(title="Neighbourhood Collaborative Filtering Service", lifespan=lifespan)


def _config(app_: FastAPI) -> AppConfig:
    config = getattr(app_.state, "config", None)
    if config is None:
        raise HTTPException(status_code=503, detail="Service config not loaded")
    return config


def _user_cf(app_: FastAPI) -> UserUserCFRecommender:
    rec = getattr(app_.state, "user_cf", None)
    if rec is None:
        raise HTTPException(status_code=503, detail="UserCF recommender not initialized")
    return rec


@app.get("/")
def health() -> dict:
    return {"status": "ok", "service": "user_cf"}


@app.post("/api/predict", response_model=PredictResponse)
def predict(req: PredictRequest) -> dict:
    """Parse a utility file, complete the matrix and rank unseen items per user."""
    rec = _user_cf(app)
    try:
        utility = parse_utility_text(req.rawText)
    except ValueError as exc:
        logger.warning("Rejected utility file: %s", exc)
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    metric = req.metric or rec.config.metric
    k = int(req.k) if req.k is not None else int(rec.config.k)
    formula = normalize_formula(req.predictionType or rec.config.formula)
    policy = req.neighborPolicy or rec.config.neighbor_policy

    try:
        result = rec.run(
            utility.matrix,
            min_rating=utility.min_rating,
            max_rating=utility.max_rating,
            metric=metric,
            k=k,
            formula=formula,
            neighbor_policy=policy,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc

    payload = result.to_dict()
    payload.update(
        {
            "minRating": utility.min_rating,
            "maxRating": utility.max_rating,
            "metric": metric,
            "k": k,
            "predictionType": formula,
            "neighborPolicy": policy,
        }
    )
    return payload


@app.post("/api/documents/analyze", response_model=AnalyzeDocumentsResponse)
def analyze(req: AnalyzeDocumentsRequest) -> dict:
    """TF-IDF term table per document and the cosine similarity matrix between them."""
    docs_cfg = _config(app).documents
    stopwords = req.stopwords if req.stopwords is not None else list(docs_cfg.stopwords)
    lemmatizer = req.lemmatizer if req.lemmatizer is not None else dict(docs_cfg.lemmatizer)

    try:
        analysis = analyze_documents(
            [Document(name=d.name, content=d.content) for d in req.documents],
            stopwords=stopwords,
            lemmatizer=lemmatizer,
        )
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return analysis.to_dict()
