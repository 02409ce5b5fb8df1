"""TF-IDF term weights and cosine similarity between plain-text documents."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Iterable, Mapping, Sequence

import numpy as np
from sklearn.feature_extraction.text import CountVectorizer, TfidfTransformer
from sklearn.metrics.pairwise import cosine_similarity

logger = logging.getLogger(__name__)

_CURLY_QUOTES_RE = re.compile(r"[‘’]")
_NON_WORD_RE = re.compile(r"[^a-z'áéíóúñü0-9\s]", re.IGNORECASE)
_WHITESPACE_RE = re.compile(r"\s+")


@dataclass(frozen=True)
class Document:
    name: str
    content: str


@dataclass(frozen=True)
class TermWeight:
    index: int  # 1-based position of the term's first occurrence in the document
    term: str
    tf: float
    idf: float
    tfidf: float


@dataclass(frozen=True)
class DocumentTerms:
    name: str
    terms: tuple[TermWeight, ...]


@dataclass(frozen=True)
class DocumentAnalysis:
    documents: list[DocumentTerms]
    similarity_matrix: np.ndarray
    term_set: list[str]
    term_sets_per_doc: list[list[str]]

    def to_dict(self) -> dict:
        return {
            "documents": [
                {"name": d.name, "terms": [t.__dict__ for t in d.terms]} for d in self.documents
            ],
            "similarityMatrix": self.similarity_matrix.tolist(),
            "termSet": list(self.term_set),
            "termSetsPerDoc": [list(ts) for ts in self.term_sets_per_doc],
        }


def _normalize_quotes(text: str) -> str:
    return _CURLY_QUOTES_RE.sub("'", text)


def tokenize(
    text: str,
    stopwords: Iterable[str] = (),
    lemmatizer: Mapping[str, str] | None = None,
) -> list[str]:
    """Lowercase, strip punctuation, lemmatize, then drop stop-words (in that order)."""
    stop = {_normalize_quotes(str(w)).lower() for w in stopwords}
    lemmatizer = lemmatizer or {}

    tokens: list[str] = []
    for word in _WHITESPACE_RE.split(("" if text is None else str(text)).lower()):
        word = _NON_WORD_RE.sub("", _normalize_quotes(word)).strip()
        if not word:
            continue
        lemma = lemmatizer.get(word)
        if lemma:
            word = str(lemma).lower()
        if word in stop:
            continue
        tokens.append(word)
    return tokens


def analyze_documents(
    documents: Sequence[Document],
    stopwords: Iterable[str] = (),
    lemmatizer: Mapping[str, str] | None = None,
) -> DocumentAnalysis:
    """TF-IDF per document and the pairwise cosine similarity between documents.

    TF is the term count divided by the document's token count. IDF uses the
    smoothed form ln((N + 1) / (df + 1)) + 1. The similarity diagonal is 1.
    """
    if not documents:
        raise ValueError("At least one document is required")

    stopwords = list(stopwords)
    tokenized = [tokenize(d.content, stopwords, lemmatizer) for d in documents]
    n_docs = len(documents)

    # Vocabulary in first-appearance order, across and within documents.
    term_set = list(dict.fromkeys(t for tokens in tokenized for t in tokens))
    term_sets_per_doc = [list(dict.fromkeys(tokens)) for tokens in tokenized]

    if not term_set:
        logger.info("Document analysis: %d documents, empty vocabulary", n_docs)
        return DocumentAnalysis(
            documents=[DocumentTerms(name=d.name, terms=()) for d in documents],
            similarity_matrix=np.eye(n_docs, dtype=np.float64),
            term_set=[],
            term_sets_per_doc=term_sets_per_doc,
        )

    vocabulary = {t: i for i, t in enumerate(term_set)}
    vectorizer = CountVectorizer(analyzer=lambda tokens: tokens, vocabulary=vocabulary)
    counts = vectorizer.transform(tokenized)

    totals = np.asarray(counts.sum(axis=1), dtype=np.float64).reshape(-1, 1)
    totals[totals == 0.0] = 1.0
    tf = counts.toarray().astype(np.float64) / totals

    idf = TfidfTransformer(smooth_idf=True).fit(counts).idf_.astype(np.float64)
    tfidf = tf * idf

    sim = cosine_similarity(tfidf)
    np.fill_diagonal(sim, 1.0)

    out_docs: list[DocumentTerms] = []
    for i, doc in enumerate(documents):
        first_pos: dict[str, int] = {}
        for pos, tok in enumerate(tokenized[i], start=1):
            first_pos.setdefault(tok, pos)

        rows = []
        for term in term_sets_per_doc[i]:
            j = vocabulary[term]
            if tf[i, j] > 0:
                rows.append(
                    TermWeight(
                        index=first_pos.get(term, -1),
                        term=term,
                        tf=float(tf[i, j]),
                        idf=float(idf[j]),
                        tfidf=float(tfidf[i, j]),
                    )
                )
        out_docs.append(DocumentTerms(name=doc.name, terms=tuple(rows)))

    logger.info("Document analysis: %d documents, vocabulary=%d", n_docs, len(term_set))
    return DocumentAnalysis(
        documents=out_docs,
        similarity_matrix=sim,
        term_set=term_set,
        term_sets_per_doc=term_sets_per_doc,
    )
