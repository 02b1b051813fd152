"""Search index domain models."""

from typing import Annotated

import numpy as np
from numpy.typing import NDArray
from pydantic import BaseModel, BeforeValidator, PlainSerializer


class SearchResult(BaseModel):
    """A ranked hit returned by the search index.

    Attributes:
        id: ID of the matching document
        content: Stored text of the document
        score: Relevance figure, higher is more relevant
        metadata: String metadata stored with the document
    """

    id: str
    content: str
    score: float
    metadata: dict[str, str] = {}


def nd_array_before_validator(x: list[float]) -> NDArray[np.float32]:
    return np.array(x, dtype=np.float32)


def nd_array_serializer(x: NDArray[np.float32]) -> list[float]:
    return x.tolist()  # type: ignore


NumPyArray = Annotated[
    np.ndarray,
    BeforeValidator(nd_array_before_validator),
    PlainSerializer(nd_array_serializer, return_type=list),
]


class IndexedDocument(BaseModel):
    """A document as held by the local search index."""

    id: str
    content: str
    metadata: dict[str, str] = {}
    vector: NumPyArray

    model_config = {"arbitrary_types_allowed": True}
