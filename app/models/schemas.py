from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.errors import QueryValidationError
from app.models.pipeline import AnswerQuery


# --- Requests ---


class HistoryMessage(BaseModel):
    role: str
    content: str


class RetrievalSettings(BaseModel):
    """Chunking and ranking knobs; checked only once the message is non-blank."""

    model_config = ConfigDict(populate_by_name=True)

    text_chunk_size: int = Field(default=800, alias="textChunkSize", gt=0)
    text_chunk_overlap: int = Field(default=200, alias="textChunkOverlap", ge=0)
    number_of_similarity_results: int = Field(
        default=2, alias="numberOfSimilarityResults", gt=0
    )
    number_of_pages_to_scan: int = Field(default=1, alias="numberOfPagesToScan", gt=0)

    @model_validator(mode="after")
    def _overlap_smaller_than_chunk(self) -> "RetrievalSettings":
        if self.text_chunk_overlap >= self.text_chunk_size:
            raise ValueError("textChunkOverlap must be smaller than textChunkSize")
        return self


class AnswerRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str = ""
    history: list[HistoryMessage] = Field(default_factory=list)
    return_sources: bool = Field(default=False, alias="returnSources")
    embed_sources_in_llm_response: bool = Field(
        default=False, alias="embedSourcesInLLMResponse"
    )
    text_chunk_size: int = Field(default=800, alias="textChunkSize")
    text_chunk_overlap: int = Field(default=200, alias="textChunkOverlap")
    number_of_similarity_results: int = Field(default=2, alias="numberOfSimilarityResults")
    number_of_pages_to_scan: int = Field(default=1, alias="numberOfPagesToScan")

    def to_query(self) -> AnswerQuery:
        """Build the pipeline query.

        Raises ``QueryValidationError`` for a blank message before the
        retrieval settings are checked, then ``pydantic.ValidationError``
        for out-of-range settings.
        """
        if not self.message.strip():
            raise QueryValidationError("Query message is empty")
        retrieval = RetrievalSettings.model_validate(
            self.model_dump(include=set(RetrievalSettings.model_fields), by_alias=True)
        )
        return AnswerQuery(
            message=self.message,
            history=[m.model_dump() for m in self.history],
            return_sources=self.return_sources,
            embed_sources_in_llm_response=self.embed_sources_in_llm_response,
            text_chunk_size=retrieval.text_chunk_size,
            text_chunk_overlap=retrieval.text_chunk_overlap,
            number_of_similarity_results=retrieval.number_of_similarity_results,
            number_of_pages_to_scan=retrieval.number_of_pages_to_scan,
        )


# --- Responses ---


class SourceItem(BaseModel):
    title: str
    link: str


class ImageItem(BaseModel):
    title: str
    link: str


class VideoItem(BaseModel):
    title: str
    imageUrl: str
    link: str


class AnswerResponse(BaseModel):
    answer: str
    sources: list[SourceItem] | None = None
    followUpQuestions: list[str] | None = None
    images: list[ImageItem] | None = None
    videos: list[VideoItem] | None = None
