from typing import Annotated, Dict, List, Literal, Optional, Union
from pydantic import Field
from datetime import datetime

from app.models.common import CamelModel, Pagination, PyObjectId, Tags
from app.models.integration import ProcessedJournal

Mood = Literal["very_happy", "happy", "neutral", "sad", "very_sad"]
Sentiment = Literal["Positive", "Negative", "Neutral"]
Score = Union[
    Annotated[int, Field(ge=0, le=10)],
    Annotated[float, Field(ge=0, le=10)],
]


# AI analysis attached to a journal entry
class WrongdoingSolution(CamelModel):
    wrongdoing: str = Field(min_length=1, max_length=200)
    solution: str = Field(min_length=1, max_length=300)


class LLMMetadata(CamelModel):
    provider: Optional[str] = None
    model: Optional[str] = None
    tokens_used: Optional[Union[int, float]] = None
    response_time: Optional[Union[int, float]] = None


class AnalysisResult(CamelModel):
    summary: List[str] = Field(max_length=5)
    sentiment: Sentiment
    sentiment_reasoning: str = Field(max_length=500)
    wrongdoings_and_solutions: List[WrongdoingSolution] = []
    overall_score: Score
    processed_at: datetime
    llm_metadata: LLMMetadata = LLMMetadata()

    @classmethod
    def from_processed(cls, processed: ProcessedJournal) -> "AnalysisResult":
        """Map the model's snake_case answer onto the persisted shape.

        Raises pydantic.ValidationError when the answer exceeds the stored
        field limits.
        """
        analysis = processed.analysis
        return cls(
            summary=analysis["summary"],
            sentiment=analysis["sentiment"],
            sentiment_reasoning=analysis["sentiment_reasoning"],
            wrongdoings_and_solutions=analysis["wrongdoings_and_solutions"],
            overall_score=analysis["overall_score"],
            processed_at=processed.processed_at,
            llm_metadata=LLMMetadata(
                provider=processed.metadata.llm_provider,
                model=processed.metadata.model,
                tokens_used=processed.metadata.tokens_used,
                response_time=processed.metadata.response_time,
            ),
        )


# Response models
class JournalEntryResponse(CamelModel):
    id: PyObjectId = Field(alias="_id")
    user_id: str
    content: str
    date: str
    tags: List[str] = []
    mood: Mood = "neutral"
    type: str = "journal"
    ai_analysis: Optional[AnalysisResult] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class JournalListResponse(CamelModel):
    entries: List[JournalEntryResponse]
    pagination: Pagination


# Request models (create)
class NewEntryRequest(CamelModel):
    content: str = Field(min_length=1)
    date: str = Field(min_length=1)
    tags: Tags = []
    mood: Mood = "neutral"


class ProcessEntryRequest(NewEntryRequest):
    analyze_with_ai: bool = Field(default=True, alias="analyzeWithAI")


# Request models (update)
class UpdateEntryRequest(CamelModel):
    content: Optional[str] = None
    tags: Optional[Tags] = None
    mood: Optional[Mood] = None


class AnalyzeJournalRequest(CamelModel):
    force_reanalysis: bool = False


class AIAnalysisStatus(CamelModel):
    processed: bool
    error: Optional[str] = None


class AnalysisPreview(CamelModel):
    sentiment: Sentiment
    overall_score: Union[int, float]
    summary_points_count: int
    issues_identified: int


class ProcessEntryResponse(CamelModel):
    success: bool = True
    entry: JournalEntryResponse
    ai_analysis_status: AIAnalysisStatus
    analysis_preview: Optional[AnalysisPreview] = None


class AnalyzeEntryResponse(CamelModel):
    success: bool = True
    message: Optional[str] = None
    entry: Optional[JournalEntryResponse] = None
    analysis: AnalysisResult


class AnalysisStats(CamelModel):
    average_score: float = 0
    sentiment_distribution: Dict[str, int] = {}
    total_issues_identified: int = 0
    total_analyzed_entries: int = 0


class AnalyzedJournalListResponse(JournalListResponse):
    analysis_stats: AnalysisStats
