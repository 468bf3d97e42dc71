import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from pydantic import ValidationError
from pymongo import DESCENDING, ReturnDocument
from pymongo.collection import Collection

from app.core.exceptions import IntegrationError, InvalidInput
from app.db.database import get_journal_collection
from app.models.common import paginate
from app.models.integration import AgentHealth, IntegrationTestResult
from app.models.journal import (
    AIAnalysisStatus,
    AnalysisPreview,
    AnalysisResult,
    AnalysisStats,
    AnalyzedJournalListResponse,
    AnalyzeEntryResponse,
    AnalyzeJournalRequest,
    JournalEntryResponse,
    JournalListResponse,
    NewEntryRequest,
    ProcessEntryRequest,
    ProcessEntryResponse,
    Sentiment,
    UpdateEntryRequest,
)
from app.routers.auth_dependency import get_current_user_id
from app.routers.query_utils import PageParams, count_by, new_document, to_object_id, utcnow
from app.services.dependencies import get_integration_agent
from app.services.integration_agent import IntegrationAgent

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "Journal entry not found"

router = APIRouter(
    prefix="/api/journal",
    tags=["Journal"],
    dependencies=[Depends(get_current_user_id)]
)


async def analyze_content(agent: IntegrationAgent, content: str) -> AnalysisResult:
    """Run the agent and map its answer onto the stored analysis shape.

    Raises IntegrationError from the agent, or pydantic.ValidationError when
    the answer does not fit the stored field limits.
    """
    processed = await agent.process_journal_entry(content)
    return AnalysisResult.from_processed(processed)


def describe_failure(error: Exception) -> str:
    if isinstance(error, ValidationError):
        fields = ", ".join(".".join(str(p) for p in e["loc"]) for e in error.errors())
        return f"Analysis does not fit the stored format: {fields}"
    return str(error)


@router.get("", response_model=JournalListResponse)
async def list_entries(
    date: Optional[str] = Query(None, description="YYYY-MM-DD"),
    paging: PageParams = Depends(),
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
):
    logger.info("GET /api/journal userId=%s date=%s page=%d limit=%d",
                user_id, date, paging.page, paging.limit)
    query = {"userId": user_id}
    if date:
        query["date"] = date

    cursor = (
        collection.find(query)
        .sort("createdAt", DESCENDING)
        .skip(paging.skip)
        .limit(paging.limit)
    )
    total = collection.count_documents(query)
    return JournalListResponse(
        entries=list(cursor), pagination=paginate(paging.page, paging.limit, total)
    )


@router.get("/analyzed", response_model=AnalyzedJournalListResponse)
async def list_analyzed_entries(
    sentiment: Optional[Sentiment] = Query(None),
    min_score: Optional[float] = Query(None, alias="minScore"),
    max_score: Optional[float] = Query(None, alias="maxScore"),
    has_issues: Optional[bool] = Query(None, alias="hasIssues"),
    date: Optional[str] = Query(None),
    paging: PageParams = Depends(),
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
):
    analyzed = {"userId": user_id, "aiAnalysis": {"$exists": True, "$ne": None}}
    query = dict(analyzed)

    if sentiment:
        query["aiAnalysis.sentiment"] = sentiment

    score_range = {}
    if min_score is not None:
        score_range["$gte"] = min_score
    if max_score is not None:
        score_range["$lte"] = max_score
    if score_range:
        query["aiAnalysis.overallScore"] = score_range

    if has_issues is True:
        query["aiAnalysis.wrongdoingsAndSolutions.0"] = {"$exists": True}
    elif has_issues is False:
        query["aiAnalysis.wrongdoingsAndSolutions"] = {"$size": 0}

    if date:
        query["date"] = date

    cursor = (
        collection.find(query)
        .sort("createdAt", DESCENDING)
        .skip(paging.skip)
        .limit(paging.limit)
    )
    entries = list(cursor)
    total = collection.count_documents(query)

    # Stats cover every analyzed entry of the user, not only this page
    stats = analysis_stats(collection, analyzed)

    return AnalyzedJournalListResponse(
        entries=entries,
        pagination=paginate(paging.page, paging.limit, total),
        analysis_stats=stats,
    )


@router.get("/ai-status", response_model=AgentHealth)
async def get_ai_status(agent: IntegrationAgent = Depends(get_integration_agent)):
    return await agent.health_check()


@router.post("/test-integration", response_model=IntegrationTestResult)
async def run_integration_test(agent: IntegrationAgent = Depends(get_integration_agent)):
    return await agent.test_integration()


@router.post("", response_model=JournalEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry(
    request: NewEntryRequest,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
):
    document = new_document(user_id, "journal", {
        "content": request.content,
        "date": request.date,
        "tags": request.tags,
        "mood": request.mood,
    })
    result = collection.insert_one(document)
    logger.info("Journal entry created _id=%s userId=%s date=%s",
                result.inserted_id, user_id, request.date)
    return collection.find_one({"_id": result.inserted_id})


@router.post("/process", response_model=ProcessEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_entry_with_analysis(
    request: ProcessEntryRequest,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
    agent: IntegrationAgent = Depends(get_integration_agent),
):
    content = request.content.strip()
    if not content:
        raise HTTPException(status_code=400, detail="Content must be a non-empty string")

    ai_analysis = None
    processing_error = None

    if request.analyze_with_ai:
        logger.info("Sending journal entry to AI analysis userId=%s contentLength=%d",
                    user_id, len(content))
        try:
            ai_analysis = await analyze_content(agent, content)
            logger.info("AI analysis completed sentiment=%s score=%s",
                        ai_analysis.sentiment, ai_analysis.overall_score)
        except (IntegrationError, ValidationError) as e:
            # The entry is saved regardless; the user's text must not be lost
            processing_error = describe_failure(e)
            logger.error("AI analysis failed userId=%s: %s", user_id, processing_error)

    document = new_document(user_id, "journal", {
        "content": content,
        "date": request.date,
        "tags": request.tags,
        "mood": request.mood,
        "aiAnalysis": ai_analysis.model_dump(by_alias=True) if ai_analysis else None,
    })
    result = collection.insert_one(document)
    saved = collection.find_one({"_id": result.inserted_id})
    logger.info("Journal entry saved _id=%s hasAiAnalysis=%s", result.inserted_id, ai_analysis is not None)

    preview = None
    if ai_analysis:
        preview = AnalysisPreview(
            sentiment=ai_analysis.sentiment,
            overall_score=ai_analysis.overall_score,
            summary_points_count=len(ai_analysis.summary),
            issues_identified=len(ai_analysis.wrongdoings_and_solutions),
        )

    return ProcessEntryResponse(
        entry=saved,
        ai_analysis_status=AIAnalysisStatus(processed=ai_analysis is not None, error=processing_error),
        analysis_preview=preview,
    )


@router.get("/{entry_id}", response_model=JournalEntryResponse)
async def get_single_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
):
    entry = collection.find_one({"_id": to_object_id(entry_id), "userId": user_id})
    if entry:
        return entry
    raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)


@router.put("/{entry_id}", response_model=JournalEntryResponse)
async def update_entry(
    entry_id: str,
    request: UpdateEntryRequest,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
):
    object_id = to_object_id(entry_id)

    update_data = request.model_dump(exclude_none=True, by_alias=True)
    if not update_data.get("content"):
        update_data.pop("content", None)
    update_data["updatedAt"] = utcnow()

    updated_entry = collection.find_one_and_update(
        {"_id": object_id, "userId": user_id},
        {"$set": update_data},
        return_document=ReturnDocument.AFTER
    )

    if updated_entry:
        return updated_entry
    raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)


@router.delete("/{entry_id}")
async def delete_entry(
    entry_id: str,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
):
    result = collection.delete_one({"_id": to_object_id(entry_id), "userId": user_id})

    if result.deleted_count == 0:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)
    return {"message": "Journal entry deleted successfully"}


@router.post("/{entry_id}/analyze", response_model=AnalyzeEntryResponse)
async def analyze_existing_entry(
    entry_id: str,
    request: Optional[AnalyzeJournalRequest] = None,
    user_id: str = Depends(get_current_user_id),
    collection: Collection = Depends(get_journal_collection),
    agent: IntegrationAgent = Depends(get_integration_agent),
):
    entry_filter = {"_id": to_object_id(entry_id), "userId": user_id}
    entry = collection.find_one(entry_filter)
    if not entry:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)

    force_reanalysis = request.force_reanalysis if request else False
    if entry.get("aiAnalysis") and not force_reanalysis:
        return AnalyzeEntryResponse(
            message="Entry already analyzed", entry=entry, analysis=entry["aiAnalysis"]
        )

    try:
        ai_analysis = await analyze_content(agent, entry["content"])
    except InvalidInput as e:
        raise HTTPException(status_code=400, detail=e.message)
    except (IntegrationError, ValidationError) as e:
        message = describe_failure(e)
        logger.error("Analysis of entry %s failed: %s", entry_id, message)
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail=f"Failed to analyze journal entry: {message}",
        )

    updated_entry = collection.find_one_and_update(
        entry_filter,
        {"$set": {"aiAnalysis": ai_analysis.model_dump(by_alias=True), "updatedAt": utcnow()}},
        return_document=ReturnDocument.AFTER,
    )
    if not updated_entry:
        raise HTTPException(status_code=404, detail=NOT_FOUND_MESSAGE)

    logger.info("Analysis completed for entry %s sentiment=%s score=%s",
                entry_id, ai_analysis.sentiment, ai_analysis.overall_score)
    return AnalyzeEntryResponse(entry=updated_entry, analysis=ai_analysis)


def analysis_stats(collection: Collection, match: Dict[str, Any]) -> AnalysisStats:
    rows = list(collection.aggregate([
        {"$match": match},
        {"$group": {
            "_id": None,
            "averageScore": {"$avg": "$aiAnalysis.overallScore"},
            "totalIssues": {"$sum": {"$size": {"$ifNull": ["$aiAnalysis.wrongdoingsAndSolutions", []]}}},
            "totalAnalyzed": {"$sum": 1},
        }},
    ]))
    if not rows:
        return AnalysisStats()

    totals = rows[0]
    return AnalysisStats(
        average_score=round(totals["averageScore"] or 0, 2),
        sentiment_distribution=count_by(collection, match, "aiAnalysis.sentiment"),
        total_issues_identified=totals["totalIssues"],
        total_analyzed_entries=totals["totalAnalyzed"],
    )
