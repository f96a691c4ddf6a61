"""
FastAPI server for the sitefocus API.

This server provides endpoints for:
1. Discovering candidate URLs of a domain
2. Analysing a single URL (embedding + topic)
3. Running audits as background jobs with progressive status
4. Writing the entity profile of a site
"""

from fastapi import FastAPI, HTTPException, BackgroundTasks
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel, Field
from typing import List, Optional, Dict, Any
import logging
from datetime import datetime
import uuid

from sitefocus.auditor.auditor import SiteAuditor
from sitefocus.auditor.orchestrator import AuditRun, BatchConfig
from sitefocus.coherence.models import CoherenceConfig

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title="SiteFocus API",
    description="API for auditing the semantic focus of websites",
    version="1.0.0"
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure appropriately for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Replaced in tests to inject fake collaborators
auditor_factory = SiteAuditor

# Pydantic models for request/response
class SearchResponse(BaseModel):
    success: bool
    urls: List[str]

class AnalyzeRequest(BaseModel):
    url: str

class AnalyzeResponse(BaseModel):
    success: bool
    url: str
    vector: List[float] = []
    topic: str = "General"
    summary: str = ""
    error: Optional[str] = None

class AuditRequest(BaseModel):
    domain: str
    urls: Optional[List[str]] = None
    max_urls: Optional[int] = Field(10, ge=1)
    batch_size: Optional[int] = Field(None, ge=1)
    delay: Optional[float] = Field(None, ge=0)
    threshold: Optional[float] = None
    percentile: Optional[float] = Field(None, gt=0, le=1)
    with_profile: bool = False

class AuditResponse(BaseModel):
    job_id: str
    status: str
    message: str

class JobStatus(BaseModel):
    job_id: str
    status: str
    progress: Optional[int] = None
    message: Optional[str] = None
    created_at: datetime
    completed_at: Optional[datetime] = None
    report: Optional[Dict[str, Any]] = None

class SummaryRequest(BaseModel):
    domain: str
    contents: List[str]

class SummaryResponse(BaseModel):
    success: bool
    summary: str

# In-memory job storage (audits are not persisted)
jobs: Dict[str, JobStatus] = {}
runs: Dict[str, AuditRun] = {}

@app.get("/")
async def root():
    """Health check endpoint."""
    return {"message": "SiteFocus API is running", "version": "1.0.0"}

@app.get("/api/search", response_model=SearchResponse)
async def search_urls(domain: str):
    """Discover candidate URLs for a domain (deduplicated)."""
    if not domain.strip():
        raise HTTPException(status_code=400, detail="Missing domain")
    async with auditor_factory() as auditor:
        urls = await auditor.discover(domain)
    return SearchResponse(success=True, urls=urls)

@app.post("/api/analyze", response_model=AnalyzeResponse)
async def analyze_url(request: AnalyzeRequest):
    """Analyse a single URL: scrape, embed and label its topic."""
    async with auditor_factory() as auditor:
        result = await auditor.analyzer.analyze(request.url)
    return AnalyzeResponse(
        success=result.success,
        url=result.url,
        vector=result.vector,
        topic=result.topic,
        summary=result.summary,
        error=result.error,
    )

@app.post("/api/audit", response_model=AuditResponse)
async def start_audit(request: AuditRequest, background_tasks: BackgroundTasks):
    """
    Start an audit job for the given domain.

    This endpoint:
    1. Creates a new audit job
    2. Starts the audit in the background
    3. Returns the job ID for status tracking
    """
    try:
        batch_defaults, coherence_defaults = BatchConfig(), CoherenceConfig()
        batch_config = BatchConfig(
            batch_size=request.batch_size or batch_defaults.batch_size,
            delay=batch_defaults.delay if request.delay is None else request.delay,
        )
        coherence_config = CoherenceConfig(
            similarity_threshold=coherence_defaults.similarity_threshold if request.threshold is None else request.threshold,
            focus_percentile=request.percentile or coherence_defaults.focus_percentile,
        )
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))

    job_id = str(uuid.uuid4())
    jobs[job_id] = JobStatus(
        job_id=job_id,
        status="started",
        message="Audit job created",
        created_at=datetime.now()
    )

    background_tasks.add_task(run_audit_job, job_id, request, batch_config, coherence_config)

    return AuditResponse(
        job_id=job_id,
        status="started",
        message="Audit job started successfully"
    )

@app.get("/api/audit/{job_id}/status", response_model=JobStatus)
async def get_audit_status(job_id: str):
    """Get the status of an audit job, including the latest partial report."""
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")

    return jobs[job_id]

@app.post("/api/audit/{job_id}/cancel", response_model=JobStatus)
async def cancel_audit(job_id: str):
    """Stop an audit at the next batch boundary."""
    if job_id not in jobs:
        raise HTTPException(status_code=404, detail="Job not found")
    if job_id in runs:
        runs[job_id].cancel()
        jobs[job_id].message = "Cancellation requested"
    return jobs[job_id]

@app.post("/api/summary", response_model=SummaryResponse)
async def write_summary(request: SummaryRequest):
    """Write the entity profile of a site from its page titles and H1s."""
    async with auditor_factory() as auditor:
        profile = await auditor.profiler.entity_profile(request.domain, request.contents)
    if not profile:
        raise HTTPException(status_code=502, detail="Could not generate the entity profile")
    return SummaryResponse(success=True, summary=profile)

async def run_audit_job(job_id: str, request: AuditRequest, batch_config: BatchConfig,
                        coherence_config: CoherenceConfig):
    """
    Background task to run the audit job.

    This function:
    1. Updates job status to running
    2. Discovers URLs unless they were given
    3. Runs the batch orchestrator, publishing partial metrics after each batch
    4. Updates job status to completed (or no_data / failed)
    """
    job = jobs[job_id]
    try:
        job.status = "running"
        job.message = "Discovering URLs..."
        logger.info(f"Starting audit for job {job_id}: {request.domain}")

        async with auditor_factory(batch_config=batch_config, coherence_config=coherence_config) as auditor:
            urls = request.urls if request.urls is not None else await auditor.discover(request.domain)
            run = auditor.new_run(request.domain, urls)
            runs[job_id] = run

            def on_progress(run, chunk, chunks):
                job.progress = int(100 * chunk / chunks)
                job.message = f"Batch {chunk}/{chunks}: {run.succeeded}/{run.attempted} URLs analysed"
                job.report = run.report.to_dict()

            report = await auditor.audit(request.domain, max_urls=request.max_urls, on_progress=on_progress,
                                         with_profile=request.with_profile, run=run)

        job.report = report.to_dict()
        job.progress = 100
        if report.has_data:
            job.status = "cancelled" if report.cancelled else "completed"
            job.message = f"Audit finished: {report.succeeded}/{report.attempted} URLs analysed"
        else:
            job.status = "no_data"
            job.message = report.summary
        logger.info(f"Job {job_id} finished with status {job.status}")

    except Exception as e:
        logger.error(f"Job {job_id} failed: {e}")
        job.status = "failed"
        job.message = f"Job failed: {str(e)}"
    finally:
        job.completed_at = datetime.now()
        runs.pop(job_id, None)

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
