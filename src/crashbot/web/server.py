"""
CrashBot Web API

FastAPI server behind the crash log upload page and the staff issue list.
"""
import os
import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Optional

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware

from ..analysis import Classifier, build_classifier
from ..config import CrashbotConfig, config as default_config
from ..database import close_pool
from ..exceptions import ClassificationFailed, InvalidCrashLog, IssueNotFound, PersistenceError
from ..issues import IssueLedger, IssueStatus, create_store
from ..notifications import DiscordNotifier

logger = logging.getLogger(__name__)

SERVICE_NAME = "CrashBot API"
MAX_ISSUE_LIMIT = 500


async def _read_json(request: Request) -> dict:
    try:
        data = await request.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def create_app(classifier: Classifier, ledger: IssueLedger) -> FastAPI:
    """Build the API around the given classifier and ledger."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # Create tables before the first report; analysis works without them
        try:
            await ledger.store.ensure_schema()
        except PersistenceError as e:
            logger.warning(f"Issue store not ready, reports will fail until it is: {e}")
        yield
        # Release database connections
        await close_pool()

    app = FastAPI(title="CrashBot", description="FiveM crash log analysis", lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type"],
    )

    @app.get("/api/health")
    async def health():
        """Health check endpoint."""
        return {"status": "ok", "service": SERVICE_NAME, "timestamp": datetime.now(timezone.utc).isoformat()}

    @app.post("/api/analyze")
    async def analyze(request: Request):
        """Analyze an uploaded crash log and record resource issues."""
        data = await _read_json(request)

        try:
            result = await classifier.classify(data.get("crashLog"))
        except InvalidCrashLog:
            return JSONResponse(
                {"success": False, "error": "No crash log provided"},
                status_code=400,
            )
        except ClassificationFailed as e:
            logger.error(f"Error analyzing crash log: {e}")
            return JSONResponse(
                {"success": False, "error": "Failed to analyze crash log", "message": str(e)},
                status_code=500,
            )

        body = {"success": True, "analysis": result.to_dict(), "reported": False}

        if result.should_report:
            try:
                await ledger.record_classification(result)
                body["reported"] = True
            except PersistenceError as e:
                logger.error(f"Error logging resource issue {result.resource_name}: {e}")
                body["warning"] = "The issue could not be logged for the development team."

        return body

    @app.get("/api/issues")
    async def list_issues(status: Optional[str] = None, limit: Optional[int] = None):
        """Known issues, most reported first."""
        try:
            status_filter = IssueStatus(status) if status else None
        except ValueError:
            raise HTTPException(status_code=400, detail=f"Unknown status: {status}")

        if limit is not None and not 1 <= limit <= MAX_ISSUE_LIMIT:
            raise HTTPException(status_code=400, detail=f"limit must be between 1 and {MAX_ISSUE_LIMIT}")

        try:
            issues = await ledger.list_issues(status=status_filter, limit=limit)
            pending = await ledger.pending_count()
        except PersistenceError as e:
            raise HTTPException(status_code=503, detail=str(e))

        return {"issues": [i.to_dict() for i in issues], "pending": pending}

    @app.get("/api/issues/prioritized")
    async def prioritized_issues():
        """Pending issues for the dev team, most reported first."""
        try:
            issues = await ledger.prioritized_issues()
        except PersistenceError as e:
            raise HTTPException(status_code=503, detail=str(e))
        return {"issues": [i.to_dict() for i in issues]}

    @app.post("/api/issues/{resource_name}/fix")
    async def mark_fixed(resource_name: str, request: Request):
        """Mark a resource issue as fixed."""
        data = await _read_json(request)
        fixed_by = data.get("fixedBy")
        if not isinstance(fixed_by, str) or not fixed_by.strip():
            raise HTTPException(status_code=400, detail="fixedBy is required")

        try:
            record = await ledger.mark_fixed(resource_name, fixed_by.strip())
        except IssueNotFound as e:
            raise HTTPException(status_code=404, detail=str(e))
        except PersistenceError as e:
            raise HTTPException(status_code=503, detail=str(e))

        return {"success": True, "issue": record.to_dict()}

    return app


def create_app_from_config(cfg: Optional[CrashbotConfig] = None) -> FastAPI:
    """Wire services from configuration."""
    cfg = cfg or default_config
    notifier = DiscordNotifier(cfg.discord_webhook_url)
    ledger = IssueLedger(create_store(cfg), notifier=notifier)
    return create_app(build_classifier(cfg), ledger)


# Application wired from the environment, for `uvicorn crashbot.web.server:app`
app = create_app_from_config()


def main():
    """Run the API server with uvicorn."""
    import uvicorn

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )
    port = int(os.environ.get("PORT", 3001))
    uvicorn.run(app, host="0.0.0.0", port=port)


if __name__ == "__main__":
    main()
