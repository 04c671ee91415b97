"""Framework-agnostic handlers for the admin import endpoints.

``handle_post`` and ``handle_get`` return ``(status_code, payload)`` pairs so
any web layer can expose them as ``POST``/``GET`` routes. Successful payloads
carry ``message``; failures carry ``error``.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from .pipeline import ImportOrchestrator, ImportScheduler

logger = logging.getLogger(__name__)

Response = Tuple[int, Dict[str, Any]]


class ImportTriggers:
    """Dispatch admin import requests to the orchestrator and scheduler."""

    def __init__(self, orchestrator: ImportOrchestrator, scheduler: Optional[ImportScheduler] = None) -> None:
        self.orchestrator = orchestrator
        self.scheduler = scheduler

    async def handle_post(self, body: Optional[Dict[str, Any]] = None) -> Response:
        body = body or {}
        action = body.get("action")
        url = body.get("url")
        feed_name = body.get("feedName")

        try:
            if action in ("start_scheduler", "stop_scheduler", "get_stats", "trigger_manual"):
                return await self._scheduler_action(action)

            if action == "get_feed_counts":
                counts = await self.orchestrator.get_feed_post_counts()
                return 200, {"success": True, "message": f"Counts for {len(counts)} feeds", "counts": counts}

            if action == "clear_feed":
                if not feed_name:
                    return 400, {"error": "feedName is required for clear_feed"}
                cleared = await self.orchestrator.clear_feed_posts(feed_name)
                return 200, {
                    "success": True,
                    "message": f"Cleared {cleared} posts from {feed_name}",
                    "cleared": cleared,
                }

            if url and feed_name:
                result = await self.orchestrator.import_from_url(url, feed_name)
                if not result.success:
                    return 500, {
                        "error": f"Import failed: {', '.join(result.errors)}",
                        "result": result.model_dump(),
                    }
                return 200, {
                    "success": True,
                    "message": (
                        f"Successfully imported {result.imported} posts from {feed_name} "
                        "(saved as drafts for review)"
                    ),
                    "result": result.model_dump(),
                }

            summary = await self.orchestrator.run_all()
            return 200, {
                "success": True,
                "message": (
                    f"Successfully imported {summary.total_imported} posts from "
                    f"{summary.successful_feeds}/{summary.total_feeds} feeds (saved as drafts for review)"
                ),
                "summary": summary.model_dump(),
            }
        except Exception as e:
            logger.error("RSS import request failed: %s", e)
            return 500, {"error": "Failed to import RSS feeds", "details": str(e)}

    async def handle_get(self) -> Response:
        feeds = [
            {
                "name": feed.name,
                "url": feed.url,
                "enabled": feed.enabled,
                "maxItems": feed.max_items,
                "keywords": list(feed.keywords),
                "excludeKeywords": list(feed.exclude_keywords),
            }
            for feed in self.orchestrator.get_feeds()
        ]
        payload: Dict[str, Any] = {"message": f"{len(feeds)} feeds configured", "feeds": feeds}
        if self.scheduler is not None:
            payload["scheduler"] = {
                "isRunning": self.scheduler.is_scheduler_running(),
                "stats": self.scheduler.get_stats().model_dump(mode="json"),
            }
        return 200, payload

    async def _scheduler_action(self, action: str) -> Response:
        if self.scheduler is None:
            return 500, {"error": "Scheduler is not configured"}

        if action == "start_scheduler":
            self.scheduler.start()
            return 200, {
                "success": True,
                "message": "RSS scheduler started",
                "isRunning": self.scheduler.is_scheduler_running(),
            }

        if action == "stop_scheduler":
            self.scheduler.stop()
            return 200, {
                "success": True,
                "message": "RSS scheduler stopped",
                "isRunning": self.scheduler.is_scheduler_running(),
            }

        if action == "get_stats":
            return 200, {
                "success": True,
                "message": "Scheduler statistics",
                "stats": self.scheduler.get_stats().model_dump(mode="json"),
                "isRunning": self.scheduler.is_scheduler_running(),
            }

        summary = await self.scheduler.trigger_import()
        if summary is None:
            return 500, {"error": "Manual import did not complete (already running or failed)"}
        return 200, {
            "success": True,
            "message": f"Manual import completed: {summary.total_imported} posts imported",
            "summary": summary.model_dump(),
        }
