#!/usr/bin/env python3
"""
Dispatch Service: traffic-camera incident detection and hospital notification.

Generates simulated incidents and exposes them via a REST API (for the
dashboard to poll) plus a server-sent event stream of toast alerts.

All state is in memory and lost on restart.
"""

import asyncio
import json
import logging
import sys
from datetime import datetime
from typing import Callable, Optional

from aiohttp import web

from .alerts import AlertFeed
from .config import Settings
from .dashboard import DashboardSummary, pending_for_notification, summarize
from .dispatcher import DispatchOutcome, DispatchResult, NotificationDispatcher, first_pending
from .generator import IncidentGenerator, Sampler
from .hospitals import HospitalDirectory
from .locations import seed_cameras
from .store import IncidentStore

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


class DispatchService:
    """Owns the incident store and wires generator, dispatcher and metrics to it."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        sampler: Optional[Sampler] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.settings = settings or Settings()
        self.store = IncidentStore(self.settings.store_capacity)
        self.directory = HospitalDirectory()
        self.cameras = seed_cameras(clock())
        self.feed = AlertFeed()
        self.generator = IncidentGenerator(
            self.store,
            self.feed,
            interval=self.settings.incident_interval,
            probability=self.settings.incident_probability,
            camera_count=self.settings.camera_count,
            sampler=sampler,
            clock=clock,
        )
        self.generator.paused = self.settings.start_paused
        self.dispatcher = NotificationDispatcher(
            self.store, self.directory, self.feed, strict=self.settings.strict_transitions
        )
        self.summary: DashboardSummary = self.dashboard()
        self.store.on_change(self._publish_state)

    def _publish_state(self, store: IncidentStore):
        """Recompute dashboard metrics after every store mutation."""
        self.summary = self.dashboard()
        logger.debug(
            "State: %d active, %d notifications, %s",
            self.summary.active_incidents,
            self.summary.total_notifications,
            self.summary.counts_by_status,
        )

    def dashboard(self) -> DashboardSummary:
        return summarize(
            self.store, self.settings.pending_limit, self.cameras, self.settings.camera_count
        )

    def get_all_incidents(self) -> list[dict]:
        """Return all incidents, newest first."""
        return [inc.to_dict() for inc in self.store.all()]

    def get_pending_incidents(self) -> list[dict]:
        return [inc.to_dict() for inc in pending_for_notification(self.store, self.settings.pending_limit)]

    def notify(self, hospital_id: str, incident_id: Optional[str] = None) -> DispatchResult:
        """Notify a hospital. Without an incident id, the first pending incident is used."""
        if incident_id is None:
            hospital = self.directory.get(hospital_id)
            if hospital is None:
                logger.warning("Notify ignored: unknown hospital %s", hospital_id)
                return DispatchResult(DispatchOutcome.HOSPITAL_NOT_FOUND)
            target = first_pending(self.store, self.settings.pending_limit)
            if target is None:
                logger.warning("Notify %s: no pending incidents", hospital_id)
                return DispatchResult(DispatchOutcome.INCIDENT_NOT_FOUND, hospital=hospital)
            incident_id = target.id
        return self.dispatcher.dispatch(hospital_id, incident_id)

    def respond(self, incident_id: str) -> DispatchResult:
        return self.dispatcher.record_response(incident_id)

    def pause(self):
        self.generator.pause()

    def resume(self):
        self.generator.resume()

    def trigger_incident(self) -> dict:
        """Manually trigger a new incident (bypasses pause state and timer)."""
        return self.generator.trigger().to_dict()

    def clear_incidents(self):
        self.store.clear()
        logger.info("CLEARED: all incidents removed")

    def get_status(self) -> dict:
        return {
            "paused": self.generator.paused,
            "running": self.generator.running,
            "interval": self.generator.interval,
            "probability": self.generator.probability,
            "capacity": self.store.capacity,
            "strict_transitions": self.dispatcher.strict,
            "total_incidents": len(self.store),
            "active_incidents": self.summary.active_incidents,
        }

    def start(self):
        self.generator.start()

    async def stop(self):
        await self.generator.stop()


# --- REST API (aiohttp) ---

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}

OUTCOME_STATUS = {
    DispatchOutcome.SENT: 200,
    DispatchOutcome.RESPONDED: 200,
    DispatchOutcome.HOSPITAL_NOT_FOUND: 404,
    DispatchOutcome.INCIDENT_NOT_FOUND: 404,
    DispatchOutcome.INVALID_TRANSITION: 409,
}


def create_api(dispatch: DispatchService, run_generator: bool = True) -> web.Application:
    """Create the REST API for the dispatch service."""

    def cors_response(data, status=200):
        resp = web.json_response(data, status=status)
        resp.headers.update(CORS_HEADERS)
        return resp

    def result_response(result: DispatchResult):
        return cors_response(result.to_dict(), status=OUTCOME_STATUS[result.outcome])

    async def get_incidents(request):
        return cors_response(dispatch.get_all_incidents())

    async def get_pending_incidents(request):
        return cors_response(dispatch.get_pending_incidents())

    async def respond_incident(request):
        return result_response(dispatch.respond(request.match_info["id"]))

    async def get_hospitals(request):
        return cors_response([h.to_dict() for h in dispatch.directory.list()])

    async def notify_hospital(request):
        incident_id = None
        if request.can_read_body:
            try:
                data = await request.json()
            except ValueError:
                # bad JSON or bytes that are not UTF-8
                return cors_response({"ok": False, "error": "invalid JSON body"}, status=400)
            if not isinstance(data, dict):
                return cors_response({"ok": False, "error": "body must be an object"}, status=400)
            incident_id = data.get("incident_id")
        return result_response(dispatch.notify(request.match_info["id"], incident_id))

    async def get_cameras(request):
        return cors_response([c.to_dict() for c in dispatch.cameras])

    async def get_dashboard(request):
        return cors_response(dispatch.dashboard().to_dict())

    async def get_alerts(request):
        try:
            limit = int(request.query.get("limit", "50"))
        except ValueError:
            return cors_response({"ok": False, "error": "limit must be an integer"}, status=400)
        return cors_response([a.to_dict() for a in dispatch.feed.recent(limit)])

    async def stream_alerts(request):
        """Server-Sent Events endpoint streaming alerts as JSON."""
        resp = web.StreamResponse(headers={
            "Content-Type": "text/event-stream",
            "Cache-Control": "no-cache",
            **CORS_HEADERS,
        })
        alerts = dispatch.feed.subscribe()
        try:
            await resp.prepare(request)
            async for alert in alerts:
                await resp.write(f"data: {json.dumps(alert.to_dict())}\n\n".encode("utf-8"))
        except ConnectionResetError:
            logger.debug("Alert stream client disconnected")
        finally:
            await alerts.aclose()
        return resp

    async def get_status(request):
        return cors_response(dispatch.get_status())

    async def pause_dispatch(request):
        dispatch.pause()
        return cors_response(dispatch.get_status())

    async def resume_dispatch(request):
        dispatch.resume()
        return cors_response(dispatch.get_status())

    async def clear_incidents(request):
        dispatch.clear_incidents()
        return cors_response(dispatch.get_status())

    async def trigger_incident(request):
        return cors_response(dispatch.trigger_incident())

    async def handle_options(request):
        return cors_response({})

    async def close_streams(app):
        dispatch.feed.close()

    async def generator_ctx(app):
        dispatch.start()
        yield
        await dispatch.stop()

    app = web.Application()
    app.on_shutdown.append(close_streams)
    if run_generator:
        app.cleanup_ctx.append(generator_ctx)
    app.router.add_get("/api/incidents", get_incidents)
    app.router.add_get("/api/incidents/pending", get_pending_incidents)
    app.router.add_post("/api/incidents/{id}/respond", respond_incident)
    app.router.add_get("/api/hospitals", get_hospitals)
    app.router.add_post("/api/hospitals/{id}/notify", notify_hospital)
    app.router.add_get("/api/cameras", get_cameras)
    app.router.add_get("/api/dashboard", get_dashboard)
    app.router.add_get("/api/alerts", get_alerts)
    app.router.add_get("/api/alerts/stream", stream_alerts)
    app.router.add_get("/api/dispatch/status", get_status)
    app.router.add_post("/api/dispatch/pause", pause_dispatch)
    app.router.add_post("/api/dispatch/resume", resume_dispatch)
    app.router.add_post("/api/dispatch/clear", clear_incidents)
    app.router.add_post("/api/dispatch/trigger", trigger_incident)
    for path in (
        "/api/incidents/{id}/respond",
        "/api/hospitals/{id}/notify",
        "/api/dispatch/pause",
        "/api/dispatch/resume",
        "/api/dispatch/clear",
        "/api/dispatch/trigger",
    ):
        app.router.add_options(path, handle_options)
    return app


async def main():
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format=LOG_FORMAT,
        handlers=[logging.StreamHandler(sys.stdout)],
    )
    dispatch = DispatchService(settings)

    app = create_api(dispatch)
    runner = web.AppRunner(app)
    await runner.setup()
    site = web.TCPSite(runner, settings.api_host, settings.api_port)
    await site.start()
    logger.info("REST API running on %s:%d", settings.api_host, settings.api_port)
    if settings.start_paused:
        logger.info("Starting PAUSED: POST /api/dispatch/resume to generate incidents")

    try:
        await asyncio.Event().wait()
    finally:
        await runner.cleanup()


def run():
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Stopped.")


if __name__ == "__main__":
    run()
