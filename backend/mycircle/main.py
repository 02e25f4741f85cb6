"""FastAPI and Socket.IO application entrypoint.

Run with ``uvicorn mycircle.main:socket_app``; ``app`` alone serves REST only.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

import socketio
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mycircle import container
from mycircle.api import chat, contacts, notifications, ops, users
from mycircle.api.errors import install_error_handlers
from mycircle.infra import postgres
from mycircle.infra.scheduler import JobScheduler
from mycircle.obs import init as obs_init
from mycircle.obs import tracing
from mycircle.realtime.gateway import MessagingNamespace
from mycircle.realtime.rooms import SocketIORoomBroker, build_server
from mycircle.settings import settings
from mycircle.workers.request_expiry import JOB_NAME, RequestExpiryWorker


@asynccontextmanager
async def lifespan(app: FastAPI):
	pool = await postgres.init_pool()
	container.configure_postgres(pool)
	scheduler: JobScheduler | None = None
	if settings.contact_sweep_enabled:
		scheduler = JobScheduler()
		scheduler.start()
		scheduler.schedule_every(
			JOB_NAME,
			RequestExpiryWorker().run_once,
			seconds=settings.contact_sweep_interval_seconds,
		)
		app.state.scheduler = scheduler
	try:
		yield
	finally:
		if scheduler is not None:
			scheduler.shutdown()
		tracing.shutdown_tracing()
		await postgres.close_pool()


app = FastAPI(title="MyCircle Messaging", lifespan=lifespan)
install_error_handlers(app)

allow_origins = list(settings.cors_allow_origins)
if not allow_origins or "*" in allow_origins:
	# Starlette disallows wildcard '*' with allow_credentials=True.
	allow_origins = ["http://localhost:3000", "http://localhost:5173"] if settings.is_dev() else []

app.add_middleware(
	CORSMiddleware,
	allow_origins=allow_origins,
	allow_credentials=True,
	allow_methods=["*"],
	allow_headers=["*"],
)

sio = build_server(
	cors_allowed_origins=allow_origins,
	redis_backplane=settings.socket_redis_backplane,
)
container.configure(broker=SocketIORoomBroker(sio))
sio.register_namespace(MessagingNamespace())
socket_app = socketio.ASGIApp(sio, other_asgi_app=app)
obs_init(app)

app.include_router(contacts.router)
app.include_router(chat.router)
app.include_router(notifications.router)
app.include_router(users.router)
app.include_router(ops.router)
