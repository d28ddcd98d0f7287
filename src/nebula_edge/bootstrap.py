from __future__ import annotations

from dataclasses import dataclass

from nebula_edge.app_config import AppConfig, RuntimeEnv
from nebula_edge.chat_app import ChatApp
from nebula_edge.inference_client import InferenceClient
from nebula_edge.logging_config import setup_logging
from nebula_edge.session_store import SessionStore


@dataclass
class AppRuntime:
    app: ChatApp
    store: SessionStore
    client: InferenceClient
    log_descriptions: list[str]


def bootstrap_runtime(app: AppConfig, env: RuntimeEnv) -> AppRuntime:
    log_descriptions = setup_logging(level=app.log_level, consumers=app.log_consumers)

    client = InferenceClient(
        endpoint=app.endpoint,
        model=app.model,
        timeout_seconds=app.request_timeout_seconds,
        retry_attempts=app.retry_attempts,
    )
    store = SessionStore(client.complete)
    chat_app = ChatApp(
        store,
        user_name=app.user_name,
        prefill_credential=env.api_key,
    )

    return AppRuntime(
        app=chat_app,
        store=store,
        client=client,
        log_descriptions=log_descriptions,
    )
