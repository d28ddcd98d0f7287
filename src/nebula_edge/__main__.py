import asyncio

from dotenv import load_dotenv
from loguru import logger

from nebula_edge.app_config import load_json_config, parse_app_config, resolve_runtime_env
from nebula_edge.bootstrap import bootstrap_runtime


async def main() -> None:
    load_dotenv()

    app = parse_app_config(load_json_config())
    runtime = bootstrap_runtime(app, resolve_runtime_env())

    logger.info(f"Starting nebula-edge: model={runtime.client.model}, endpoint={runtime.client.endpoint}")
    print("nebula-edge")
    print(f"Model: {runtime.client.model}")
    if app.request_timeout_seconds is not None:
        print(f"Request timeout: {app.request_timeout_seconds:g}s")
    if runtime.log_descriptions:
        print(f"Logging: {', '.join(runtime.log_descriptions)}")

    await runtime.app.run()
    logger.info(f"Session ended with {len(runtime.store.turns)} turn(s)")


def cli() -> None:
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print()


if __name__ == "__main__":
    cli()
