import asyncio

import uvicorn

from countdown.api.app import create_app
from countdown.configs.env_config import Env
from countdown.scheduler.service import CountdownService
from countdown.utils.logger_factory import EnhancedLoggerFactory, log_exception


async def serve():
    app_logger = EnhancedLoggerFactory.create_application_logger(
        name="countdown", enable_stdout=True
    )
    await app_logger.start()
    service = CountdownService(logger=app_logger, seed_file=Env.SEED_FILE)
    server = uvicorn.Server(uvicorn.Config(create_app(service), host=Env.HOST, port=Env.PORT))

    try:
        app_logger.info(f"Server starting on http://{Env.HOST}:{Env.PORT}")
        await server.serve()
    except Exception as e:
        log_exception(app_logger, e, context="bootstrap")
        raise
    finally:
        if app_logger.is_running():
            await app_logger.shutdown()


def main():
    asyncio.run(serve())


if __name__ == "__main__":
    main()
