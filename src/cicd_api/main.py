from textwrap import dedent
from typing import Optional

import pydantic
from fastapi import FastAPI
from fastapi.exceptions import RequestValidationError
from fastapi.routing import APIRoute
from loguru import logger

from cicd_api.db.pool import DomainDBPool
from cicd_api.db.repository_pipeline import PipelineRepository
from cicd_api.db.repository_user import UserRepository
from cicd_api.errors import ApiError
from cicd_api.errors import handle_api_errors
from cicd_api.errors import handle_broad_exceptions
from cicd_api.errors import handle_pydantic_validation_errors
from cicd_api.errors import handle_request_validation_errors
from cicd_api.errors import handle_scm_errors
from cicd_api.errors import ScmError
from cicd_api.monitoring.logger import configure_logger
from cicd_api.monitoring.request_context import RequestContextMiddleware
from cicd_api.routes.routes_health import ROUTER_HEALTH
from cicd_api.routes.routes_pipelines import ROUTER_PIPELINES
from cicd_api.scm.client import ScmClient
from cicd_api.settings import Settings

# Base path for all API routes
API_PREFIX = "/v4"


def create_app(
    settings: Settings | None = None,
    pipeline_store: Optional[PipelineRepository] = None,
    user_store: Optional[UserRepository] = None,
) -> FastAPI:
    """Create a FastAPI application.

    Configuration is loaded from environment variables (or a local .env file) via pydantic-settings.
    The pipeline and user stores are built on the configured PostgreSQL database unless they are
    passed in explicitly.
    """
    settings = settings or Settings()

    configure_logger(level=settings.log_level, serialize=settings.log_serialize)

    logger.info(
        "Configuration loaded successfully",
        database_configured=bool(settings.domain_db_connection_string),
        scm_contexts=sorted(settings.scm_contexts),
        jwt_audience_check=settings.jwt_audience is not None,
    )

    app = FastAPI(
        title="Pipelines API",
        version="v4",
        description=dedent(
            """
            CI/CD pipeline management API.

            All endpoints except `/v4/health` require a session token: `Authorization: Bearer <jwt>`.
            """
        ),
        generate_unique_id_function=custom_generate_unique_id,
    )
    app.state.settings = settings
    app.state.db_pool = None
    app.state.scm_client = None
    app.state.pipeline_store = pipeline_store
    app.state.user_store = user_store

    if pipeline_store is None and user_store is None and settings.domain_db_connection_string:
        db_pool = DomainDBPool(
            settings.domain_db_connection_string,
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
        )
        scm_client = ScmClient(settings.scm_contexts, timeout=settings.scm_request_timeout)

        app.state.db_pool = db_pool
        app.state.scm_client = scm_client
        app.state.pipeline_store = PipelineRepository(db_pool)
        app.state.user_store = UserRepository(db_pool, scm_client)

        @app.on_event("startup")
        async def startup_database():
            """Open the database pool and apply the schema."""
            await app.state.db_pool.initialize()

        @app.on_event("shutdown")
        async def shutdown_database():
            """Close database connections and the SCM HTTP client."""
            await app.state.db_pool.close()
            await app.state.scm_client.close()
            logger.info("Pipelines database and SCM client closed")

    elif app.state.pipeline_store is None or app.state.user_store is None:
        logger.warning("Pipeline/user stores not configured - pipeline routes will answer 503")

    app.add_middleware(RequestContextMiddleware)
    app.include_router(ROUTER_HEALTH, prefix=API_PREFIX)
    app.include_router(ROUTER_PIPELINES, prefix=API_PREFIX)

    app.add_exception_handler(
        exc_class_or_status_code=ApiError,
        handler=handle_api_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=ScmError,
        handler=handle_scm_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=RequestValidationError,
        handler=handle_request_validation_errors,
    )
    app.add_exception_handler(
        exc_class_or_status_code=pydantic.ValidationError,
        handler=handle_pydantic_validation_errors,
    )

    app.middleware("http")(handle_broad_exceptions)

    return app


def custom_generate_unique_id(route: APIRoute):
    """
    Generate prettier `operationId`s in the OpenAPI schema.

    These become the function names in generated client SDKs.
    """
    if route.tags:
        return f"{route.tags[0]}-{route.name}"
    return route.name


if __name__ == "__main__":
    import uvicorn

    app = create_app()
    uvicorn.run(app, host="0.0.0.0", port=8000)
