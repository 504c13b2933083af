"""FastAPI main application"""
from dotenv import load_dotenv
load_dotenv()

from contextlib import asynccontextmanager

import aiohttp
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from sqlquery import __version__, deps
from sqlquery.config import settings
from sqlquery.routers import commands, tools
from sqlquery.routers import settings as settings_router
from sqlquery.smart_logger import SmartLogger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown events"""
    print("Starting SQL Query Tools API...")
    session = aiohttp.ClientSession()
    deps.container = deps.build_container(session)
    print(f"Transport: {settings.transport_mode}")
    if settings.transport_mode == "http":
        print(f"Query plugin: {settings.plugin_base_url}{settings.plugin_path_prefix}")
    SmartLogger.log(
        "INFO",
        "main.lifespan.start",
        category="main.lifespan",
        params={
            "transport_mode": settings.transport_mode,
            "tools": [tool.name for tool in deps.container.tools.list_tools()],
            "commands": [command.name for command in deps.container.commands.list_commands()],
        },
        max_inline_chars=0,
    )

    yield

    print("Shutting down...")
    await deps.container.close()
    deps.container = None
    SmartLogger.log("INFO", "main.lifespan.stop", category="main.lifespan")


app = FastAPI(
    title="SQL Query Tools API",
    description="""
    SQL lineage and catalog tools for chat-host function calling.

    ## Features
    - Recursive table lineage with Markdown rendering
    - Candidate table search by measure and report
    - Raw SQL execution with positional parameters
    - Conversation logging and signed blob URLs
    - Persisted extension settings
    """,
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(tools.router, prefix="/sqlquery")
app.include_router(commands.router, prefix="/sqlquery")
app.include_router(settings_router.router, prefix="/sqlquery")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "message": "SQL Query Tools API",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint"""
    if deps.container is None:
        return {"status": "starting"}
    return {
        "status": "healthy",
        "config": {
            "transport_mode": settings.transport_mode,
            "query_database": settings.query_database,
            "lineage_row_limit": settings.lineage_row_limit,
            "lineage_relation_mode": settings.lineage_relation_mode,
        },
        "tools": len(deps.container.tools.list_tools()),
        "commands": len(deps.container.commands.list_commands()),
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "sqlquery.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
    )
