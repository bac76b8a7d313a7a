"""
FastAPI host for a compiled tool bridge.

Endpoints:
- GET  /health                 - Health check and tool count
- GET  /v1/tools               - List tools (protocol listing shape)
- GET  /v1/tools/{name}        - Describe one tool
- POST /v1/tools/{name}/call   - Validated, protocol-shaped tool call
- POST /v1/invoke-tool         - Raw tool invocation (no envelope)

Usage:
    python -m toolbridge.server --tools mypkg.tools --schemas schemas.json
"""

from __future__ import annotations

import importlib
import logging
import time
from typing import Any

from fastapi import FastAPI, HTTPException
from pydantic import BaseModel, Field

from .config import ServerSettings
from .tools import SchemaBundle, ToolBridge, ToolNotFoundError, compile_tools

logger = logging.getLogger("toolbridge.server")


# --- Request/Response Models ---


class HealthResponse(BaseModel):
    """Response body for /health endpoint."""

    status: str
    tool_count: int
    validate_calls: bool


class ToolCallRequest(BaseModel):
    """Request body for /v1/tools/{name}/call."""

    arguments: dict[str, Any] | None = Field(
        default=None, description="Tool arguments (JSON object)"
    )


class ToolInvokeRequest(BaseModel):
    """Request body for /v1/invoke-tool endpoint."""

    tool_name: str = Field(..., description="Name of tool to invoke")
    arguments: dict[str, Any] = Field(
        default_factory=dict, description="Tool arguments"
    )


class ToolInvokeResponse(BaseModel):
    """Response body for /v1/invoke-tool endpoint."""

    tool_name: str
    result: Any
    latency_ms: float


# --- Application Setup ---


def create_app(bridge: ToolBridge) -> FastAPI:
    """Build the HTTP app around an already compiled bridge."""
    app = FastAPI(
        title="Tool Bridge",
        description="Schema-validated tool calls over plain Python functions",
        version="0.1.0",
    )

    @app.get("/health", response_model=HealthResponse)
    async def health_check() -> HealthResponse:
        return HealthResponse(
            status="ok",
            tool_count=len(bridge.tools),
            validate_calls=bridge.validate_calls,
        )

    @app.get("/v1/tools")
    async def list_tools() -> dict[str, Any]:
        """List available tools."""
        return bridge.list_tools()

    @app.get("/v1/tools/{name}")
    async def get_tool(name: str) -> dict[str, Any]:
        try:
            return bridge.descriptor(name).to_schema()
        except ToolNotFoundError:
            raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")

    @app.post("/v1/tools/{name}/call")
    async def call_tool(name: str, request: ToolCallRequest) -> dict[str, Any]:
        """
        Validated tool call.

        Tool and validation errors are returned in the envelope (isError),
        not as HTTP errors.
        """
        try:
            return await bridge.handle_call_tool(name, request.arguments)
        except ToolNotFoundError:
            raise HTTPException(status_code=404, detail=f"Unknown tool: {name}")

    @app.post("/v1/invoke-tool", response_model=ToolInvokeResponse)
    async def invoke_tool(request: ToolInvokeRequest) -> ToolInvokeResponse:
        """
        Direct tool invocation endpoint.

        Skips validation and envelope shaping. Useful for testing tools or
        scripted workflows.
        """
        start_time = time.perf_counter()
        try:
            result = await bridge.apply(request.tool_name, request.arguments)
        except ToolNotFoundError:
            raise HTTPException(
                status_code=404, detail=f"Unknown tool: {request.tool_name}"
            )
        except Exception as e:
            logger.exception(f"Raw invocation of {request.tool_name} failed")
            raise HTTPException(status_code=500, detail=str(e))
        latency_ms = (time.perf_counter() - start_time) * 1000

        return ToolInvokeResponse(
            tool_name=request.tool_name,
            result=result,
            latency_ms=latency_ms,
        )

    return app


def load_bridge(module_path: str, schemas_path: str, validate_calls: bool = True) -> ToolBridge:
    """Import the tools module and compile it against a saved schema bundle."""
    module = importlib.import_module(module_path)
    bundle = SchemaBundle.load(schemas_path)
    return compile_tools(module, bundle, validate_calls=validate_calls)


# --- CLI Entry Point ---


def main() -> None:
    """Run the tool server."""
    import sys

    import uvicorn

    defaults = ServerSettings()
    host = defaults.host
    port = defaults.port
    module_path: str | None = None
    schemas_path: str | None = None
    validate_calls = True

    # Parse CLI args
    args = sys.argv[1:]
    i = 0
    while i < len(args):
        if args[i] == "--host" and i + 1 < len(args):
            host = args[i + 1]
            i += 2
        elif args[i] == "--port" and i + 1 < len(args):
            port = int(args[i + 1])
            i += 2
        elif args[i] == "--tools" and i + 1 < len(args):
            module_path = args[i + 1]
            i += 2
        elif args[i] == "--schemas" and i + 1 < len(args):
            schemas_path = args[i + 1]
            i += 2
        elif args[i] == "--no-validate":
            validate_calls = False
            i += 1
        else:
            i += 1

    if module_path is None or schemas_path is None:
        print("usage: toolbridge-server --tools MODULE --schemas FILE [--host H] [--port P] [--no-validate]")
        sys.exit(2)

    logging.basicConfig(
        level=getattr(logging, defaults.log_level),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    bridge = load_bridge(module_path, schemas_path, validate_calls=validate_calls)
    logger.info(f"Serving tools: {bridge.available_tools}")
    print(f"Starting Tool Bridge on {host}:{port}")
    uvicorn.run(create_app(bridge), host=host, port=port)


if __name__ == "__main__":
    main()
