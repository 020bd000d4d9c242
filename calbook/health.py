# calbook/health.py
from fastapi import APIRouter, Depends

from calbook.clients.backend import BookingBackendClient
from calbook.dependencies.services import get_backend_client
from calbook.mcp_server import SERVER_NAME, mcp

router = APIRouter()


@router.get("/mcp/info")
async def mcp_info():
    tools = await mcp.list_tools()
    return {
        "status": "ok",
        "server": SERVER_NAME,
        "transport": "streamable-http",
        "path": "/mcp",
        "tools": sorted(tool.name for tool in tools),
    }


@router.get("/health")
def health(client: BookingBackendClient = Depends(get_backend_client)):
    return {"ok": True, "store": "in-memory" if client.use_mock_data else "remote"}
