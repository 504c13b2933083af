"""Signed download URLs for storage blobs"""
from sqlquery.core.errors import MissingArgument, NoResultSet
from sqlquery.core.log_sanitize import sanitize_for_log
from sqlquery.core.transport import PluginClient
from sqlquery.smart_logger import SmartLogger


class BlobUrlClient:
    def __init__(self, client: PluginClient, path: str = "get_blob_url"):
        self.client = client
        self.path = path

    async def get_blob_url(self, blob_name: str) -> str:
        """Resolve ``blob_name`` to a time-limited signed URL."""
        if not (blob_name or "").strip():
            raise MissingArgument("blobName is required")
        data = await self.client.post_json(self.path, {"blobName": blob_name})
        url = data.get("blob_url") if isinstance(data, dict) else None
        if not isinstance(url, str):
            raise NoResultSet()
        SmartLogger.log(
            "INFO",
            "blob.url",
            category="blob.storage",
            params=sanitize_for_log({"blob_name": blob_name, "url": url}),
        )
        return url
