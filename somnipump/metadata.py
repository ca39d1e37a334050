import json
import logging
import mimetypes
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from somnipump.types import LaunchRequest

logger = logging.getLogger(__name__)


def build_metadata(req: LaunchRequest, image_uri: Optional[str], owner: Optional[str]) -> Dict[str, Any]:
    return {
        "name": req.name,
        "symbol": req.symbol,
        "description": req.description,
        "links": {"twitter": req.twitter, "telegram": req.telegram, "website": req.website},
        "image": image_uri,
        "options": {"autoRenounce": req.auto_renounce, "lockLP": req.lock_lp},
        "owner": owner or "",
    }


class MetadataStore:
    """Blob store client: upload bytes, get a retrievable URI back."""

    def __init__(self, base: str, api_key: Optional[str] = None, timeout: int = 30):
        self.base = base.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def store(self, blob: bytes, filename: str, content_type: str) -> dict:
        url = f"{self.base}/upload"
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        r = requests.post(
            url,
            files={"file": (filename, blob, content_type)},
            headers=headers,
            timeout=self.timeout,
        )
        if r.status_code not in (200, 201):
            return {"ok": False, "error": f"HTTP {r.status_code} {r.text}"}
        data = r.json()
        if not isinstance(data, dict):
            return {"ok": False, "error": "malformed_upload_response"}
        uri = data.get("uri") or data.get("url")
        if not uri and data.get("cid"):
            uri = f"ipfs://{data['cid']}"
        if not uri:
            return {"ok": False, "error": "malformed_upload_response"}
        return {"ok": True, "uri": uri}


def publish_launch_metadata(
    store: Optional[MetadataStore], req: LaunchRequest, owner: Optional[str] = None
) -> Optional[str]:
    """Upload logo and metadata JSON; metadata is optional so failures yield None."""
    if store is None:
        return None
    image_uri = None
    try:
        if req.image_path:
            p = Path(req.image_path).expanduser()
            mime, _ = mimetypes.guess_type(p.name)
            res = store.store(p.read_bytes(), p.name, mime or "application/octet-stream")
            if res.get("ok"):
                image_uri = res["uri"]
            else:
                logger.warning(f"[metadata] image upload failed: {res.get('error')}")
        doc = json.dumps(build_metadata(req, image_uri, owner)).encode()
        res = store.store(doc, f"{req.symbol.lower()}.json", "application/json")
    except (OSError, requests.RequestException, ValueError) as e:
        logger.warning(f"[metadata] upload failed, launching without metadata: {e}")
        return None
    if not res.get("ok"):
        logger.warning(f"[metadata] upload failed, launching without metadata: {res.get('error')}")
        return None
    return res["uri"]
