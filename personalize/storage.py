import json
import os
import tempfile
import threading
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional, Protocol


class AssetStore(Protocol):
    def upload(self, path: str, data: bytes, content_type: str) -> str:
        """Store `data` under `path` and return its public URL."""
        ...


class LocalAssetStore:
    """
    Writes generated assets under a local root folder.

    Returned URLs are `base_url/path` when a public base URL is configured,
    otherwise `file://` URIs.
    """

    def __init__(self, root: Path, base_url: Optional[str] = None) -> None:
        self.root = Path(root)
        self.base_url = base_url.rstrip("/") if base_url else None

    def upload(self, path: str, data: bytes, content_type: str) -> str:
        target = self.root / path
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)

        if self.base_url:
            return f"{self.base_url}/{path}"
        return target.resolve().as_uri()


@dataclass
class GeneratedAsset:
    subscriber_id: str
    content_id: str
    template_id: str
    file_url: str
    personalization_snapshot: Dict[str, Optional[str]]
    asset_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    download_count: int = 0
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class AssetLedger:
    """
    JSON-file record of generated assets.

    Rows are appended once and only ever touched again to bump their
    download counter; the ledger never deletes.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def record(self, asset: GeneratedAsset) -> GeneratedAsset:
        with self._lock:
            rows = self._load()
            rows.append(asdict(asset))
            self._save(rows)
        return asset

    def get(self, asset_id: str) -> Optional[GeneratedAsset]:
        with self._lock:
            rows = self._load()
        for row in rows:
            if row["asset_id"] == asset_id:
                return GeneratedAsset(**row)
        return None

    def list_for_subscriber(self, subscriber_id: str) -> List[GeneratedAsset]:
        with self._lock:
            rows = self._load()
        return [GeneratedAsset(**row) for row in rows if row["subscriber_id"] == subscriber_id]

    def increment_downloads(self, asset_id: str) -> int:
        with self._lock:
            rows = self._load()
            for row in rows:
                if row["asset_id"] == asset_id:
                    row["download_count"] = int(row.get("download_count") or 0) + 1
                    self._save(rows)
                    return row["download_count"]
        raise KeyError(asset_id)

    def _load(self) -> List[Dict]:
        if not self.path.exists():
            return []
        with self.path.open("r", encoding="utf-8") as f:
            return json.load(f)

    def _save(self, rows: List[Dict]) -> None:
        # Serialise fully, then swap the file in; a failed write leaves the
        # previous ledger intact.
        payload = json.dumps(rows, indent=2, ensure_ascii=False)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(payload)
            os.replace(tmp_name, self.path)
        except BaseException:
            os.unlink(tmp_name)
            raise
