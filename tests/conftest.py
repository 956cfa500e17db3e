import io
import sys

import pytest
from PIL import Image

from .repo_root import REPO_ROOT

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from ark_backend.adapters.asset_store.base import AssetFile, BrowseResult  # noqa: E402
from ark_backend.adapters.documents.memory import InMemoryDocumentStore  # noqa: E402
from ark_shared.errors import DirectoryBrowseError, FetchError, NotFoundError  # noqa: E402


def image_bytes(fmt: str = "PNG", size: tuple[int, int] = (8, 8), color=(200, 30, 30), mode: str = "RGB") -> bytes:
    buf = io.BytesIO()
    Image.new(mode, size, color=color).save(buf, format=fmt)
    return buf.getvalue()


class FakeAssetStore:
    """In-memory asset store keyed by store-relative path."""

    def __init__(self, files=None, *, supports_delete: bool = True):
        self.files: dict[str, bytes] = dict(files or {})
        self.dirs: set[str] = set()
        self.fail_browse: set[str] = set()
        self.fail_probe: set[str] = set()
        self.fail_delete: set[str] = set()
        self.fail_create_dir = False
        self.fail_upload = False
        self.probed: list[str] = []
        self.uploads: list[str] = []
        self.deleted: list[str] = []
        if not supports_delete:
            self.delete = None

    def _dir_exists(self, dir_path: str) -> bool:
        prefix = dir_path.rstrip("/") + "/"
        return dir_path in self.dirs or any(p.startswith(prefix) for p in self.files)

    async def browse(self, root: str, dir_path: str) -> BrowseResult:
        if dir_path in self.fail_browse or not self._dir_exists(dir_path):
            raise DirectoryBrowseError(dir_path)
        prefix = dir_path.rstrip("/") + "/"
        files, dirs = [], set()
        for path in self.files:
            if not path.startswith(prefix):
                continue
            rest = path[len(prefix):]
            if "/" in rest:
                dirs.add(prefix + rest.split("/", 1)[0])
            else:
                files.append(path)
        for d in self.dirs:
            if d.startswith(prefix) and "/" not in d[len(prefix):]:
                dirs.add(d)
        return BrowseResult(files=sorted(files), dirs=sorted(dirs))

    async def create_directory(self, root: str, dir_path: str) -> None:
        if self.fail_create_dir:
            raise DirectoryBrowseError(dir_path, "mkdir refused")
        self.dirs.add(dir_path)

    async def upload(self, root: str, dir_path: str, file: AssetFile) -> None:
        path = f"{dir_path}/{file.name}" if dir_path else file.name
        if self.fail_upload:
            raise FetchError(path, 500)
        self.files[path] = file.data
        self.uploads.append(path)

    async def probe_exists(self, path: str) -> bool:
        self.probed.append(path)
        if path in self.fail_probe:
            raise FetchError(path, None, "connection reset")
        return path in self.files

    async def fetch_binary(self, path: str) -> bytes:
        if path not in self.files:
            raise NotFoundError(path)
        return self.files[path]

    async def delete(self, root: str, path: str) -> None:
        if path in self.fail_delete:
            raise FetchError(path, 403, "delete refused")
        self.files.pop(path, None)
        self.deleted.append(path)


@pytest.fixture
def documents():
    return InMemoryDocumentStore(scope_id="test-world", scope_label="Test World")


@pytest.fixture
def asset_store():
    return FakeAssetStore()


@pytest.fixture
def services(documents, asset_store):
    from ark_backend.deps import build_services

    return build_services(documents, asset_store, orphan_roots=("assets",), guard_asset_store=True)
