from contextlib import asynccontextmanager

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from ark_backend.adapters.asset_store.base import AssetFile
from ark_backend.adapters.asset_store.http import HttpAssetStore
from ark_shared.errors import DeleteUnsupportedError, DirectoryBrowseError, FetchError, NotFoundError


def _build_app(files: dict, dirs: set, *, delete_supported: bool = True) -> web.Application:
    async def browse(request: web.Request) -> web.Response:
        target = request.query.get("target", "").rstrip("/")
        prefix = target + "/"
        if target == "broken":
            return web.json_response({"error": "boom"}, status=500)
        listed_files, listed_dirs = [], set()
        for path in files:
            if not path.startswith(prefix):
                continue
            rest = path[len(prefix):]
            if "/" in rest:
                listed_dirs.add(prefix + rest.split("/", 1)[0])
            else:
                listed_files.append(path)
        return web.json_response({"files": sorted(listed_files), "dirs": sorted(listed_dirs)})

    async def mkdir(request: web.Request) -> web.Response:
        body = await request.json()
        dirs.add(body["target"])
        return web.json_response({"ok": True})

    async def upload(request: web.Request) -> web.Response:
        form = await request.post()
        field = form["file"]
        target = form["target"]
        path = f"{target}/{field.filename}" if target else field.filename
        files[path] = field.file.read()
        return web.json_response({"ok": True, "path": path})

    async def delete(request: web.Request) -> web.Response:
        if not delete_supported:
            return web.Response(status=405)
        body = await request.json()
        if body["path"] == "assets/locked.png":
            return web.Response(status=403)
        files.pop(body["path"], None)
        return web.json_response({"ok": True})

    async def serve(request: web.Request) -> web.Response:
        path = request.match_info["path"]
        if path not in files:
            return web.Response(status=404)
        return web.Response(body=files[path], content_type="application/octet-stream")

    app = web.Application()
    app.router.add_get("/api/files/browse", browse)
    app.router.add_post("/api/files/mkdir", mkdir)
    app.router.add_post("/api/files/upload", upload)
    app.router.add_post("/api/files/delete", delete)
    app.router.add_get("/{path:.+}", serve)
    return app


@asynccontextmanager
async def _running_store(files: dict, dirs: set | None = None, **app_kwargs):
    server = TestServer(_build_app(files, dirs if dirs is not None else set(), **app_kwargs))
    await server.start_server()
    store = HttpAssetStore(str(server.make_url("/")), timeout=5)
    try:
        yield store
    finally:
        await store.aclose()
        await server.close()


@pytest.mark.asyncio
async def test_probe_and_fetch():
    files = {"assets/my map.png": b"\x89PNG"}
    async with _running_store(files) as store:
        assert await store.probe_exists("assets/my map.png") is True
        assert await store.probe_exists("assets/missing.png") is False
        assert await store.fetch_binary("assets/my map.png") == b"\x89PNG"

        with pytest.raises(NotFoundError) as excinfo:
            await store.fetch_binary("assets/missing.png")
        assert excinfo.value.status == 404
        assert str(excinfo.value) == "404: assets/missing.png"


@pytest.mark.asyncio
async def test_browse_lists_files_and_dirs():
    files = {"assets/a.png": b"", "assets/maps/town.jpg": b""}
    async with _running_store(files) as store:
        listing = await store.browse("data", "assets")

        assert listing.files == ["assets/a.png"]
        assert listing.dirs == ["assets/maps"]

        with pytest.raises(DirectoryBrowseError):
            await store.browse("data", "broken")


@pytest.mark.asyncio
async def test_mkdir_and_multipart_upload():
    files: dict = {}
    dirs: set = set()
    async with _running_store(files, dirs) as store:
        await store.create_directory("data", "modules/ark/data")
        await store.upload("data", "modules/ark/data", AssetFile("index.json", b"{}", "application/json"))

    assert dirs == {"modules/ark/data"}
    assert files == {"modules/ark/data/index.json": b"{}"}


@pytest.mark.asyncio
async def test_delete_statuses():
    files = {"assets/a.png": b"", "assets/locked.png": b""}
    async with _running_store(files) as store:
        await store.delete("data", "assets/a.png")
        assert "assets/a.png" not in files

        with pytest.raises(FetchError) as excinfo:
            await store.delete("data", "assets/locked.png")
        assert excinfo.value.status == 403

    async with _running_store({"assets/b.png": b""}, delete_supported=False) as store:
        with pytest.raises(DeleteUnsupportedError):
            await store.delete("data", "assets/b.png")


@pytest.mark.asyncio
async def test_unreachable_store_raises_fetch_error():
    store = HttpAssetStore("http://127.0.0.1:1", timeout=2)
    try:
        with pytest.raises(FetchError):
            await store.probe_exists("assets/a.png")
    finally:
        await store.aclose()


def test_file_url_quotes_segments():
    store = HttpAssetStore("http://host:30000/")

    assert store.file_url("/assets/my map.png") == "http://host:30000/assets/my%20map.png"
