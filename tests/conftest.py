"""Shared fixtures: an in-memory cookbook server and a sample repository."""

import json
from pathlib import Path
from typing import Dict, Any, List

import httpx
import pytest

from cookbookfs import config
from cookbookfs.rest import ServerAPI

SERVER_URL = "https://chef.example.com"


class FakeServer:
    """Answers the cookbook API over httpx.MockTransport.

    Attributes:
        cookbooks: Listing returned by GET /cookbooks
        requests: Every request seen, in order
        cookbook_status: Status code for PUT /cookbooks/NAME/VERSION
        timeout_on: Path prefix that raises httpx.ReadTimeout
        uploaded: Checksum -> bytes received by the file store
        manifests: Path -> manifest body of accepted cookbook PUTs
    """

    def __init__(self, cookbooks: Dict[str, Any] = None):
        self.cookbooks = cookbooks if cookbooks is not None else {}
        self.requests: List[httpx.Request] = []
        self.cookbook_status = 200
        self.timeout_on = None
        self.uploaded: Dict[str, bytes] = {}
        self.manifests: Dict[str, Dict[str, Any]] = {}
        self.latest: Dict[str, Dict[str, Any]] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        path = request.url.path

        if self.timeout_on and path.startswith(self.timeout_on):
            raise httpx.ReadTimeout("The read operation timed out", request=request)

        if request.method == "GET" and path == "/cookbooks":
            return httpx.Response(200, json=self.cookbooks)

        if request.method == "GET" and path.endswith("/_latest"):
            name = path.split("/")[2]
            if name not in self.latest:
                return httpx.Response(404, json={"error": ["not found"]})
            return httpx.Response(200, json=self.latest[name])

        if request.method == "GET" and path.startswith("/bookshelf/"):
            return httpx.Response(200, content=self.uploaded.get(path.rsplit("/", 1)[1], b""))

        if request.method == "POST" and path == "/sandboxes":
            checksums = json.loads(request.content)["checksums"]
            return httpx.Response(201, json={
                "sandbox_id": "sb1",
                "uri": f"{SERVER_URL}/sandboxes/sb1",
                "checksums": {
                    checksum: {"needs_upload": True, "url": f"{SERVER_URL}/bookshelf/{checksum}"}
                    for checksum in checksums
                },
            })

        if request.method == "PUT" and path.startswith("/bookshelf/"):
            self.uploaded[path.rsplit("/", 1)[1]] = request.content
            return httpx.Response(204)

        if request.method == "PUT" and path.startswith("/sandboxes/"):
            return httpx.Response(200, json={"is_completed": True})

        if request.method == "PUT" and path.startswith("/cookbooks/"):
            if self.cookbook_status != 200:
                return httpx.Response(self.cookbook_status, json={"error": ["rejected"]})
            self.manifests[path] = json.loads(request.content)
            return httpx.Response(200, json=self.manifests[path])

        return httpx.Response(404, json={"error": ["no route"]})

    def calls(self, method: str, path: str) -> List[httpx.Request]:
        return [r for r in self.requests if r.method == method and r.url.path == path]

    def api(self, **options) -> ServerAPI:
        return ServerAPI(SERVER_URL, {"transport": httpx.MockTransport(self.handler), **options})


@pytest.fixture
def fake_server():
    return FakeServer({
        "mysql": {"url": f"{SERVER_URL}/cookbooks/mysql", "versions": []},
        "apache2": {"url": f"{SERVER_URL}/cookbooks/apache2", "versions": []},
    })


@pytest.fixture(autouse=True)
def default_config():
    """Every test starts from a default, in-memory configuration."""
    config.set_config(config.CookbookFSConfig())
    yield config.get_config()
    config.set_config(None)


def write_cookbook(cookbooks_dir: Path, name: str, version: str = "1.0.0", yaml_metadata: bool = False) -> Path:
    """Create a small cookbook on disk."""
    cookbook_dir = cookbooks_dir / name
    (cookbook_dir / "recipes").mkdir(parents=True)
    (cookbook_dir / "recipes" / "default.rb").write_text(f"package '{name}'\n")
    (cookbook_dir / "README.md").write_text(f"# {name}\n")

    if yaml_metadata:
        (cookbook_dir / "metadata.yaml").write_text(
            f"name: {name}\nversion: {version}\ndepends:\n  apt: '>= 2.0'\n"
        )
    else:
        (cookbook_dir / "metadata.json").write_text(
            json.dumps({"name": name, "version": version})
        )
    return cookbook_dir


@pytest.fixture
def repo(tmp_path):
    """A repository with apache2 (metadata.json) and mysql (metadata.yaml)."""
    repo_dir = tmp_path / "chef-repo"
    cookbooks_dir = repo_dir / "cookbooks"
    write_cookbook(cookbooks_dir, "apache2", "1.0.0")
    write_cookbook(cookbooks_dir, "mysql", "2.1.0", yaml_metadata=True)
    return repo_dir
