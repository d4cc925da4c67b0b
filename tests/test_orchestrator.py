import json

import pytest

from conftest import FABRIC_META, FakeHttp
from mcloaderlib.bootstrap import ServerBootstrapWriter
from mcloaderlib.exceptions import (
    CatalogParseError,
    CatalogUnavailable,
    UnsupportedVersionCombination,
)
from mcloaderlib.models import InstallRequest
from mcloaderlib.orchestrator import InstallOrchestrator, InstallState
from mcloaderlib.profiles import PROFILE_STORE_NAME

HAPPY_PATH = [
    InstallState.IDLE,
    InstallState.RESOLVING_CATALOG,
    InstallState.RESOLVING_PLAN,
    InstallState.FETCHING,
    InstallState.VERIFYING,
    InstallState.WRITING,
    InstallState.DONE,
]


def _orchestrator(upstream, settings, **kwargs):
    return InstallOrchestrator(
        settings=settings, http_client=upstream, sleep=lambda _: None, **kwargs
    )


def _tree(root):
    return sorted(path.relative_to(root).as_posix() for path in root.rglob("*") if path.is_file())


def test_fabric_client_install_walks_every_state(upstream, settings, tmp_path):
    stages = []
    orchestrator = _orchestrator(upstream, settings, on_stage=stages.append)
    result = orchestrator.run("fabric", "client", tmp_path, game_version="1.20.1")

    assert result.success
    assert result.state == "done"
    assert orchestrator.history == HAPPY_PATH
    assert stages == HAPPY_PATH[1:]
    store = json.loads((tmp_path / PROFILE_STORE_NAME).read_text(encoding="utf-8"))
    assert "fabric-loader-0.14.22-1.20.1" in store["profiles"]
    assert result.paths[0] == tmp_path.resolve() / PROFILE_STORE_NAME
    assert result.to_dict()["loader_version"] == "0.14.22"


def test_rerun_is_idempotent(upstream, settings, tmp_path):
    _orchestrator(upstream, settings).run("fabric", "client", tmp_path)
    store_bytes = (tmp_path / PROFILE_STORE_NAME).read_bytes()
    downloads = len(upstream.downloads)

    result = _orchestrator(upstream, settings).run("fabric", "client", tmp_path)
    assert result.success
    assert len(upstream.downloads) == downloads
    assert (tmp_path / PROFILE_STORE_NAME).read_bytes() == store_bytes
    assert any("already present" in note for note in result.notes)


def test_quilt_server_into_empty_directory(upstream, settings, tmp_path):
    script = ServerBootstrapWriter().script_name
    result = _orchestrator(upstream, settings).run_request(
        InstallRequest(loader="quilt", target="server", destination=tmp_path)
    )

    assert result.success, result.failure_reason
    visible = [name for name in _tree(tmp_path) if not name.startswith(".")]
    assert visible == sorted(
        [
            "libraries/net/fabricmc/intermediary/1.20.1/intermediary-1.20.1.jar",
            "libraries/org/quiltmc/quilt-loader/0.19.2/quilt-loader-0.19.2.jar",
            script,
            "server.jar",
        ]
    )
    content = (tmp_path / script).read_text(encoding="utf-8")
    assert "quilt-loader-0.19.2.jar" in content
    assert "intermediary-1.20.1.jar" in content
    assert "server.jar" in content


def test_server_install_keeps_existing_files(upstream, settings, tmp_path):
    (tmp_path / "world").mkdir()
    (tmp_path / "world" / "level.dat").write_bytes(b"world data")
    (tmp_path / "server.properties").write_text("motd=hello\n", encoding="utf-8")

    result = _orchestrator(upstream, settings).run("fabric", "server", tmp_path)
    assert result.success, result.failure_reason
    assert (tmp_path / "world" / "level.dat").read_bytes() == b"world data"
    assert (tmp_path / "server.properties").read_text(encoding="utf-8") == "motd=hello\n"


def test_incompatible_versions_fail_during_planning(upstream, settings, tmp_path):
    orchestrator = _orchestrator(upstream, settings)
    result = orchestrator.run(
        "forge", "server", tmp_path, game_version="1.20.1", loader_version="1.19.4-45.1.0"
    )
    assert not result.success
    assert result.state == "failed"
    assert isinstance(result.error, UnsupportedVersionCombination)
    assert result.error.context["stage"] == "resolving_plan"
    assert orchestrator.history == HAPPY_PATH[:3] + [InstallState.FAILED]
    assert list(tmp_path.iterdir()) == []


def test_unreachable_catalog_fails_first_stage(settings, tmp_path):
    orchestrator = _orchestrator(FakeHttp(), settings)
    result = orchestrator.run("fabric", "client", tmp_path)
    assert isinstance(result.error, CatalogUnavailable)
    assert result.to_dict()["context"]["url"] == f"{FABRIC_META}/game"
    assert orchestrator.state is InstallState.FAILED


def test_cancelled_run_reports_failure(upstream, settings, tmp_path):
    orchestrator = _orchestrator(upstream, settings)
    orchestrator.cancel()
    result = orchestrator.run("fabric", "client", tmp_path)
    assert not result.success
    assert not (tmp_path / PROFILE_STORE_NAME).exists()


def test_orchestrator_is_single_use(upstream, settings, tmp_path):
    orchestrator = _orchestrator(upstream, settings)
    orchestrator.run("fabric", "client", tmp_path)
    with pytest.raises(RuntimeError):
        orchestrator.run("fabric", "client", tmp_path)


def test_malformed_library_coordinate_fails_the_run(upstream, settings, tmp_path):
    profile = upstream.json_map[f"{FABRIC_META}/loader/1.20.1/0.14.22/profile/json"]
    profile["libraries"].append(
        {"name": "org.example:broken", "url": "https://maven.example.org/", "sha1": "0" * 40}
    )
    orchestrator = _orchestrator(upstream, settings)
    result = orchestrator.run("fabric", "client", tmp_path, game_version="1.20.1")
    assert not result.success
    assert isinstance(result.error, CatalogParseError)
    assert result.error.context["stage"] == "resolving_plan"
    assert upstream.downloads == []
