import hashlib
import os

import pytest

from mcloaderlib.bootstrap import (
    ServerBootstrapWriter,
    render_posix_script,
    render_windows_script,
)
from mcloaderlib.exceptions import WriteFailed
from mcloaderlib.models import (
    Artifact,
    ClientOutput,
    InstallPlan,
    InstallTarget,
    LoaderKind,
    ServerOutput,
    StartCommands,
)

START = StartCommands(
    default=("{java}", "-cp", "libraries/a.jar:server.jar", "Main", "nogui"),
    windows=("{java}", "-cp", "libraries/a.jar;server.jar", "Main", "nogui"),
)


def _server_plan(root, artifacts=()):
    return InstallPlan(
        loader=LoaderKind.QUILT,
        target=InstallTarget.SERVER,
        game_version="1.20.1",
        loader_version="0.19.2",
        artifacts=tuple(artifacts),
        output=ServerOutput(start=START),
        destination=root,
    )


def test_posix_script_quotes_arguments():
    script = render_posix_script(["{java}", "-Dname=a b", "-jar", "server.jar"], "java")
    assert script.startswith("#!/usr/bin/env sh\n")
    assert 'JAVA="${JAVA:-java}"' in script
    assert "exec \"$JAVA\" '-Dname=a b' -jar server.jar \"$@\"\n" in script


def test_windows_script_uses_crlf():
    script = render_windows_script(["{java}", "-jar", "server.jar", "nogui"], "C:\\Java\\java.exe")
    assert script.splitlines()[-1] == "C:\\Java\\java.exe -jar server.jar nogui %*"
    assert "\r\n" in script


def test_write_server_creates_launch_script(tmp_path):
    layout = ServerBootstrapWriter(java_path="java", platform_name="posix").write_server(
        _server_plan(tmp_path)
    )
    assert layout.launch_script == tmp_path.resolve() / "run.sh"
    content = layout.launch_script.read_text(encoding="utf-8")
    assert "libraries/a.jar:server.jar" in content
    if os.name != "nt":
        assert os.access(layout.launch_script, os.X_OK)


def test_write_server_for_windows(tmp_path):
    writer = ServerBootstrapWriter(java_path="java", platform_name="nt")
    layout = writer.write_server(_server_plan(tmp_path))
    assert layout.launch_script.name == "run.bat"
    assert "libraries/a.jar;server.jar" in layout.launch_script.read_text(encoding="utf-8")


def test_write_server_copies_into_another_directory(tmp_path):
    staging = tmp_path / "staging"
    jar = staging / "server.jar"
    jar.parent.mkdir()
    jar.write_bytes(b"server")
    artifact = Artifact(
        identifier="net.minecraft:server:1.20.1",
        url="https://piston-data.mojang.com/server.jar",
        checksum=hashlib.sha1(b"server").hexdigest(),
        destination=jar,
    )
    target = tmp_path / "live"
    layout = ServerBootstrapWriter(platform_name="posix").write_server(
        _server_plan(staging, [artifact]), target
    )
    assert (target / "server.jar").read_bytes() == b"server"
    assert layout.files == (target.resolve() / "server.jar",)


def test_write_server_requires_fetched_artifacts(tmp_path):
    artifact = Artifact(
        identifier="net.minecraft:server:1.20.1",
        url="https://piston-data.mojang.com/server.jar",
        checksum="0" * 40,
        destination=tmp_path / "server.jar",
    )
    with pytest.raises(WriteFailed):
        ServerBootstrapWriter(platform_name="posix").write_server(
            _server_plan(tmp_path, [artifact])
        )


def test_client_plan_is_rejected(tmp_path):
    plan = InstallPlan(
        loader=LoaderKind.QUILT,
        target=InstallTarget.CLIENT,
        game_version="1.20.1",
        loader_version="0.19.2",
        artifacts=(),
        output=ClientOutput(profile_key="k", version_id="v", display_name="n"),
        destination=tmp_path,
    )
    with pytest.raises(WriteFailed):
        ServerBootstrapWriter().write_server(plan)
