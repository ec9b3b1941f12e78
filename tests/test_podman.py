# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""Tests for toolbx/podman.py -- engine command wrappers."""

import json
import subprocess
from unittest.mock import MagicMock, patch

import pytest

from tests.conftest import completed
from toolbx.errors import EngineError
from toolbx.podman import Podman, create_container, parse_version
from toolbx.types import ContainerIdentity


class TestParseVersion:
    def test_plain(self) -> None:
        assert parse_version("1.8.1") == (1, 8, 1)

    def test_with_prefix(self) -> None:
        assert parse_version("podman version 3.0.1") == (3, 0, 1)

    def test_rc_suffix(self) -> None:
        assert parse_version("2.0.0-rc1") == (2, 0, 0)

    def test_no_version(self) -> None:
        with pytest.raises(ValueError, match="Cannot parse version"):
            parse_version("dev")


class TestContainerQueries:
    @patch("toolbx.podman.subprocess.run")
    def test_container_exists(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(0)

        assert Podman().container_exists("dev") is True
        assert mock_run.call_args.args[0] == [
            "podman",
            "--log-level",
            "error",
            "container",
            "exists",
            "dev",
        ]

    @patch("toolbx.podman.subprocess.run")
    def test_container_missing(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(1)

        assert Podman().container_exists("dev") is False

    @patch("toolbx.podman.subprocess.run")
    def test_list_containers_dedupes_labels(self, mock_run: MagicMock) -> None:
        current = [
            {"Id": "aaa", "Names": ["fedora-toolbox-33"]},
            {"Id": "bbb", "Names": ["dev"]},
        ]
        legacy = [{"Id": "aaa", "Names": ["fedora-toolbox-33"]}]
        mock_run.side_effect = [
            completed(0, json.dumps(current)),
            completed(0, json.dumps(legacy)),
        ]

        assert Podman().list_containers() == ["fedora-toolbox-33", "dev"]

    @patch("toolbx.podman.subprocess.run")
    def test_list_containers_failure(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(125, stderr="no storage")

        with pytest.raises(EngineError, match="no storage"):
            Podman().list_containers()

    @patch("toolbx.podman.subprocess.run")
    def test_snapshot_skips_listing_when_present(
        self, mock_run: MagicMock
    ) -> None:
        mock_run.return_value = completed(0)

        snapshot = Podman().snapshot("dev", enumerate_all=True)

        assert snapshot.exists is True
        assert snapshot.names == ()
        assert mock_run.call_count == 1

    @patch("toolbx.podman.subprocess.run")
    def test_snapshot_lists_when_missing(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = [
            completed(1),
            completed(0, json.dumps([{"Id": "a", "Names": ["only"]}])),
            completed(0, "[]"),
        ]

        snapshot = Podman().snapshot("dev", enumerate_all=True)

        assert snapshot.exists is False
        assert snapshot.names == ("only",)


class TestStartAndInspect:
    @patch("toolbx.podman.subprocess.run")
    def test_start_failure(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(125, stderr="crun: boom")

        with pytest.raises(EngineError, match="failed to start container dev"):
            Podman().start_container("dev")

    @patch("toolbx.podman.subprocess.run")
    def test_inspect_entry_point(self, mock_run: MagicMock) -> None:
        doc = [
            {
                "Config": {"Cmd": ["toolbox", "--verbose", "init-container"]},
                "State": {"Pid": 1234},
            }
        ]
        mock_run.return_value = completed(0, json.dumps(doc))

        entry_point = Podman().inspect_entry_point("dev")

        assert entry_point.process_name == "toolbox"
        assert entry_point.pid == 1234

    @patch("toolbx.podman.subprocess.run")
    def test_inspect_stopped_container(self, mock_run: MagicMock) -> None:
        doc = [{"Config": {"Cmd": ["toolbox"]}, "State": {"Pid": 0}}]
        mock_run.return_value = completed(0, json.dumps(doc))

        assert Podman().inspect_entry_point("dev").pid == 0

    @patch("toolbx.podman.subprocess.run")
    def test_inspect_failure(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(125)

        with pytest.raises(EngineError):
            Podman().inspect_entry_point("dev")


class TestVersion:
    @patch("toolbx.podman.subprocess.run")
    def test_check_version(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(0, "1.9.0\n")
        engine = Podman()

        assert engine.check_version((1, 8, 1)) is True
        assert engine.check_version((2, 0)) is False
        assert mock_run.call_count == 1

    @patch("toolbx.podman.subprocess.run")
    def test_unknown_version_is_old(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(125)

        assert Podman().check_version((1, 8, 1)) is False


class TestProbes:
    @patch("toolbx.podman.subprocess.run")
    def test_command_probe(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(0)

        assert Podman().is_command_present("dev", "zsh") is True
        args = mock_run.call_args.args[0]
        assert args[-6:] == ["dev", "sh", "-c", 'command -v "$1"', "sh", "zsh"]

    @patch("toolbx.podman.subprocess.run")
    def test_path_probe(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(1)

        assert Podman().is_path_present("dev", "/srv") is False
        assert mock_run.call_args.args[0][-2:] == ["sh", "/srv"]


class TestExecInteractive:
    @patch("toolbx.podman.subprocess.run")
    def test_success(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(0)

        assert Podman().exec_interactive(["exec", "dev"]) == (0, None)
        assert mock_run.call_args.args[0] == ["podman", "exec", "dev"]
        assert "capture_output" not in mock_run.call_args.kwargs

    @patch("toolbx.podman.subprocess.run")
    def test_failure_carries_error(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(126)

        code, error = Podman().exec_interactive(["exec", "dev"])

        assert code == 126
        assert isinstance(error, subprocess.CalledProcessError)

    @patch("toolbx.podman.subprocess.run")
    def test_missing_binary(self, mock_run: MagicMock) -> None:
        mock_run.side_effect = FileNotFoundError("podman")

        with pytest.raises(EngineError):
            Podman().exec_interactive(["exec"])


class TestCreateContainer:
    @patch("toolbx.podman.subprocess.run")
    def test_invokes_create_command(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(0)
        identity = ContainerIdentity("dev", "registry.example/img:1", "1")

        create_container("toolbox", identity)

        assert mock_run.call_args.args[0] == [
            "toolbox",
            "create",
            "--container",
            "dev",
            "--image",
            "registry.example/img:1",
        ]

    @patch("toolbx.podman.subprocess.run")
    def test_failure(self, mock_run: MagicMock) -> None:
        mock_run.return_value = completed(1)
        identity = ContainerIdentity("dev", "img", "1")

        with pytest.raises(EngineError, match="failed to create container"):
            create_container("toolbox", identity)
