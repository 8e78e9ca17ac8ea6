"""Tests for manual_mcp.server — project loading through the MCP tools."""

import json
import pytest

from manual_mcp import server
from manual_sdk.core.state import SessionState
from manual_sdk.core.workspace import Workspace


@pytest.fixture
def session(monkeypatch):
    state = SessionState()
    state.add_slide()
    monkeypatch.setattr(server, "_session_state", state)
    return state


@pytest.fixture
def project(tmp_path):
    ws = Workspace(project_name="guide", root_path=tmp_path / "guide")
    ws.initialize()
    return ws


# ── load_project ────────────────────────────────────────────────────────

class TestLoadProject:
    def test_loads_saved_project(self, session, project):
        saved = SessionState(workspace=project)
        saved.update_slide(saved.current_slide.id, screen_name="Login")
        saved.auto_save()

        result = json.loads(server.load_project(None, str(project.root_path)))
        assert result["status"] == "loaded"
        assert result["slide_count"] == 1
        assert server._session_state is not session
        assert server._session_state.current_slide.screen_name == "Login"

    @pytest.mark.parametrize("manifest", [
        b"{broken",
        json.dumps({"assets": {}}).encode(),
        b'{"project_name": "\xff"}',
    ])
    def test_bad_manifest_reports_error(self, session, project, manifest):
        project.manifest_path.write_bytes(manifest)
        result = server.load_project(None, str(project.root_path))
        assert result.startswith("Error loading project")
        assert server._session_state is session

    def test_undecodable_document_reports_error(self, session, project):
        project.document_path.write_bytes(b'{"slides": [{"kind": "NOTE", "id": "\xff"}]}')
        result = server.load_project(None, str(project.root_path))
        assert result.startswith("Error loading project")
        assert server._session_state is session

    def test_missing_project(self, session, tmp_path):
        result = server.load_project(None, str(tmp_path / "nowhere"))
        assert result.startswith("Error loading project")
        assert server._session_state is session
