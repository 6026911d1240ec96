"""Tests for the workspace session."""

from pathlib import Path

import pytest

from codeflow.config_manager import Settings
from codeflow.errors import GraphNotBuiltError, UnknownNodeError
from codeflow.models import EditStatus, MermaidConfig
from codeflow.scanner import CancellationToken
from codeflow.session import CodeFlowSession


@pytest.fixture
def session(sample_project_path: Path) -> CodeFlowSession:
    sess = CodeFlowSession(sample_project_path)
    sess.refresh()
    return sess


class TestLifecycle:
    def test_graph_before_refresh(self, sample_project_path: Path):
        sess = CodeFlowSession(sample_project_path)

        assert not sess.has_graph
        with pytest.raises(GraphNotBuiltError):
            sess.graph
        with pytest.raises(GraphNotBuiltError):
            sess.set_status("x", EditStatus.EDITING)

    def test_refresh_builds_graph(self, session: CodeFlowSession, sample_project_path: Path):
        graph = session.graph

        assert session.has_graph
        assert graph.root_path == str(sample_project_path.resolve())
        assert len(graph.nodes) == 13
        assert len(graph.edges) == 7

    def test_cancelled_refresh_gives_empty_graph(self, sample_project_path: Path):
        sess = CodeFlowSession(sample_project_path)
        token = CancellationToken()
        token.cancel()

        graph = sess.refresh(token)

        assert graph.nodes == []

    def test_sessions_are_independent(self, sample_project_path: Path, make_project):
        other = CodeFlowSession(make_project({"a.ts": "export const solo = () => 1;\n"}))
        other.refresh()
        mine = CodeFlowSession(sample_project_path)
        mine.refresh()

        assert [n.name for n in other.graph.nodes] == ["solo"]
        assert len(mine.graph.nodes) == 13


class TestLookup:
    def test_find_by_id_and_name(self, session: CodeFlowSession):
        by_name = session.find_node("Card")

        assert session.find_node(by_name.id) == by_name

    def test_find_unknown(self, session: CodeFlowSession):
        with pytest.raises(UnknownNodeError):
            session.find_node("DoesNotExist")


class TestStatus:
    def test_status_survives_refresh(self, session: CodeFlowSession):
        card = session.find_node("Card")
        session.set_status(card.id, EditStatus.EDITING)

        session.refresh()

        assert session.find_node("Card").edit_status is EditStatus.EDITING
        assert "✏️ Card" in session.diagram()

    def test_unknown_status_target(self, session: CodeFlowSession):
        with pytest.raises(UnknownNodeError):
            session.set_status("nope_0", EditStatus.EDITING)

    def test_status_dropped_when_component_disappears(self, make_project):
        root = make_project({"a.ts": "export const gone = () => 1;\nexport const kept = () => 2;\n"})
        sess = CodeFlowSession(root)
        sess.refresh()
        gone = sess.find_node("gone")
        sess.set_status(gone.id, EditStatus.COMPLETED)

        (root / "a.ts").write_text("export const kept = () => 2;\n")
        sess.refresh()

        assert gone.id not in sess.overlay


class TestProjections:
    def test_focus_depth_capped_by_settings(self, sample_project_path: Path):
        sess = CodeFlowSession(sample_project_path, Settings(max_depth=0))
        sess.refresh()

        sub = sess.focus("Card", depth=3)

        assert [n.name for n in sub.nodes] == ["Card"]

    def test_focus_neighbourhood(self, session: CodeFlowSession):
        sub = session.focus("Card", depth=1)

        assert sorted(n.name for n in sub.nodes) == ["Button", "Card", "useCounter"]

    def test_diagram_uses_settings(self, sample_project_path: Path):
        settings = Settings(diagram=MermaidConfig(direction="LR"))
        sess = CodeFlowSession(sample_project_path, settings)
        sess.refresh()

        assert sess.diagram().startswith("flowchart LR")
        assert sess.focus_diagram("Card").startswith("flowchart LR")

    def test_stats_and_markdown(self, session: CodeFlowSession):
        stats = session.stats()

        assert stats.total_nodes == 13
        assert stats.by_type["component"] == 3
        assert session.markdown("Sample").startswith("# Sample\n")
